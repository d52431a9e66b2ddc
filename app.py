import uvicorn

from config import IP, PORT

if __name__ == "__main__":
    uvicorn.run("server:app", host=IP, port=PORT)
