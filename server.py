from fastapi import (
    FastAPI,
    HTTPException,
    Depends,
    Header,
    Request,
    Response,
)
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from prometheus_client import CONTENT_TYPE_LATEST
from typing import Optional
import io
import threading
import time

from config import ORCHESTRATOR_TOKEN, RATE_LIMIT_ENABLED
from models import ContainerConfig, ResizeRequest, PullRequest, PushRequest
from docker_driver import DockerDriver
from utils import (
    logger,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    log_request,
    get_metrics,
    DriverException,
)

# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)

app = FastAPI(
    title="Docker Driver",
    description="Container and image lifecycle driver for the orchestrator",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_driver: Optional[DockerDriver] = None
_driver_lock = threading.Lock()


def get_driver() -> DockerDriver:
    """One engine client for the lifetime of the process"""
    global _driver
    with _driver_lock:
        if _driver is None:
            _driver = DockerDriver.from_env()
        return _driver


# Authentication dependency
async def verify_orchestrator_token(authorization: Optional[str] = Header(None)):
    """Verify that the request comes from the orchestrator"""
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header required")

    if authorization != f"Bearer {ORCHESTRATOR_TOKEN}":
        raise HTTPException(status_code=403, detail="Invalid orchestrator token")

    return True


# Request/Response middleware for logging and metrics
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    response_time = time.time() - start_time
    log_request(request, response_time, response.status_code)

    REQUEST_COUNT.labels(
        method=request.method, endpoint=request.url.path, status=response.status_code
    ).inc()
    REQUEST_LATENCY.observe(response_time)

    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error("Validation error", errors=exc.errors())
    return JSONResponse(
        status_code=422,
        content={"detail": "Validation error", "errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError):
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


@app.exception_handler(DriverException)
async def driver_exception_handler(request: Request, exc: DriverException):
    logger.error(
        "Driver exception",
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.message,
            "error_code": exc.error_code,
            "retryable": exc.retryable,
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error("Unexpected error", error=str(exc), exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "error_code": "INTERNAL_ERROR"},
    )


@app.post("/containers")
@limiter.limit("10/minute")
def create_container(
    config: ContainerConfig,
    request: Request,
    start: bool = False,
    driver: DockerDriver = Depends(get_driver),
    _: bool = Depends(verify_orchestrator_token),
):
    """Create a container, and start it as well when ``start`` is set"""
    logger.info("Creating container", config=config.model_dump(), start=start)
    handle = driver.run(config) if start else driver.create(config)
    return {"id": handle, "started": start}


@app.get("/containers")
@limiter.limit("30/minute")
def list_running_containers(
    request: Request,
    driver: DockerDriver = Depends(get_driver),
    _: bool = Depends(verify_orchestrator_token),
):
    return {"containers": driver.list_running_containers()}


@app.post("/containers/{container_id}/start")
@limiter.limit("10/minute")
def start_container(
    container_id: str,
    request: Request,
    driver: DockerDriver = Depends(get_driver),
    _: bool = Depends(verify_orchestrator_token),
):
    driver.start(container_id)
    return {"id": container_id, "status": "running"}


@app.post("/containers/{container_id}/stop")
@limiter.limit("10/minute")
def stop_container(
    container_id: str,
    request: Request,
    driver: DockerDriver = Depends(get_driver),
    _: bool = Depends(verify_orchestrator_token),
):
    driver.stop(container_id)
    return {"id": container_id, "status": "stopped"}


@app.post("/containers/{container_id}/restart")
@limiter.limit("10/minute")
def restart_container(
    container_id: str,
    request: Request,
    driver: DockerDriver = Depends(get_driver),
    _: bool = Depends(verify_orchestrator_token),
):
    driver.restart(container_id)
    return {"id": container_id, "status": "running"}


@app.post("/containers/{container_id}/resize")
@limiter.limit("10/minute")
def resize_container(
    container_id: str,
    resize: ResizeRequest,
    request: Request,
    driver: DockerDriver = Depends(get_driver),
    _: bool = Depends(verify_orchestrator_token),
):
    driver.resize(container_id, resize.memory_limit, resize.cpu_share)
    return {
        "id": container_id,
        "memory_limit": resize.memory_limit,
        "cpu_share": resize.cpu_share,
    }


@app.delete("/containers/{container_id}")
@limiter.limit("10/minute")
def remove_container(
    container_id: str,
    request: Request,
    driver: DockerDriver = Depends(get_driver),
    _: bool = Depends(verify_orchestrator_token),
):
    driver.remove(container_id)
    return {"id": container_id, "status": "removed"}


@app.get("/containers/{container_id}/health")
@limiter.limit("60/minute")
def container_health(
    container_id: str,
    request: Request,
    driver: DockerDriver = Depends(get_driver),
    _: bool = Depends(verify_orchestrator_token),
):
    health = driver.check_health(container_id)
    return {"id": container_id, **health.model_dump()}


@app.get("/images")
@limiter.limit("30/minute")
def list_images(
    request: Request,
    driver: DockerDriver = Depends(get_driver),
    _: bool = Depends(verify_orchestrator_token),
):
    return {"images": driver.list_images()}


@app.post("/images/pull")
@limiter.limit("5/minute")
def pull_image(
    pull: PullRequest,
    request: Request,
    driver: DockerDriver = Depends(get_driver),
    _: bool = Depends(verify_orchestrator_token),
):
    digest = driver.pull_image(pull.image)
    return {"image": pull.image, "digest": digest}


@app.post("/images/push")
@limiter.limit("5/minute")
def push_image(
    push: PushRequest,
    request: Request,
    driver: DockerDriver = Depends(get_driver),
    _: bool = Depends(verify_orchestrator_token),
):
    digest = driver.push_image(push.image, push.auth_config)
    return {"image": push.image, "digest": digest}


@app.post("/images/build")
@limiter.limit("5/minute")
async def build_image(
    tag: str,
    request: Request,
    driver: DockerDriver = Depends(get_driver),
    _: bool = Depends(verify_orchestrator_token),
):
    """Build an image from a tar build context sent as the request body"""
    build_context = io.BytesIO(await request.body())
    image_id = await run_in_threadpool(driver.build_image, build_context, tag)
    return {"image": tag, "id": image_id}


@app.get("/images/save")
@limiter.limit("5/minute")
def save_image(
    image: str,
    request: Request,
    driver: DockerDriver = Depends(get_driver),
    _: bool = Depends(verify_orchestrator_token),
):
    archive = driver.save_image(image)
    return Response(content=archive, media_type="application/x-tar")


@app.get("/health", status_code=200)
def health_endpoint():
    """Engine reachability"""
    try:
        get_driver().ping()
    except DriverException as e:
        logger.error("Health check failed", error=e.message)
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "engine": e.error_code, "detail": e.message},
        )
    return {"status": "healthy", "engine": "reachable"}


@app.get("/metrics")
async def metrics_endpoint():
    """Prometheus metrics endpoint"""
    return Response(content=get_metrics(), media_type=CONTENT_TYPE_LATEST)


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "name": "Docker Driver",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics",
    }


@app.on_event("startup")
async def startup_tasks():
    logger.info("Starting Docker Driver")


@app.on_event("shutdown")
async def shutdown_tasks():
    global _driver
    logger.info("Shutting down Docker Driver")
    with _driver_lock:
        if _driver is not None:
            _driver.close()
            _driver = None
