"""
Configuration Module

Runtime settings read from the environment (and an optional ``.env`` file).
Engine connection details (DOCKER_HOST, DOCKER_TLS_VERIFY, DOCKER_CERT_PATH)
are picked up by ``docker.from_env`` directly.
"""

import os
from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Engine client
DOCKER_API_VERSION = os.getenv("DOCKER_API_VERSION", "auto")
DOCKER_TIMEOUT = int(os.getenv("DOCKER_TIMEOUT", 60))

# HTTP surface
IP = os.getenv("IP", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))
ORCHESTRATOR_TOKEN = os.getenv("ORCHESTRATOR_TOKEN", "default-secret-token")
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() in ("1", "true", "yes")
