"""
Engine Client Module

Builds the single long-lived Docker client the driver is given, and maps
docker SDK / transport exceptions onto the driver's error taxonomy.
"""

from contextlib import contextmanager
import docker
import requests
import urllib3
from docker.errors import APIError, DockerException, NotFound, StreamParseError

from config import DOCKER_API_VERSION, DOCKER_TIMEOUT
from utils import (
    logger,
    ENGINE_ERRORS,
    DriverException,
    EngineUnavailable,
    InvalidConfig,
    ContainerNotFound,
    ImageNotFound,
    NotRunning,
    OperationRejected,
    StreamError,
)

# status code -> exception, per kind of target
CONTAINER_ERRORS = {400: InvalidConfig, 404: ContainerNotFound, 409: NotRunning}
CREATE_ERRORS = {400: InvalidConfig, 404: InvalidConfig, 409: InvalidConfig}
IMAGE_ERRORS = {400: InvalidConfig, 404: ImageNotFound}

# streamed responses read the raw socket, so urllib3 and stream-parse errors
# surface from inside the block as well
ENGINE_EXCEPTIONS = (
    DockerException,
    StreamParseError,
    requests.exceptions.RequestException,
    urllib3.exceptions.HTTPError,
)


def create_engine_client(timeout: int = DOCKER_TIMEOUT, version: str = DOCKER_API_VERSION):
    """Connect to the engine described by the environment (DOCKER_HOST etc.)"""
    try:
        client = docker.from_env(version=version, timeout=timeout)
    except DockerException as e:
        logger.warning("Docker is not available", error=str(e))
        raise EngineUnavailable(f"Cannot connect to the engine: {e}")

    logger.info("Connected to engine", base_url=client.api.base_url, api_version=client.api.api_version)
    return client


def classify_engine_error(error: Exception, mapping=CONTAINER_ERRORS) -> DriverException:
    """Translate an exception raised by the docker SDK"""
    if isinstance(error, DriverException):
        return error

    if isinstance(error, APIError):
        message = error.explanation or str(error)
        status_code = error.status_code
        if status_code is None and isinstance(error, NotFound):
            status_code = 404
        exc_class = mapping.get(status_code, OperationRejected)
        return exc_class(message)

    if isinstance(error, StreamParseError):
        return StreamError(f"Unreadable engine response: {error}")

    if isinstance(error, (requests.exceptions.RequestException, urllib3.exceptions.HTTPError, DockerException)):
        return EngineUnavailable(f"Engine unreachable: {error}")

    return OperationRejected(str(error))


@contextmanager
def engine_errors(operation: str, target: str, mapping=CONTAINER_ERRORS):
    """Re-raise any engine failure inside the block as a DriverException"""
    try:
        yield
    except ENGINE_EXCEPTIONS as e:
        error = classify_engine_error(e, mapping)
        ENGINE_ERRORS.labels(error_code=error.error_code).inc()
        logger.error(
            "Engine call failed",
            operation=operation,
            target=target,
            error_code=error.error_code,
            error=error.message,
        )
        raise error from e
