import logging
import structlog
from typing import Dict, Any
from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
)
from fastapi import Request

from config import LOG_LEVEL

logging.basicConfig(format="%(message)s", level=LOG_LEVEL)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger("docker_driver")

# Prometheus metrics
REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "endpoint", "status"]
)
REQUEST_LATENCY = Histogram("http_request_duration_seconds", "HTTP request latency")
CONTAINER_OPERATIONS = Counter(
    "container_operations_total", "Container operations", ["operation", "status"]
)
IMAGE_OPERATIONS = Counter(
    "image_operations_total", "Image operations", ["operation", "status"]
)
ENGINE_ERRORS = Counter(
    "engine_errors_total", "Classified engine errors", ["error_code"]
)


def log_request(request: Request, response_time: float, status_code: int):
    """Log request details with structured logging"""
    logger.info(
        "HTTP request",
        method=request.method,
        url=str(request.url),
        status_code=status_code,
        response_time=response_time,
        user_agent=request.headers.get("user-agent"),
        client_ip=request.client.host if request.client else None,
    )


def log_container_operation(
    operation: str, container_id: str, status: str, details: Dict[str, Any] = None
):
    """Log container operations with structured logging"""
    logger.info(
        "Container operation",
        operation=operation,
        container_id=container_id,
        status=status,
        details=details or {},
    )
    CONTAINER_OPERATIONS.labels(operation=operation, status=status).inc()


def log_image_operation(
    operation: str, image: str, status: str, details: Dict[str, Any] = None
):
    """Log image operations with structured logging"""
    logger.info(
        "Image operation",
        operation=operation,
        image=image,
        status=status,
        details=details or {},
    )
    IMAGE_OPERATIONS.labels(operation=operation, status=status).inc()


def get_metrics():
    """Get Prometheus metrics"""
    return generate_latest()


# Error handling utilities
class DriverException(Exception):
    """Base exception for every failure the driver reports.

    ``retryable`` tells the caller whether repeating the same call unchanged
    can succeed (transport failures) or not (semantic rejections).
    """

    error_code = "DRIVER_ERROR"
    status_code = 500
    retryable = False

    def __init__(self, message: str, error_code: str = None, status_code: int = None):
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class EngineUnavailable(DriverException):
    """The engine could not be reached (connection refused, socket missing, timeout)"""

    error_code = "ENGINE_UNAVAILABLE"
    status_code = 503
    retryable = True


class InvalidConfig(DriverException):
    """The engine rejected the supplied parameters"""

    error_code = "INVALID_CONFIG"
    status_code = 400


class ContainerNotFound(DriverException):
    """No container with the given handle exists"""

    error_code = "CONTAINER_NOT_FOUND"
    status_code = 404


class ImageNotFound(DriverException):
    """No image with the given reference exists"""

    error_code = "IMAGE_NOT_FOUND"
    status_code = 404


class NotRunning(DriverException):
    """The container is not in the state the operation requires"""

    error_code = "NOT_RUNNING"
    status_code = 409


class StreamError(DriverException):
    """An explicit error (or an unreadable line) in a streamed engine response"""

    error_code = "STREAM_ERROR"
    status_code = 502


class IncompleteResponse(DriverException):
    """A streamed engine response ended without its terminal field"""

    error_code = "INCOMPLETE_RESPONSE"
    status_code = 502


class OperationRejected(DriverException):
    """The engine refused the operation for a reason not covered above"""

    error_code = "OPERATION_REJECTED"
    status_code = 500
