import os

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ORCHESTRATOR_TOKEN", "default-secret-token")

import pytest
from unittest.mock import MagicMock, Mock
from docker.errors import APIError

from docker_driver import DockerDriver


def api_error(status_code, explanation="engine said no", error_class=APIError):
    """Build a docker SDK error the way the SDK raises it for an HTTP status"""
    response = Mock(status_code=status_code, url="http+docker://localhost/x", reason="")
    return error_class(explanation, response=response, explanation=explanation)


@pytest.fixture
def docker_client():
    client = MagicMock()
    client.api.create_container_from_config.return_value = {"Id": "abc123", "Warnings": []}
    return client


@pytest.fixture
def driver(docker_client):
    return DockerDriver(docker_client)


@pytest.fixture
def stats_payload():
    return {
        "precpu_stats": {
            "cpu_usage": {"total_usage": 100, "percpu_usage": [50, 50]},
            "system_cpu_usage": 1000,
            "online_cpus": 2,
        },
        "cpu_stats": {
            "cpu_usage": {"total_usage": 150, "percpu_usage": [75, 75]},
            "system_cpu_usage": 1100,
            "online_cpus": 2,
        },
        "memory_stats": {
            "usage": 50_000_000,
            "limit": 100_000_000,
            "stats": {"cache": 10_000_000},
        },
    }
