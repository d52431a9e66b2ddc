"""
Docker Driver Module - Main API Interface

Combines the specialized modules into the single driver object the
orchestrator-facing layer talks to:

- resource_translator.py: ContainerConfig -> engine create/update bodies
- health_metrics.py: CPU/memory utilization from stats counters
- engine_stream.py: build/pull/push response streams
- container_operations.py: container lifecycle
- image_operations.py: image management
- engine_client.py: client construction and error classification
"""

from container_operations import ContainerOperations
from image_operations import ImageOperations
from engine_client import create_engine_client, engine_errors


class DockerDriver(ContainerOperations, ImageOperations):
    """Container and image lifecycle driver bound to one engine client.

    The client is created once and injected; the driver keeps no other state.
    """

    def __init__(self, client):
        self.client = client

    @classmethod
    def from_env(cls):
        return cls(create_engine_client())

    def ping(self) -> bool:
        with engine_errors("ping", "engine"):
            return self.client.api.ping()

    def close(self):
        self.client.close()


__all__ = ["DockerDriver"]
