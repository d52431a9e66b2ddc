"""
Container Operations Module

Container lifecycle transitions on the engine: create, start, stop, restart,
resize, remove, listing and health sampling.

    Absent -> Created -> Running -> {Stopped, Removed}

Resize and restart keep a Running container Running. Nothing is cached
between calls; the engine is the only source of container state.
"""

from typing import List
from models import ContainerConfig, ContainerHealth
from resource_translator import translate, translate_resize
from health_metrics import compute_health
from engine_client import engine_errors, CREATE_ERRORS
from utils import logger, log_container_operation, NotRunning


class ContainerOperations:
    """Container lifecycle on top of an injected docker client"""

    def __init__(self, client):
        self.client = client

    @property
    def api(self):
        return self.client.api

    def create(self, config: ContainerConfig) -> str:
        """Create (but do not start) a container and return its handle"""
        params = translate(config)
        logger.info("Creating container", image=config.image, name=config.name)

        with engine_errors("create", config.name or config.image, CREATE_ERRORS):
            resp = self.api.create_container_from_config(params.body, name=params.name)

        handle = resp["Id"]
        for warning in resp.get("Warnings") or []:
            logger.warning("Engine warning on create", container_id=handle, warning=warning)

        log_container_operation("create", handle, "success", {"image": config.image})
        return handle

    def start(self, handle: str):
        """Start a created or stopped container"""
        with engine_errors("start", handle):
            self.api.start(handle)
        log_container_operation("start", handle, "success")

    def run(self, config: ContainerConfig) -> str:
        """Create and start a container in one call"""
        handle = self.create(config)
        self.start(handle)
        return handle

    def stop(self, handle: str):
        """Stop a running container.

        The engine answers 304 for an already stopped container, which the
        docker SDK treats as success.
        """
        with engine_errors("stop", handle):
            self.api.stop(handle)
        log_container_operation("stop", handle, "success")

    def restart(self, handle: str):
        """Restart a running or stopped container (new process generation)"""
        with engine_errors("restart", handle):
            self.api.restart(handle)
        log_container_operation("restart", handle, "success")

    def resize(self, handle: str, memory_limit: int, cpu_share: float):
        """Change memory and CPU limits of a live container"""
        params = translate_resize(memory_limit, cpu_share)

        # update_container() has no NanoCpus parameter, post the body ourselves
        with engine_errors("resize", handle):
            res = self.api._post_json(
                self.api._url("/containers/{0}/update", handle), data=params.body
            )
            self.api._result(res, True)

        log_container_operation("resize", handle, "success", params.body)

    def remove(self, handle: str):
        """Remove a stopped or created container.

        A running container is not force-removed; the engine's conflict
        surfaces as NotRunning and the caller has to stop it first.
        """
        with engine_errors("remove", handle):
            self.api.remove_container(handle)
        log_container_operation("remove", handle, "success")

    def list_running_containers(self) -> List[str]:
        with engine_errors("list_containers", "all"):
            containers = self.api.containers()
        return [container["Id"] for container in containers]

    def check_health(self, handle: str) -> ContainerHealth:
        """CPU and memory utilization of a running container.

        One stats call returns both the current and the previous sample.
        """
        with engine_errors("check_health", handle):
            state = self.api.inspect_container(handle)["State"]
            if not state.get("Running"):
                raise NotRunning(f"Container {handle} is not running")
            raw_stats = self.api.stats(handle, stream=False)

        health = compute_health(raw_stats)
        logger.debug(
            "Container health",
            container_id=handle,
            cpu_percent=health.cpu_percent,
            memory_percent=health.memory_percent,
        )
        return health
