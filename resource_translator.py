"""
Resource Translator Module

Turns a ContainerConfig into the engine's create/update request bodies.
Pure functions: no engine calls and no validation. Out-of-range values are
passed through for the engine to accept or reject.
"""

import math
from models import ContainerConfig, EngineCreateParams, EngineUpdateParams

NANO_CPUS_PER_CPU = math.pow(10, 9)


def nano_cpus(cpu_share: float):
    """Convert a fraction of a core (e.g. 0.5) to the engine's NanoCpus unit.

    NaN and infinities have no integer form; they are forwarded as-is and the
    engine rejects the request body.
    """
    if not math.isfinite(cpu_share):
        return cpu_share
    return int(round(cpu_share * NANO_CPUS_PER_CPU))


def cpu_share_from_nano_cpus(value: int) -> float:
    """Inverse of nano_cpus()"""
    return value / NANO_CPUS_PER_CPU


def _port_key(container_port: str) -> str:
    # the engine keys port maps as "<port>/<proto>" and defaults to tcp
    if "/" in container_port:
        return container_port
    return f"{container_port}/tcp"


def translate_ports(port_pair):
    """Return (ExposedPorts, PortBindings) for an optional (container, host) pair"""
    if not port_pair or not any(port_pair):
        return {}, {}

    container_port, host_port = port_pair
    key = _port_key(container_port)
    return {key: {}}, {key: [{"HostIp": "", "HostPort": host_port}]}


def translate(config: ContainerConfig) -> EngineCreateParams:
    """Build the container-create body for ``config``"""
    exposed_ports, port_bindings = translate_ports(config.port_pair)

    host_config = {
        "Memory": config.memory_limit,
        "NanoCpus": nano_cpus(config.cpu_share),
        "NetworkMode": config.network_mode,
        "PortBindings": port_bindings,
    }

    body = {
        "Image": config.image,
        "Cmd": list(config.command) or None,
        "Env": list(config.env),
        "Tty": True,
        "ExposedPorts": exposed_ports,
        "HostConfig": host_config,
    }

    return EngineCreateParams(name=config.name or None, body=body)


def translate_resize(memory_limit: int, cpu_share: float) -> EngineUpdateParams:
    """Build the container-update body for a live resize"""
    return EngineUpdateParams(
        body={
            "Memory": memory_limit,
            "NanoCpus": nano_cpus(cpu_share),
        }
    )
