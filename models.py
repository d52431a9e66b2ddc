from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, List, Tuple, Any


class ContainerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    image: str  # e.g., "busybox:latest" or "user/app@sha256:<digest>"
    name: str = ""  # empty lets the engine pick one
    port_pair: Optional[Tuple[str, str]] = None  # (container_port, host_port), e.g. ("80/tcp", "8080")
    command: List[str] = []
    memory_limit: int = 0  # bytes, 0 is unlimited
    cpu_share: float = Field(0.0, allow_inf_nan=False)  # fraction of one core, e.g. 0.5
    network_mode: str = ""  # empty is the engine default
    env: List[str] = []  # ["KEY=VALUE", ...]


class ResizeRequest(BaseModel):
    memory_limit: int
    cpu_share: float = Field(allow_inf_nan=False)


class PushRequest(BaseModel):
    image: str
    auth_config: Optional[Dict[str, str]] = None


class PullRequest(BaseModel):
    image: str


class EngineCreateParams(BaseModel):
    """Body of the engine's container-create call"""

    name: Optional[str] = None
    body: Dict[str, Any]


class EngineUpdateParams(BaseModel):
    """Body of the engine's container-update call"""

    body: Dict[str, Any]


class CPUStats(BaseModel):
    total_usage: int = 0
    system_usage: int = 0
    online_cpus: int = 0
    percpu_usage: List[int] = []

    @classmethod
    def from_engine(cls, raw: Optional[Dict[str, Any]]) -> "CPUStats":
        """Parse a ``cpu_stats``/``precpu_stats`` block of a stats payload"""
        raw = raw or {}
        usage = raw.get("cpu_usage") or {}
        return cls(
            total_usage=usage.get("total_usage") or 0,
            system_usage=raw.get("system_cpu_usage") or 0,
            online_cpus=raw.get("online_cpus") or 0,
            percpu_usage=usage.get("percpu_usage") or [],
        )


class MemoryStats(BaseModel):
    usage: int = 0
    cache: int = 0
    limit: int = 0

    @classmethod
    def from_engine(cls, raw: Optional[Dict[str, Any]]) -> "MemoryStats":
        """Parse the ``memory_stats`` block of a stats payload"""
        raw = raw or {}
        return cls(
            usage=raw.get("usage") or 0,
            cache=(raw.get("stats") or {}).get("cache") or 0,
            limit=raw.get("limit") or 0,
        )


class ContainerHealth(BaseModel):
    cpu_percent: float = Field(0.0, description="0 .. 100 * cores")
    memory_percent: float = Field(0.0, description="working set over limit, not clamped")
