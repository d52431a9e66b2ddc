"""
Health Metrics Module

CPU and memory utilization computed from the engine's cumulative stats
counters, following the docker CLI's stats calculations.
"""

from typing import Any, Dict
from models import CPUStats, MemoryStats, ContainerHealth


def compute_cpu_percent(previous: CPUStats, current: CPUStats) -> float:
    """CPU utilization between two samples, 100.0 per fully used core.

    Returns 0.0 whenever either delta is not positive (first sample, counter
    reset, clock skew) instead of raising or going negative.
    """
    cpu_delta = float(current.total_usage) - float(previous.total_usage)
    system_delta = float(current.system_usage) - float(previous.system_usage)
    online_cpus = float(current.online_cpus)

    if online_cpus == 0.0:
        online_cpus = float(len(current.percpu_usage))

    if system_delta > 0.0 and cpu_delta > 0.0:
        return (cpu_delta / system_delta) * online_cpus * 100.0
    return 0.0


def compute_memory_percent(stats: MemoryStats) -> float:
    """Working set (usage minus page cache) as a percentage of the limit.

    An unlimited container (limit 0) reports 0.0. Values above 100 are kept.
    """
    usage = float(stats.usage) - float(stats.cache)
    limit = float(stats.limit)

    if limit == 0.0:
        return 0.0
    return (usage / limit) * 100.0


def compute_health(raw_stats: Dict[str, Any]) -> ContainerHealth:
    """Apply both calculators to one engine stats payload"""
    previous = CPUStats.from_engine(raw_stats.get("precpu_stats"))
    current = CPUStats.from_engine(raw_stats.get("cpu_stats"))
    memory = MemoryStats.from_engine(raw_stats.get("memory_stats"))

    return ContainerHealth(
        cpu_percent=compute_cpu_percent(previous, current),
        memory_percent=compute_memory_percent(memory),
    )
