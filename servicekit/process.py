"""Process metadata for health and info endpoints."""

from __future__ import annotations

import os
import time
from datetime import datetime, timezone

import psutil


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def uptime_seconds() -> float:
    """Seconds since this process was created."""
    created = psutil.Process(os.getpid()).create_time()
    return max(0.0, time.time() - created)


def memory_usage() -> dict[str, int]:
    """Resident and virtual memory size of this process, in bytes."""
    info = psutil.Process(os.getpid()).memory_info()
    return {"rss": info.rss, "vms": info.vms}


def cpu_usage() -> dict[str, int]:
    """User and system CPU time consumed by this process, in microseconds."""
    times = psutil.Process(os.getpid()).cpu_times()
    return {
        "user": int(times.user * 1_000_000),
        "system": int(times.system * 1_000_000),
    }
