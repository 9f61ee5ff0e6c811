"""Performance report endpoint:
    GET  /api/v1/performance
"""

from __future__ import annotations

import logging
import os
import threading

import psutil

from fastapi import APIRouter

from taxengine.models.schemas import PerformanceResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1",
    tags=["Performance"],
)

_last_response_time_ms: float = 0.0  # updated by the timing middleware


def record_response_time(elapsed_ms: float) -> None:
    """Called by the timing middleware after every request."""
    global _last_response_time_ms
    _last_response_time_ms = elapsed_ms


def format_elapsed(total_ms: float) -> str:
    """Milliseconds → HH:mm:ss.SSS."""
    hours, remainder = divmod(int(total_ms // 1000), 3600)
    minutes, secs = divmod(remainder, 60)
    millis = int(total_ms % 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"


def process_memory_mb() -> float:
    """Resident set size of this process in MB."""
    return psutil.Process(os.getpid()).memory_info().rss / (1024 * 1024)


@router.get(
    "/performance",
    response_model=PerformanceResponse,
    summary="System performance metrics",
)
async def performance_report() -> PerformanceResponse:
    """Return last response time, memory usage, and active thread count."""
    return PerformanceResponse(
        time=format_elapsed(_last_response_time_ms),
        memory=f"{process_memory_mb():.2f} MB",
        threads=threading.active_count(),
    )
