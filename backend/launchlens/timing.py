"""
Timing Utilities for Latency Instrumentation

Context managers for logging execution times of pipeline steps and
upstream API calls.
"""

import logging
import time
from contextlib import asynccontextmanager, contextmanager
from typing import Optional

logger = logging.getLogger("launchlens.timing")


def log_timing(step_name: str, action: str, duration_ms: Optional[float] = None):
    """Log a timing event in standard format."""
    if duration_ms is not None:
        logger.info("[TIMING] %s: %s — duration=%.0fms", step_name, action, duration_ms)
    else:
        logger.info("[TIMING] %s: %s", step_name, action)


@contextmanager
def sync_timer(step_name: str, action: str = "OPERATION"):
    """Synchronous context manager for timing operations."""
    log_timing(step_name, f"{action} START")
    start = time.perf_counter()
    try:
        yield
    finally:
        duration_ms = (time.perf_counter() - start) * 1000
        log_timing(step_name, f"{action} END", duration_ms)


@asynccontextmanager
async def async_timer(step_name: str, action: str = "OPERATION"):
    """Async context manager for timing operations."""
    log_timing(step_name, f"{action} START")
    start = time.perf_counter()
    try:
        yield
    finally:
        duration_ms = (time.perf_counter() - start) * 1000
        log_timing(step_name, f"{action} END", duration_ms)
