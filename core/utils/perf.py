import time
import functools
import asyncio
import logging

logger = logging.getLogger(__name__)


def profile_stage(stage_name: str):
    """Log how long a provider call takes. Only coroutines are wrapped."""
    def decorator(func):
        if not asyncio.iscoroutinefunction(func):
            raise TypeError(f"profile_stage expects a coroutine function, got {func!r}")

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            t0 = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                logger.info(f"[PERF] {stage_name}: {(time.perf_counter() - t0)*1000:.1f} ms")
        return wrapper
    return decorator
