"""
Timing helpers for external calls made by the session agent.
"""
import time
import logging
import functools
from contextlib import contextmanager

# Configure logging
logger = logging.getLogger(__name__)

@contextmanager
def timer(name: str, log_level: int = logging.DEBUG):
    """
    Context manager for timing code blocks.

    Logs the elapsed time even when the block raises.

    Args:
        name: Name of the operation being timed
        log_level: Logging level to use (default: DEBUG)

    Example:
        with timer("judge0_submit"):
            await provider.submit(code, "python", "")
    """
    start_time = time.perf_counter()
    try:
        yield
    finally:
        elapsed_time = time.perf_counter() - start_time
        logger.log(log_level, f"TIMER - {name}: {elapsed_time:.4f} seconds")

def async_timed(log_level: int = logging.INFO):
    """
    Decorator that logs the execution time of a coroutine function.

    Args:
        log_level: Logging level to use (default: INFO)
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            with timer(func.__qualname__, log_level=log_level):
                return await func(*args, **kwargs)
        return wrapper
    return decorator
