"""
Retry decorators with exponential backoff.
"""
import time
from functools import wraps
from typing import Callable, TypeVar, Any
import config
from utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


def retry_with_backoff(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: tuple = (Exception,)
):
    """
    Decorator for retrying function calls with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts, including the first one
        base_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        exponential_base: Base for exponential backoff
        exceptions: Tuple of exceptions to catch and retry
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            delay = base_delay
            attempt = 1
            while True:
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_attempts:
                        logger.error(
                            f"Function {func.__name__} failed after {max_attempts} attempts: {e}"
                        )
                        raise
                    logger.warning(
                        f"Function {func.__name__} failed (attempt {attempt}/{max_attempts}): {e}. "
                        f"Retrying in {min(delay, max_delay):.2f}s..."
                    )
                    time.sleep(min(delay, max_delay))
                    delay *= exponential_base
                    attempt += 1

        return wrapper
    return decorator


def database_retry(func: Callable[..., T]) -> Callable[..., T]:
    """
    Retry decorator specifically for database operations.
    Uses configuration from config.py.
    """
    from sqlalchemy.exc import OperationalError, DisconnectionError

    return retry_with_backoff(
        max_attempts=config.config.DATABASE_RETRY_ATTEMPTS,
        base_delay=config.config.DATABASE_RETRY_DELAY,
        exceptions=(OperationalError, DisconnectionError, ConnectionError)
    )(func)
