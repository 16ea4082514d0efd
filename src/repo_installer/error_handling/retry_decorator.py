"""
Retry decorator for git operations that talk to a remote.
"""

import time
import random
import logging
from functools import wraps
from typing import Callable, Type, Tuple, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True
    exceptions: Tuple[Type[Exception], ...] = (Exception,)
    # further narrows which of those exceptions are worth another attempt
    retry_if: Optional[Callable[[Exception], bool]] = None

    def delay_for(self, attempt: int) -> float:
        """Backoff delay after the given zero-based attempt."""
        delay = min(self.base_delay * (self.exponential_base ** attempt), self.max_delay)
        if self.jitter:
            delay *= (0.5 + random.random() * 0.5)
        return delay


def retry(config: Optional[RetryConfig] = None, **overrides):
    """
    Retry decorator with exponential backoff and jitter.
    
    Only exceptions listed in ``config.exceptions`` (and accepted by
    ``config.retry_if`` when set) are retried; anything else propagates
    immediately. After the last attempt the final exception is
    re-raised unchanged.
    
    Args:
        config: Retry behavior (defaults to RetryConfig())
        **overrides: Individual RetryConfig fields to override
    """
    if config is None:
        config = RetryConfig(**overrides)
    elif overrides:
        config = RetryConfig(**{**config.__dict__, **overrides})

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(config.max_attempts):
                try:
                    return func(*args, **kwargs)
                except config.exceptions as e:
                    if config.retry_if is not None and not config.retry_if(e):
                        raise
                    if attempt == config.max_attempts - 1:
                        logger.error(f"All {config.max_attempts} attempts failed for {func.__name__}")
                        raise
                    
                    delay = config.delay_for(attempt)
                    logger.warning(
                        f"Attempt {attempt + 1}/{config.max_attempts} failed for {func.__name__}: {e}. "
                        f"Retrying in {delay:.2f} seconds..."
                    )
                    time.sleep(delay)
        
        return wrapper
    return decorator
