# academy/core/cache_decorators.py
"""Cache decorators for FastAPI endpoints."""
import functools
from typing import Callable
from .cache import cache_manager

# Keyword arguments that identify the caller or the connection, not the query
UNCACHED_KWARGS = {'request', 'db', 'session', 'current_admin', 'current_student'}


def cache_response(key_prefix: str, ttl: int = 300, include_params: bool = True):
    """Cache decorator for FastAPI endpoints."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            key_parts = [key_prefix]

            if include_params:
                for key, value in sorted(kwargs.items()):
                    if key not in UNCACHED_KWARGS:
                        key_parts.append(f"{key}={value}")

            cache_key = cache_manager.make_key(*key_parts)

            cached_result = await cache_manager.get(cache_key)
            if cached_result is not None:
                return cached_result

            result = await func(*args, **kwargs)
            await cache_manager.set(cache_key, result, ttl=ttl)
            return result

        return wrapper
    return decorator


def invalidate_cache_pattern(pattern: str):
    """Decorator to invalidate cache patterns after function execution."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            result = await func(*args, **kwargs)
            await cache_manager.delete_pattern(pattern)
            return result
        return wrapper
    return decorator
