"""
TTL caching for GitHub API responses.

Provides in-memory caching with time-to-live for lookups that are repeated
on every request but change rarely, such as resolving the user behind a
bearer token.

Cache keys include a hash of the calling instance's token so results are
never shared between different GitHub identities.
"""

import hashlib
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar

from cachetools import TTLCache  # type: ignore[import-untyped]

from app.services.github.constants import USER_CACHE_TTL

logger = logging.getLogger(__name__)

# Type vars for decorator typing
P = ParamSpec("P")
T = TypeVar("T")

_user_cache: TTLCache[str, Any] = TTLCache(maxsize=500, ttl=USER_CACHE_TTL)


def _make_cache_key(func_name: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
    """
    Generate a cache key from function name, token identity and arguments.

    The first positional arg is the instance; its token is hashed into the
    key rather than stored.
    """
    instance = args[0] if args else None
    token = getattr(instance, "token", "") or ""
    token_hash = hashlib.sha256(token.encode()).hexdigest()
    cache_args = args[1:] if args else ()
    key_data = f"{func_name}:{token_hash}:{cache_args}:{sorted(kwargs.items())}"
    return hashlib.sha256(key_data.encode()).hexdigest()


def cached_github_call(
    cache: TTLCache[str, Any],
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """
    Decorator for caching async GitHub API calls.

    Usage:
        @cached_github_call(user_cache)
        async def get_authenticated_user(self) -> GitHubUser:
            ...

    On cache hit, returns immediately without making an API call.
    Errors are never cached.
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            key = _make_cache_key(func.__name__, args, kwargs)

            if key in cache:
                logger.debug(f"Cache HIT: {func.__name__}")
                cached_result: T = cache[key]
                return cached_result

            logger.debug(f"Cache MISS: {func.__name__}")
            result = await func(*args, **kwargs)
            cache[key] = result
            return result

        return wrapper

    return decorator


def clear_all_caches() -> None:
    """Clear all GitHub caches. Useful for testing or when data is known to be stale."""
    _user_cache.clear()
    logger.debug("Cleared all GitHub caches")


# Export cache instances for decorator use
user_cache = _user_cache
