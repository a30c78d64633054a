"""Rate limiting for lobby endpoints.

Uses SlowAPI to keep a single client from flooding lobby creation or
brute-forcing join codes. Each application builds its own limiter, so
counters are never shared between app instances.
"""

from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address

LimitCheck = Callable[[Request, Response], Awaitable[None]]

# Format: "requests/period" (e.g., "5/minute", "3/hour")
CREATE_LOBBY_LIMIT = "10/minute"
JOIN_LOBBY_LIMIT = "30/minute"

RATE_LIMITS = {
    "create_lobby": CREATE_LOBBY_LIMIT,
    "join_lobby": JOIN_LOBBY_LIMIT,
}


def create_limiter() -> Limiter:
    """Create a limiter keyed by client IP address."""
    return Limiter(key_func=get_remote_address)


def _create_limit_check(limiter: Limiter, limit_string: str, name: str) -> LimitCheck:
    async def _check_limit(request: Request, response: Response) -> None:
        pass

    # SlowAPI keys limits by module and function name, read at decoration time
    _check_limit.__name__ = f"_check_limit_{name}"
    return limiter.limit(limit_string)(_check_limit)


def create_limit_checks(limiter: Limiter) -> dict[str, LimitCheck]:
    """Decorate one check per named limit on the given limiter.

    Args:
        limiter: The application's limiter

    Returns:
        Mapping of limit name to an async check that raises RateLimitExceeded
    """
    return {
        name: _create_limit_check(limiter, limit_string, name)
        for name, limit_string in RATE_LIMITS.items()
    }


def create_rate_limit_dependency(name: str) -> Callable:
    """Create a rate limit dependency for use with FastAPI routes.

    Args:
        name: Key into RATE_LIMITS

    Returns:
        An async dependency that applies the application's check for ``name``
    """
    if name not in RATE_LIMITS:
        raise ValueError(f"Unknown rate limit: {name}")

    async def rate_limit_dependency(request: Request, response: Response) -> None:
        """Apply rate limiting to this request."""
        if not request.app.state.settings.rate_limiting_enabled:
            return

        await request.app.state.rate_limit_checks[name](request, response)

    return rate_limit_dependency


create_lobby_rate_limit = create_rate_limit_dependency("create_lobby")
join_lobby_rate_limit = create_rate_limit_dependency("join_lobby")
