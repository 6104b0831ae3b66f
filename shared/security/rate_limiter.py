from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from shared.config.settings import settings


def user_id_or_ip(request: Request) -> str:
    """
    Key function for SlowAPI.
    Extracts the user ID directly from the Authorization header if available.
    Falls back to the client's IP address if unauthenticated.
    """
    auth_header = request.headers.get("Authorization")
    tokens = getattr(request.app.state, "token_service", None)

    if tokens is not None and auth_header and auth_header.startswith("Bearer "):
        identity = tokens.verify(auth_header.split(" ", 1)[1])
        if identity is not None:
            return f"user:{identity.user_id}"

    # Fallback to IP address (handles proxies if X-Forwarded-For is set correctly by Uvicorn)
    return f"ip:{get_remote_address(request)}"


def auth_rate_limit() -> str:
    return settings.auth_rate_limit


limiter = Limiter(key_func=user_id_or_ip, enabled=settings.rate_limit_enabled)
