from .jwt_handler import Identity, TokenService
from .passwords import PasswordHasher
from .dependencies import get_current_user, get_password_hasher, get_token_service
from .rate_limiter import auth_rate_limit, limiter, user_id_or_ip

__all__ = [
    "Identity",
    "TokenService",
    "PasswordHasher",
    "get_current_user",
    "get_password_hasher",
    "get_token_service",
    "auth_rate_limit",
    "limiter",
    "user_id_or_ip"
]
