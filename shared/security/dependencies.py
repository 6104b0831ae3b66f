import structlog
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from .jwt_handler import Identity, TokenService
from .passwords import PasswordHasher

# Defines the expected header format (Bearer <token>)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


async def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    """Dependency to validate the bearer token and return the caller's identity."""
    # Same response whether the token is missing, malformed, forged or expired.
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    identity = tokens.verify(token)
    if identity is None:
        raise credentials_exception

    # Store in request state for downstream use (like rate limiting)
    request.state.identity = identity
    structlog.contextvars.bind_contextvars(user_id=identity.user_id)
    return identity
