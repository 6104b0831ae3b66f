from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.errors import raise_for_failure
from shared.security import (
    Identity,
    PasswordHasher,
    TokenService,
    auth_rate_limit,
    get_current_user,
    get_password_hasher,
    get_token_service,
    limiter,
)

from .schemas import AuthResponse, UserCreate, UserLogin, UserResponse
from .service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=AuthResponse,
    summary="Register a new user account and receive a token",
)
@limiter.limit(auth_rate_limit)
async def register(
    request: Request,  # slowapi needs this to check IP/Headers
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
):
    result = await AuthService.register(db, hasher, tokens, payload.email, payload.password)
    return raise_for_failure(result)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Authenticate and receive a JWT access token",
)
@limiter.limit(auth_rate_limit)
async def login(
    request: Request,
    payload: UserLogin,
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
):
    result = await AuthService.login(db, hasher, tokens, payload.email, payload.password)
    return raise_for_failure(result)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get the current authenticated user's profile",
)
async def get_me(
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return raise_for_failure(await AuthService.get_profile(db, identity))
