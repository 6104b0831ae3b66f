"""
Registration and login.

Both operations return a ``Failure`` for rejected input instead of raising.
Login answers with the same failure for an unknown email and for a wrong
password so callers can't probe which accounts exist.
"""
from dataclasses import dataclass
from typing import Union

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import ErrorKind, Failure
from shared.observability import shop_auth_attempts_total
from shared.security import Identity, PasswordHasher, TokenService

from .models import User
from .repository import UserRepository

logger = structlog.get_logger(__name__)

MISSING_CREDENTIALS = Failure(ErrorKind.MALFORMED_INPUT, "Email and password are required")
EMAIL_TAKEN = Failure(ErrorKind.CONFLICT, "Email already registered")
INVALID_CREDENTIALS = Failure(ErrorKind.UNAUTHENTICATED, "Invalid credentials")
USER_NOT_FOUND = Failure(ErrorKind.NOT_FOUND, "User not found")


@dataclass(frozen=True)
class AuthResult:
    token: str
    email: str


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _record(action: str, result: Union[AuthResult, Failure]) -> None:
    outcome = result.kind.value if isinstance(result, Failure) else "success"
    shop_auth_attempts_total.labels(action=action, outcome=outcome).inc()


class AuthService:

    @staticmethod
    async def register(
        db: AsyncSession,
        hasher: PasswordHasher,
        tokens: TokenService,
        email: str,
        password: str,
    ) -> Union[AuthResult, Failure]:
        email = normalize_email(email)
        if not email or not password or not password.strip():
            _record("register", MISSING_CREDENTIALS)
            return MISSING_CREDENTIALS

        if await UserRepository.get_by_email(db, email) is not None:
            _record("register", EMAIL_TAKEN)
            return EMAIL_TAKEN

        user = User(email=email, password_hash=await hasher.hash_async(password))
        try:
            user = await UserRepository.create(db, user)
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email.
            await db.rollback()
            _record("register", EMAIL_TAKEN)
            return EMAIL_TAKEN

        logger.info("user_registered", user_id=user.id)
        result = AuthResult(token=tokens.issue(user), email=user.email)
        _record("register", result)
        return result

    @staticmethod
    async def login(
        db: AsyncSession,
        hasher: PasswordHasher,
        tokens: TokenService,
        email: str,
        password: str,
    ) -> Union[AuthResult, Failure]:
        email = normalize_email(email)
        if not email or not password or not password.strip():
            _record("login", MISSING_CREDENTIALS)
            return MISSING_CREDENTIALS

        user = await UserRepository.get_by_email(db, email)
        if user is None:
            await hasher.dummy_verify_async()
        if user is None or not await hasher.verify_async(password, user.password_hash):
            logger.info("login_rejected")
            _record("login", INVALID_CREDENTIALS)
            return INVALID_CREDENTIALS

        result = AuthResult(token=tokens.issue(user), email=user.email)
        _record("login", result)
        return result

    @staticmethod
    async def get_profile(db: AsyncSession, identity: Identity) -> Union[User, Failure]:
        user = await UserRepository.get_by_id(db, identity.user_id)
        if user is None:
            return USER_NOT_FOUND
        return user
