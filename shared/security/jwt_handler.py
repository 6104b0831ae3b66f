from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from jose import JWTError, jwt

from shared.config.settings import ConfigurationError

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = 7
MIN_SECRET_BYTES = 32
ISSUER = "storefront"
AUDIENCE = "storefront"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as proven by a bearer token."""
    user_id: int
    email: str


class TokenService:
    """Issues and verifies HS256 access tokens.

    The secret must be at least 32 bytes; construction fails otherwise so the
    application refuses to start instead of signing with a weak key.
    """

    def __init__(
        self,
        secret: Optional[str],
        lifetime: timedelta = timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS),
        clock: Callable[[], datetime] = utc_now,
    ):
        if not secret:
            raise ConfigurationError("FATAL ERROR: JWT_SECRET_KEY is not set in the environment!")
        if len(secret.encode("utf-8")) < MIN_SECRET_BYTES:
            raise ConfigurationError(
                f"JWT_SECRET_KEY must be at least {MIN_SECRET_BYTES} bytes long"
            )
        self._secret = secret
        self._lifetime = lifetime
        self._clock = clock

    def issue(self, user) -> str:
        """Creates a signed token for ``user`` (anything with ``id`` and ``email``)."""
        issued_at = self._clock()
        expire = issued_at + self._lifetime
        claims = {
            "sub": str(user.id),
            "email": user.email,
            "iss": ISSUER,
            "aud": AUDIENCE,
            "iat": int(issued_at.timestamp()),
            # Not truncated; T + lifetime is the exact expiry instant.
            "exp": expire.timestamp(),
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> Optional[Identity]:
        """Returns the token's identity, or None if it is invalid or expired."""
        if not token:
            return None
        try:
            # Expiry is checked below against our own clock, with no leeway.
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                audience=AUDIENCE,
                issuer=ISSUER,
                options={
                    "verify_exp": False,
                    "require_exp": True,
                    "require_sub": True,
                    "require_iss": True,
                    "require_aud": True,
                },
            )
        except JWTError:
            return None

        exp = payload.get("exp")
        if not isinstance(exp, (int, float)) or self._clock().timestamp() >= exp:
            return None

        email = payload.get("email")
        if not isinstance(email, str) or not email:
            return None

        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            return None

        return Identity(user_id=user_id, email=email)
