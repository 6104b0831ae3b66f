import asyncio

from passlib.context import CryptContext


class PasswordHasher:
    """Salted one-way password hashing (bcrypt via passlib)."""

    def __init__(self, schemes: tuple[str, ...] = ("bcrypt",)):
        self._context = CryptContext(schemes=list(schemes), deprecated="auto")

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, plain: str, hashed: str) -> bool:
        return self._context.verify(plain, hashed)

    # bcrypt is CPU-bound; keep it off the event loop.
    async def hash_async(self, password: str) -> str:
        return await asyncio.to_thread(self.hash, password)

    async def verify_async(self, plain: str, hashed: str) -> bool:
        return await asyncio.to_thread(self.verify, plain, hashed)

    async def dummy_verify_async(self) -> None:
        """Spend the same time as a real verify when there is no user to check."""
        await asyncio.to_thread(self._context.dummy_verify)
