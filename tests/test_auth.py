# =============================================================================
# tests/test_auth.py - Registration, login and bearer authentication
# =============================================================================

from dataclasses import replace

import pytest
from sqlalchemy import delete, func, select

from helpers import bearer, register
from services.auth_service.models import User
from services.auth_service.service import AuthResult, AuthService
from shared.config.database import AsyncSessionLocal
from shared.config.settings import settings
from shared.errors import ErrorKind, Failure
from shared.security import limiter, rate_limiter


async def count_users(email=None):
    async with AsyncSessionLocal() as session:
        query = select(func.count()).select_from(User)
        if email:
            query = query.where(User.email == email)
        return (await session.execute(query)).scalar_one()


class TestRegister:

    async def test_register_returns_token_and_email(self, client, token_service):
        resp = await client.post(
            "/auth/register", json={"email": "alice@example.com", "password": "s3cret-pass"}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["email"] == "alice@example.com"
        identity = token_service.verify(body["token"])
        assert identity is not None
        assert identity.email == "alice@example.com"
        assert await count_users() == 1

    async def test_password_is_hashed(self, client):
        await register(client, "alice@example.com", "s3cret-pass")
        async with AsyncSessionLocal() as session:
            user = (await session.execute(select(User))).scalars().one()
        assert user.password_hash != "s3cret-pass"
        assert user.password_hash.startswith("$2")

    async def test_duplicate_email_conflicts(self, client):
        await register(client, "alice@example.com")
        resp = await client.post(
            "/auth/register", json={"email": "alice@example.com", "password": "other-pass"}
        )
        assert resp.status_code == 409
        assert await count_users("alice@example.com") == 1

    async def test_duplicate_email_is_case_insensitive(self, client):
        await register(client, "alice@example.com")
        resp = await client.post(
            "/auth/register", json={"email": "Alice@Example.com", "password": "other-pass"}
        )
        assert resp.status_code == 409
        assert await count_users() == 1

    async def test_missing_fields(self, client):
        assert (await client.post("/auth/register", json={"email": "a@example.com"})).status_code == 400
        assert (await client.post("/auth/register", json={"password": "x"})).status_code == 400
        assert (
            await client.post("/auth/register", json={"email": "a@example.com", "password": ""})
        ).status_code == 400
        assert await count_users() == 0

    async def test_blank_credentials_rejected_by_service(self, db, hasher, token_service):
        result = await AuthService.register(db, hasher, token_service, "  ", "pw")
        assert result == Failure(ErrorKind.MALFORMED_INPUT, "Email and password are required")
        result = await AuthService.register(db, hasher, token_service, "a@example.com", "   ")
        assert isinstance(result, Failure)
        assert result.kind is ErrorKind.MALFORMED_INPUT


class TestLogin:

    async def test_register_then_login_same_subject(self, client, token_service):
        register_token = await register(client, "alice@example.com", "s3cret-pass")
        resp = await client.post(
            "/auth/login", json={"email": "alice@example.com", "password": "s3cret-pass"}
        )
        assert resp.status_code == 200
        assert resp.json()["email"] == "alice@example.com"
        login_identity = token_service.verify(resp.json()["token"])
        assert login_identity == token_service.verify(register_token)

    async def test_wrong_password_and_unknown_email_look_the_same(self, client):
        await register(client, "alice@example.com", "s3cret-pass")
        wrong_password = await client.post(
            "/auth/login", json={"email": "alice@example.com", "password": "nope"}
        )
        unknown_email = await client.post(
            "/auth/login", json={"email": "nobody@example.com", "password": "s3cret-pass"}
        )
        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()

    async def test_login_writes_nothing(self, client):
        await register(client, "alice@example.com", "s3cret-pass")
        await client.post("/auth/login", json={"email": "alice@example.com", "password": "s3cret-pass"})
        await client.post("/auth/login", json={"email": "alice@example.com", "password": "bad"})
        assert await count_users() == 1

    async def test_missing_fields(self, client):
        resp = await client.post("/auth/login", json={"email": "alice@example.com"})
        assert resp.status_code == 400

    async def test_unregistered_odd_email_is_unauthenticated(self, client):
        resp = await client.post("/auth/login", json={"email": "not-an-email", "password": "pw"})
        assert resp.status_code == 401

    async def test_service_results(self, db, hasher, token_service):
        created = await AuthService.register(db, hasher, token_service, "carol@example.com", "pw-123456")
        assert isinstance(created, AuthResult)
        bad = await AuthService.login(db, hasher, token_service, "carol@example.com", "wrong")
        missing = await AuthService.login(db, hasher, token_service, "dave@example.com", "pw-123456")
        assert bad == missing
        assert bad.kind is ErrorKind.UNAUTHENTICATED


class TestBearer:

    async def test_me(self, client, alice_token):
        resp = await client.get("/auth/me", headers=bearer(alice_token))
        assert resp.status_code == 200
        assert resp.json()["email"] == "alice@example.com"

    async def test_unauthenticated_responses_are_identical(self, client, alice_token):
        missing = await client.get("/auth/me")
        garbage = await client.get("/auth/me", headers=bearer("garbage"))
        forged = alice_token.rsplit(".", 1)[0] + ".bm90LXRoZS1zaWduYXR1cmU"
        tampered = await client.get("/auth/me", headers=bearer(forged))
        for resp in (missing, garbage, tampered):
            assert resp.status_code == 401
            assert resp.headers["WWW-Authenticate"] == "Bearer"
        assert missing.json() == garbage.json() == tampered.json()

    async def test_me_for_deleted_user(self, client, alice_token):
        async with AsyncSessionLocal() as session:
            await session.execute(delete(User))
            await session.commit()
        resp = await client.get("/auth/me", headers=bearer(alice_token))
        assert resp.status_code == 404


class TestRateLimit:

    @pytest.fixture
    def strict_limit(self, monkeypatch):
        monkeypatch.setattr(rate_limiter, "settings", replace(settings, auth_rate_limit="2/minute"))
        monkeypatch.setattr(limiter, "enabled", True)
        limiter.reset()
        yield
        limiter.reset()

    async def test_login_throttled(self, client, strict_limit):
        payload = {"email": "nobody@example.com", "password": "pw"}
        statuses = [(await client.post("/auth/login", json=payload)).status_code for _ in range(3)]
        assert statuses == [401, 401, 429]

    async def test_register_throttled(self, client, strict_limit):
        statuses = []
        for i in range(3):
            resp = await client.post(
                "/auth/register", json={"email": f"user{i}@example.com", "password": "s3cret-pass"}
            )
            statuses.append(resp.status_code)
        assert statuses == [200, 200, 429]
