"""访问令牌签发、解析与续期测试"""

import time
from datetime import timedelta

import pytest
from conftest import make_account
from jose import jwt

from englishhub.app.core.config import settings
from englishhub.app.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    refresh_access_token,
    verify_password,
)
from englishhub.app.models.account import AccountRole

API = "/api/v1"


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = get_password_hash("secret123")

        assert hashed != "secret123"
        assert verify_password("secret123", hashed) is True
        assert verify_password("wrong", hashed) is False


class TestAccessToken:
    """令牌载荷只含 sub、role 与 exp"""

    def test_round_trip(self):
        token = create_access_token(42, AccountRole.TEACHER)

        payload = decode_access_token(token)

        assert payload is not None
        assert payload.sub == "42"
        assert payload.account_id == 42
        assert payload.role == AccountRole.TEACHER
        assert payload.exp > time.time()

    def test_claims_are_exactly_sub_role_exp(self):
        token = create_access_token(7, AccountRole.LEARNER)

        claims = jwt.get_unverified_claims(token)

        assert set(claims) == {"sub", "role", "exp"}
        assert claims["role"] == "learner"

    def test_garbage_and_tampered_tokens(self):
        header, _, signature = create_access_token(1, AccountRole.LEARNER).split(".")
        _, admin_claims, _ = create_access_token(1, AccountRole.ADMIN).split(".")

        assert decode_access_token("not-a-jwt") is None
        assert decode_access_token(f"{header}.{admin_claims}.{signature}") is None

    def test_token_signed_with_other_secret(self):
        token = jwt.encode(
            {"sub": "1", "role": "admin", "exp": int(time.time()) + 60},
            "another-secret",
            algorithm=settings.jwt_algorithm,
        )

        assert decode_access_token(token) is None

    def test_expired_token(self):
        token = create_access_token(1, AccountRole.LEARNER, timedelta(seconds=-1))

        assert decode_access_token(token) is None

    @pytest.mark.parametrize(
        "claims",
        [
            {"sub": "abc", "role": "learner"},
            {"sub": "1", "role": "superuser"},
            {"role": "learner"},
        ],
    )
    def test_malformed_payload(self, claims):
        claims = {**claims, "exp": int(time.time()) + 600}
        token = jwt.encode(
            claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm
        )

        assert decode_access_token(token) is None


class TestRefresh:
    """有效期过半才续期"""

    def test_fresh_token_is_not_refreshed(self):
        payload = decode_access_token(create_access_token(3, AccountRole.LEARNER))

        assert refresh_access_token(payload) is None

    def test_short_lived_token_is_refreshed(self):
        payload = decode_access_token(
            create_access_token(3, AccountRole.LEARNER, timedelta(minutes=1))
        )

        new_token = refresh_access_token(payload)

        assert new_token is not None
        renewed = decode_access_token(new_token)
        assert renewed.account_id == 3
        assert renewed.role == AccountRole.LEARNER
        assert renewed.exp > payload.exp

    @pytest.mark.asyncio
    async def test_middleware_returns_new_token_header(self, client, session):
        learner = await make_account(session, AccountRole.LEARNER)
        await session.commit()

        fresh = create_access_token(learner.id, learner.role)
        response = await client.get(
            f"{API}/auth/me", headers={"Authorization": f"Bearer {fresh}"}
        )
        assert response.status_code == 200
        assert "x-new-token" not in response.headers

        aging = create_access_token(learner.id, learner.role, timedelta(minutes=1))
        response = await client.get(
            f"{API}/auth/me", headers={"Authorization": f"Bearer {aging}"}
        )
        assert response.status_code == 200
        renewed = decode_access_token(response.headers["x-new-token"])
        assert renewed.account_id == learner.id
