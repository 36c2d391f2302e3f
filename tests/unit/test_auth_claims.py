from __future__ import annotations

import uuid

import jwt
import pytest

from adopte_chat.domain.value_objects.enums import Role
from adopte_chat.infrastructure.auth.claims import principal_from_claims
from adopte_chat.infrastructure.auth.hs256_verifier import HS256Verifier

SECRET = "unit-test-secret-that-is-long-enough-for-hs256"


def test_principal_from_claims():
    user_id = uuid.uuid4()

    principal = principal_from_claims({"sub": str(user_id), "role": "company"})

    assert principal.user_id == user_id
    assert principal.role == Role.COMPANY
    assert principal.is_admin is False


@pytest.mark.parametrize(
    "claims",
    [
        {"role": "STUDENT"},
        {"sub": "42", "role": "STUDENT"},
        {"sub": str(uuid.uuid4()), "role": "SUPERUSER"},
        {"sub": str(uuid.uuid4())},
    ],
)
def test_principal_from_bad_claims(claims):
    with pytest.raises(jwt.InvalidTokenError):
        principal_from_claims(claims)


@pytest.mark.asyncio
async def test_hs256_verifier_roundtrip():
    user_id = uuid.uuid4()
    token = jwt.encode({"sub": str(user_id), "role": "ADMIN"}, SECRET, algorithm="HS256")

    principal = await HS256Verifier(SECRET).verify(token)

    assert principal.user_id == user_id
    assert principal.is_admin is True


@pytest.mark.asyncio
async def test_hs256_verifier_rejects_wrong_secret():
    token = jwt.encode({"sub": str(uuid.uuid4()), "role": "ADMIN"}, SECRET, algorithm="HS256")

    with pytest.raises(jwt.InvalidSignatureError):
        await HS256Verifier(SECRET + "-other").verify(token)
