"""Tests for bearer token -> Identity verification."""

import jwt
import pytest

from farmtrace.core.config import Settings
from farmtrace.core.security import decode_token, identity_from_claims
from farmtrace.domain.errors import UnauthorizedError
from farmtrace.domain.models.identity import Role

SETTINGS = Settings(_env_file=None, JWT_SECRET_KEY="test-secret-0123456789abcdefghijkl")


class TestIdentityFromClaims:

    @pytest.mark.parametrize("raw,role", [
        ("producer", Role.PRODUCER),
        ("Validator", Role.VALIDATOR),
        ("quality-inspector", Role.QUALITY_INSPECTOR),
        ("retailer", Role.RETAILER),
    ])
    def test_known_roles(self, raw, role):
        identity = identity_from_claims({"sub": "u1", "role": raw})
        assert identity.user_id == "u1"
        assert identity.role == role

    @pytest.mark.parametrize("claims", [
        {"sub": "u1"},
        {"sub": "u1", "role": "admin"},
        {"sub": "u1", "role": None},
        {"sub": "u1", "role": 123},
        {"sub": "u1", "role": ["validator"]},
        {"role": "producer"},
        {"sub": "", "role": "producer"},
    ])
    def test_incomplete_claims(self, claims):
        with pytest.raises(UnauthorizedError):
            identity_from_claims(claims)


class TestDecodeToken:

    def test_valid(self):
        encoded = jwt.encode({"sub": "u1", "role": "consumer"}, "test-secret-0123456789abcdefghijkl", algorithm="HS256")
        assert decode_token(encoded, SETTINGS)["role"] == "consumer"

    def test_wrong_secret(self):
        encoded = jwt.encode({"sub": "u1", "role": "consumer"}, "other-secret-0123456789abcdefghijkl", algorithm="HS256")
        with pytest.raises(UnauthorizedError, match="Invalid token"):
            decode_token(encoded, SETTINGS)

    def test_garbage(self):
        with pytest.raises(UnauthorizedError):
            decode_token("not.a.jwt", SETTINGS)
