"""
Password hashing, tokens and validators
"""
from datetime import timedelta

import jwt
import pytest

from configs.auth_config import auth_config
from utils.exceptions import ValidationError
from utils.security import (
    create_access_token,
    decode_access_token,
    extract_token_from_header,
    hash_password,
    hash_reset_token,
    verify_password,
)
from utils.validators import generate_slug, is_valid_uuid, validate_uuid


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = hash_password("correct horse")
        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong horse", hashed)

    def test_missing_or_foreign_hash(self):
        assert not verify_password("secret", None)
        assert not verify_password("secret", "plain-text")


class TestTokens:

    def test_round_trip(self):
        token = create_access_token("u1", "jane", "jane@example.com", "admin")
        payload = decode_access_token(token)
        assert payload["id"] == "u1"
        assert payload["role"] == "admin"
        assert payload["is_admin"] is True

    def test_expired_token(self):
        token = create_access_token("u1", "jane", "jane@example.com", "customer",
                                    expires_delta=timedelta(seconds=-1))
        assert decode_access_token(token) is None

    def test_foreign_signature(self):
        token = jwt.encode({"id": "u1"}, "another-secret", algorithm=auth_config.jwt_algorithm)
        assert decode_access_token(token) is None

    @pytest.mark.parametrize("header, expected", [
        ("Bearer abc.def", "abc.def"),
        ("bearer abc.def", None),
        ("Bearer", None),
        ("Token abc", None),
        (None, None),
    ])
    def test_extract_token(self, header, expected):
        assert extract_token_from_header(header) == expected

    def test_reset_token_digest(self):
        digest = hash_reset_token("abc")
        assert len(digest) == 64
        assert digest == hash_reset_token("abc")
        assert digest != hash_reset_token("abd")


class TestValidators:

    @pytest.mark.parametrize("name, slug", [
        ("Silk Scarf", "silk-scarf"),
        ("  Hermès -- Birkin 30!  ", "herm-s-birkin-30"),
        ("Bags & Accessories", "bags-accessories"),
        ("", ""),
    ])
    def test_generate_slug(self, name, slug):
        assert generate_slug(name) == slug

    def test_uuid_is_canonicalised(self):
        value = "A1C9E7D2-5B6F-4F0E-8D3C-1B2A3C4D5E6F"
        assert validate_uuid(value) == value.lower()

    def test_invalid_uuid(self):
        assert not is_valid_uuid("123")
        assert not is_valid_uuid(None)
        with pytest.raises(ValidationError, match="Invalid product ID format"):
            validate_uuid("123", "Invalid product ID format")
