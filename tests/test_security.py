import base64
import json
import time

from linkshelf_api.app.core.config import Settings
from linkshelf_api.app.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    token_identity,
    verify_password,
)

CONFIG = Settings(secret_key="unit-secret")


def test_token_carries_email_and_seven_day_expiry():
    before = int(time.time())
    token = create_access_token({"email": "a@x.com"}, config=CONFIG)
    payload = decode_access_token(token, CONFIG)
    assert payload["email"] == "a@x.com"
    assert payload["exp"] - before >= 7 * 24 * 60 * 60 - 5
    assert payload["exp"] - before <= 7 * 24 * 60 * 60 + 5


def test_token_identity_returns_email():
    token = create_access_token({"email": "a@x.com"}, config=CONFIG)
    assert token_identity(token, CONFIG) == "a@x.com"


def test_expired_token_is_rejected():
    token = create_access_token({"email": "a@x.com"}, expires_delta=-10, config=CONFIG)
    assert decode_access_token(token, CONFIG) is None


def test_token_signed_with_other_secret_is_rejected():
    other = Settings(secret_key="someone-else")
    token = create_access_token({"email": "a@x.com"}, config=other)
    assert decode_access_token(token, CONFIG) is None


def test_tampered_payload_is_rejected():
    token = create_access_token({"email": "a@x.com"}, config=CONFIG)
    header, _, signature = token.split(".")
    forged = base64.urlsafe_b64encode(
        json.dumps({"email": "b@x.com", "exp": int(time.time()) + 3600}).encode()
    ).rstrip(b"=").decode()
    assert decode_access_token(f"{header}.{forged}.{signature}", CONFIG) is None


def test_malformed_tokens_are_rejected():
    for token in ["", "abc", "a.b", "a.b.c", "!!!.???.***"]:
        assert decode_access_token(token, CONFIG) is None


def test_token_without_email_has_no_identity():
    token = create_access_token({"sub": "a@x.com"}, config=CONFIG)
    assert decode_access_token(token, CONFIG) is not None
    assert token_identity(token, CONFIG) is None


def test_password_hash_is_sha256_hex():
    digest = hash_password("p")
    assert digest == "148de9c5a7a44d19e56cd9ae1a554bf67847afb0c58f6e12fa29ac7ddfca9940"
    assert hash_password("p") == digest


def test_verify_password():
    stored = hash_password("secret")
    assert verify_password("secret", stored)
    assert not verify_password("Secret", stored)
    assert not verify_password("secret", "")
