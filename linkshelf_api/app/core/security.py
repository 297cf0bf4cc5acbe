"""
Security helpers for password hashing and token authentication.

Tokens are JSON Web Tokens signed with HMAC-SHA256 and base64url
encoded.  The only identity claim is ``email``; an ``exp`` UNIX
timestamp bounds the lifetime (seven days by default).  Verification
fails closed: any structural, signature or expiry problem yields
``None`` and the request is treated as anonymous.

Passwords are stored as the hex SHA-256 digest of the UTF-8 password,
which is what existing ``app_users`` rows contain.  This is a fast,
unsalted digest; switching to PBKDF2 or bcrypt requires a rehash on
next login and is tracked separately.
"""

import base64
import hashlib
import hmac
import json
import time
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings, settings as default_settings


def _b64_url_encode(data: bytes) -> str:
    """Base64-url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64-url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[int] = None,
    config: Optional[Settings] = None,
) -> str:
    """Create a signed JWT with the given claims.

    Parameters
    ----------
    data : dict
        Claims to embed in the token, e.g. ``{"email": "a@x.com"}``.
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``access_token_expire_minutes * 60``.
    config : Optional[Settings]
        Settings holding the signing secret.  Defaults to the
        process-wide settings.

    Returns
    -------
    str
        A token of the form ``header.payload.signature``.
    """
    config = config or default_settings
    to_encode = data.copy()
    exp_seconds = expires_delta or config.access_token_expire_minutes * 60
    to_encode["exp"] = int(time.time()) + exp_seconds
    header = {"alg": config.algorithm, "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, config.secret_key))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str, config: Optional[Settings] = None) -> Optional[Dict[str, Any]]:
    """Verify a JWT and return its payload, or ``None`` if it is not valid."""
    config = config or default_settings
    try:
        parts = token.split(".")
        if len(parts) != 3:
            return None
        header_b64, payload_b64, signature_b64 = parts
        header = json.loads(_b64_url_decode(header_b64).decode("utf-8"))
        if header.get("alg") != config.algorithm:
            return None
        signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
        expected_sig = _sign(signing_input, config.secret_key)
        if not hmac.compare_digest(expected_sig, _b64_url_decode(signature_b64)):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
        if not isinstance(data, dict):
            return None
        if data.get("exp") is None or int(data["exp"]) < int(time.time()):
            return None
        return data
    except (ValueError, TypeError, UnicodeDecodeError, AttributeError):
        return None


def token_identity(token: str, config: Optional[Settings] = None) -> Optional[str]:
    """Return the email a token asserts, or ``None``."""
    payload = decode_access_token(token, config)
    if not payload:
        return None
    email = payload.get("email")
    if not isinstance(email, str) or not email:
        return None
    return email


security = HTTPBearer(auto_error=False)


def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Dependency returning the caller's email, or ``None`` when anonymous.

    A present but invalid token is treated the same as no token.
    """
    if credentials is None:
        return None
    return token_identity(credentials.credentials, request.app.state.settings)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Dependency that requires a valid bearer token and returns its email."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="missing token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    email = token_identity(credentials.credentials, request.app.state.settings)
    if email is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return email


def hash_password(password: str) -> str:
    """Return the lowercase hex SHA-256 digest of ``password``."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Compare a password against a stored digest in constant time."""
    if not hashed_password:
        return False
    return hmac.compare_digest(hash_password(plain_password), hashed_password.lower())
