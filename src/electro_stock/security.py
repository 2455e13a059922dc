"""Password hashing and session token helpers."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import os
import time

_ITERATIONS = 390_000
_ALGORITHM = "sha256"
_SALT_BYTES = 16


def _b64(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def _unb64(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac(_ALGORITHM, password.encode("utf-8"), salt, iterations)


def hash_password(password: str, *, iterations: int | None = None) -> str:
    """Return a salted PBKDF2 hash for *password* as ``iterations$salt$digest``."""

    iterations = iterations or _ITERATIONS
    salt = os.urandom(_SALT_BYTES)
    digest = _derive(password, salt, iterations)
    return f"{iterations}${_b64(salt)}${_b64(digest)}"


def verify_password(password: str, stored_hash: str) -> bool:
    """Verify *password* against the stored hash."""

    try:
        iterations_text, salt_text, digest_text = stored_hash.split("$", 2)
        iterations = int(iterations_text)
        salt, digest = _unb64(salt_text), _unb64(digest_text)
    except (ValueError, binascii.Error):
        return False
    return hmac.compare_digest(digest, _derive(password, salt, iterations))


def _signature(payload: str, secret_key: str) -> str:
    return _b64(hmac.new(secret_key.encode(), payload.encode(), hashlib.sha256).digest())


def sign_session(user_id: str, secret_key: str, *, issued_at: int | None = None) -> str:
    """Return an HMAC signed session token carrying *user_id* and its issue time."""

    issued = int(time.time()) if issued_at is None else issued_at
    payload = f"{user_id}.{issued}"
    return f"{payload}.{_signature(payload, secret_key)}"


def verify_session(token: str, secret_key: str, *, max_age: int | None = None) -> str | None:
    """Validate *token* and return the user id it was issued for."""

    try:
        user_id, issued_text, signature = token.rsplit(".", 2)
        issued = int(issued_text)
    except ValueError:
        return None

    expected = _signature(f"{user_id}.{issued_text}", secret_key)
    if not hmac.compare_digest(expected, signature):
        return None
    if max_age is not None and time.time() - issued > max_age:
        return None
    return user_id
