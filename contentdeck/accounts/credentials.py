"""Opaque credential storage for user records."""

from __future__ import annotations

import hashlib
import hmac
import secrets


CREDENTIAL_SCHEME = "pbkdf2_sha256"
CREDENTIAL_ROUNDS = 260_000


def hash_credential(password: str, *, rounds: int = CREDENTIAL_ROUNDS) -> str:
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, rounds)
    return f"{CREDENTIAL_SCHEME}${rounds}${salt.hex()}${digest.hex()}"


def verify_credential(password: str, stored: str) -> bool:
    try:
        scheme, rounds_raw, salt_hex, digest_hex = stored.split("$", 3)
        if scheme != CREDENTIAL_SCHEME:
            return False
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(digest_hex)
        rounds = int(rounds_raw)
    except ValueError:
        return False

    observed = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, rounds)
    return hmac.compare_digest(observed, expected)
