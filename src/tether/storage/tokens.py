"""Integrity tokens: HMAC-SHA256 over a scope and a ULID nonce.

A token is ``<ulid>.<hexdigest>``.  The ULID's embedded timestamp bounds the
token's lifetime, so no server-side nonce table is needed.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import time

from ulid import ULID

from tether.core.config import DEFAULT_TOKEN_MAX_AGE

# Tolerated clock skew for tokens minted slightly in the future.
_SKEW_SECONDS = 60


def generate_secret() -> str:
    return secrets.token_hex(32)


class HmacTokenVerifier:
    def __init__(self, secret: str, max_age: int = DEFAULT_TOKEN_MAX_AGE) -> None:
        if not secret:
            raise ValueError("A token secret is required")
        self._key = secret.encode("utf-8")
        self.max_age = max_age

    def _sign(self, scope: str, nonce: str) -> str:
        return hmac.new(self._key, f"{scope}|{nonce}".encode(), hashlib.sha256).hexdigest()

    def issue(self, scope: str) -> str:
        nonce = str(ULID())
        return f"{nonce}.{self._sign(scope, nonce)}"

    def verify(self, token: str | None, scope: str) -> bool:
        """True when *token* was issued for *scope* and has not expired."""
        if not token or "." not in token:
            return False
        nonce, _, signature = token.partition(".")
        try:
            issued_at = ULID.from_str(nonce).timestamp
        except ValueError:
            return False
        if not hmac.compare_digest(signature, self._sign(scope, nonce)):
            return False
        age = time.time() - issued_at
        return -_SKEW_SECONDS <= age <= self.max_age
