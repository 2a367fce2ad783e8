"""Signed bearer tokens identifying callable-procedure callers.

Token layout: ``{uid}.{expires_epoch}.{hex hmac-sha256(secret, "uid.expires")}``.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from typing import Callable

from shift_guard.common.exceptions import AuthenticationError
from shift_guard.summary.service import Caller


class TokenVerifier:
    def __init__(
        self,
        secret: str | None,
        *,
        ttl_s: int = 3600,
        now: Callable[[], float] = time.time,
    ):
        self._secret = secret.encode("utf-8") if secret else None
        self._ttl_s = ttl_s
        self._now = now

    @property
    def configured(self) -> bool:
        return self._secret is not None

    def _sign(self, payload: str) -> str:
        if self._secret is None:
            raise AuthenticationError("token secret is not configured")
        return hmac.new(self._secret, payload.encode("utf-8"), hashlib.sha256).hexdigest()

    def issue(self, uid: str, *, ttl_s: int | None = None) -> str:
        if not self.configured:
            raise AuthenticationError("token secret is not configured")
        if not uid or not uid.strip():
            raise AuthenticationError("uid is required")
        expires = int(self._now()) + (self._ttl_s if ttl_s is None else ttl_s)
        payload = f"{uid}.{expires}"
        return f"{payload}.{self._sign(payload)}"

    def verify(self, token: str | None) -> Caller:
        if not self.configured:
            raise AuthenticationError("token secret is not configured")
        if not token:
            raise AuthenticationError("missing token")
        parts = token.rsplit(".", 2)
        if len(parts) != 3 or not parts[0]:
            raise AuthenticationError("malformed token")
        uid, expires, signature = parts
        if not hmac.compare_digest(signature, self._sign(f"{uid}.{expires}")):
            raise AuthenticationError("bad signature")
        try:
            expires_at = int(expires)
        except ValueError as exc:
            raise AuthenticationError("malformed token") from exc
        if expires_at <= self._now():
            raise AuthenticationError("token expired")
        return Caller(uid=uid)


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer ...`` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


__all__ = ["TokenVerifier", "bearer_token"]
