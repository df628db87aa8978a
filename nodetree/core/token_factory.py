"""Pure functions for creating and decoding HS256 bearer tokens.

Only identity travels in the token; capability flags and node mounts are
loaded from the database on every request so revocations apply immediately.
"""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

_ISSUER = "nodetree"


@dataclass(frozen=True)
class TokenPayload:
    """Decoded token payload. Immutable."""
    sub: str
    exp: datetime


def create_token(
    subject: str,
    secret: str,
    algorithm: str = "HS256",
    expires_hours: int = 24,
) -> str:
    """Create a signed token for *subject* (a ``users.user_id``)."""
    if algorithm != "HS256":
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    issued = int(time.time())
    header = _b64encode(json.dumps({"alg": "HS256", "typ": "JWT"}).encode())
    body = _b64encode(json.dumps({
        "sub": subject,
        "iat": issued,
        "exp": issued + expires_hours * 3600,
        "iss": _ISSUER,
    }).encode())
    signing_input = header + b"." + body
    return (signing_input + b"." + _b64encode(_sign(secret, signing_input))).decode()


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Optional[TokenPayload]:
    """Validate signature, issuer and expiry. Returns ``None`` on any failure."""
    if algorithm != "HS256":
        return None
    try:
        header, body, signature = token.encode().split(b".")
    except ValueError:
        return None

    try:
        if not hmac.compare_digest(_sign(secret, header + b"." + body), _b64decode(signature)):
            return None
        claims = json.loads(_b64decode(body))
    except (ValueError, TypeError):
        return None

    if not isinstance(claims, dict) or claims.get("iss") != _ISSUER:
        return None
    exp = claims.get("exp")
    if not isinstance(exp, int) or time.time() > exp:
        return None
    sub = claims.get("sub")
    if not sub:
        return None

    return TokenPayload(sub=sub, exp=datetime.fromtimestamp(exp, tz=timezone.utc))


def _sign(secret: str, data: bytes) -> bytes:
    return hmac.new(secret.encode(), data, hashlib.sha256).digest()


def _b64encode(data: bytes) -> bytes:
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def _b64decode(data: bytes) -> bytes:
    return base64.urlsafe_b64decode(data + b"=" * (-len(data) % 4))
