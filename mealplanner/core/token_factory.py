"""Signed bearer tokens for staff accounts.

Compact HS256 JWTs carrying the user id (``sub``) and role. Issuing tokens
is left to operators (see ``issue_token``); the API only verifies them.
"""

import base64
import hashlib
import hmac
import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

ISSUER = "mealplanner"
_HEADER = {"alg": "HS256", "typ": "JWT"}


@dataclass(frozen=True)
class TokenPayload:
    sub: str
    role: str
    exp: datetime


def issue_token(
    user_id: str,
    role: str,
    secret: str,
    algorithm: str = "HS256",
    lifetime: timedelta = timedelta(hours=12),
    now: Optional[datetime] = None,
) -> str:
    """Return a signed token for *user_id* valid for *lifetime*."""
    if algorithm != "HS256":
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    issued = now or datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "role": role,
        "iss": ISSUER,
        "iat": int(issued.timestamp()),
        "exp": int((issued + lifetime).timestamp()),
    }
    body = _encode_segment(_HEADER) + b"." + _encode_segment(claims)
    return (body + b"." + _urlsafe(_sign(body, secret))).decode("ascii")


def decode_token(
    token: str,
    secret: str,
    algorithm: str = "HS256",
    now: Optional[datetime] = None,
) -> Optional[TokenPayload]:
    """Verify *token* and return its payload.

    Returns None for anything that is not a well-formed, correctly signed,
    unexpired token from this issuer.
    """
    if algorithm != "HS256":
        return None
    try:
        header_b64, claims_b64, signature_b64 = token.encode("ascii").split(b".")
    except (UnicodeEncodeError, ValueError):
        return None

    try:
        signature = _unurlsafe(signature_b64)
        header = json.loads(_unurlsafe(header_b64))
        claims = json.loads(_unurlsafe(claims_b64))
    except (ValueError, TypeError):
        return None

    if not hmac.compare_digest(_sign(header_b64 + b"." + claims_b64, secret), signature):
        return None
    if not isinstance(header, dict) or header.get("alg") != "HS256":
        return None
    if not isinstance(claims, dict) or claims.get("iss") != ISSUER:
        return None

    try:
        expires = datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)
    except (KeyError, TypeError, ValueError, OverflowError):
        return None
    if expires <= (now or datetime.now(timezone.utc)):
        return None

    subject = claims.get("sub")
    if not subject:
        return None
    return TokenPayload(sub=str(subject), role=str(claims.get("role", "")), exp=expires)


def _sign(body: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()


def _encode_segment(obj: dict) -> bytes:
    return _urlsafe(json.dumps(obj, separators=(",", ":"), sort_keys=True).encode("utf-8"))


def _urlsafe(raw: bytes) -> bytes:
    return base64.urlsafe_b64encode(raw).rstrip(b"=")


def _unurlsafe(segment: bytes) -> bytes:
    return base64.urlsafe_b64decode(segment + b"=" * (-len(segment) % 4))
