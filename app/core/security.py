"""Verification of platform-issued credentials.

Two kinds of requests reach the service:

- Admin requests from the embedded app carry a session token, an HS256 JWT
  signed with the app secret whose ``dest`` claim is the shop URL.
- Storefront requests arrive through the app proxy, which appends ``shop`` and
  a hex HMAC-SHA256 ``signature`` over the remaining query parameters.

Session establishment (OAuth) happens elsewhere; this module only checks what
the platform has already signed.
"""

import hashlib
import hmac
from typing import Any, Iterable, Mapping, Optional, Tuple
from urllib.parse import urlparse

import jwt

from app.core.config import settings


def decode_session_token(token: str) -> Optional[dict[str, Any]]:
    """Decode and verify a session token, returning None when invalid."""
    try:
        return jwt.decode(
            token,
            settings.SHOPIFY_API_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_aud": False},
        )
    except jwt.PyJWTError:
        return None


def shop_from_session_payload(payload: Mapping[str, Any]) -> Optional[str]:
    """Extract the shop domain from the ``dest`` claim (falls back to ``sub``)."""
    dest = payload.get("dest")
    if dest:
        host = urlparse(dest).netloc or dest
        return host.lower()
    sub = payload.get("sub")
    return str(sub).lower() if sub else None


def compute_proxy_signature(params: Iterable[Tuple[str, str]], secret: str) -> str:
    """Compute the app proxy signature for query parameters.

    Parameters are grouped by key, repeated values are joined with commas,
    then ``key=value`` pairs are sorted and concatenated without separators.
    """
    grouped: dict[str, list[str]] = {}
    for key, value in params:
        if key == "signature":
            continue
        grouped.setdefault(key, []).append(value)
    message = "".join(sorted(f"{key}={','.join(values)}" for key, values in grouped.items()))
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def verify_proxy_signature(params: Iterable[Tuple[str, str]], signature: Optional[str]) -> bool:
    """Constant-time comparison of the supplied signature against the expected one."""
    if not signature:
        return False
    expected = compute_proxy_signature(params, settings.SHOPIFY_API_SECRET)
    return hmac.compare_digest(expected, signature)
