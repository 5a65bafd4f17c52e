"""
Bearer token authentication.

Tokens are JSON Web Tokens signed with HMAC-SHA256 using the
``SECRET_KEY`` setting.  The ``sub`` claim holds the user's email and
``exp`` the expiry as a UNIX timestamp.  On every request the subject
is resolved against the ``users`` table so that role changes and group
membership take effect without reissuing tokens.

Two FastAPI dependencies are exposed: ``get_current_user`` for routes
that require an actor and ``get_optional_user`` for routes where an
anonymous caller is allowed (visibility is then decided by the
event authorization predicates).
"""

import base64
import json
import time
import hmac
import hashlib
import logging
from typing import Any, Optional, Dict

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .db import get_connection


logger = logging.getLogger(__name__)


def _b64_url_encode(data: bytes) -> str:
    """Base64-url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64-url encoded string, adding padding if necessary."""
    padding = '=' * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(data: Dict[str, Any], expires_delta: Optional[int] = None) -> str:
    """Create a signed JWT token with the given payload.

    Parameters
    ----------
    data : dict
        Claims to embed in the token (e.g. ``{"sub": "user@example.com"}``).
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60``.

    Returns
    -------
    str
        A token of the form ``header.payload.signature``.
    """
    to_encode = data.copy()
    exp_seconds = expires_delta or settings.access_token_expire_minutes * 60
    to_encode["exp"] = int(time.time()) + exp_seconds
    header = {"alg": settings.algorithm, "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(',', ':')).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(',', ':')).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, settings.secret_key))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify and decode a JWT token.

    Returns the payload if the signature matches and the token has not
    expired, otherwise ``None``.
    """
    parts = token.split('.')
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    expected_sig = _sign(signing_input, settings.secret_key)
    try:
        actual_sig = _b64_url_decode(signature_b64)
        if not hmac.compare_digest(expected_sig, actual_sig):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(data, dict):
        return None
    if data.get("exp") is None or int(data["exp"]) < int(time.time()):
        return None
    return data


def load_user(email: str) -> Optional[Dict[str, Any]]:
    """Return the actor context for ``email`` or ``None`` if unknown.

    The context is a plain dict with ``user_id``, ``name``, ``role``
    and ``groups`` (ids of the groups the user belongs to).
    """
    conn = get_connection()
    try:
        cursor = conn.cursor()
        row = cursor.execute(
            "SELECT id, email, name, role FROM users WHERE email = ?",
            (email,),
        ).fetchone()
        if not row:
            return None
        group_rows = cursor.execute(
            "SELECT group_id FROM user_groups WHERE user_id = ? ORDER BY group_id",
            (row["id"],),
        ).fetchall()
        return {
            "sub": row["email"],
            "user_id": row["id"],
            "name": row["name"],
            "role": row["role"],
            "groups": [r["group_id"] for r in group_rows],
        }
    finally:
        conn.close()


security = HTTPBearer(auto_error=False)


def _authenticate(token: str) -> Dict[str, Any]:
    payload = decode_access_token(token)
    if not payload:
        logger.warning("Rejected invalid or expired bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = load_user(payload.get("sub"))
    if user is None:
        logger.warning("Rejected token for unknown user %s", payload.get("sub"))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User no longer exists",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Dict[str, Any]:
    """Dependency that requires an authenticated user.

    Raises 401 if the ``Authorization`` header is missing, the token is
    invalid or expired, or its subject no longer exists.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _authenticate(credentials.credentials)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Dict[str, Any]]:
    """Dependency that returns the actor or ``None`` for anonymous calls.

    A header carrying an invalid token is still rejected with 401.
    """
    if credentials is None:
        return None
    return _authenticate(credentials.credentials)
