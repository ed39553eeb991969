"""
Security helpers for password hashing and JWT authentication.

This module implements a lightweight JSON Web Token (JWT) mechanism
using HMAC-SHA256 signatures and base64url encoding.  Tokens embed the
actor's email as ``sub`` and an expiration timestamp (``exp``).
Passwords are hashed with PBKDF2-HMAC-SHA256 and a random salt.

``get_current_actor`` is the FastAPI dependency that turns a bearer
token into an ``ActorContext``; ``require_roles`` narrows it to the
roles allowed on a route.
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
import os
import time
from typing import Callable, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..schemas.user import ActorContext, Role
from .errors import ForbiddenError


logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 100_000


def _b64_url_encode(data: bytes) -> str:
    """Base64-url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64-url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(data: Dict[str, str], secret: str, expires_delta: int) -> str:
    """Create a signed JWT token with the given payload.

    The payload is extended with an ``exp`` field holding the expiry
    as a UNIX timestamp ``expires_delta`` seconds from now.  Clients
    send the token back as ``Authorization: Bearer <token>``.
    """
    to_encode = data.copy()
    to_encode["exp"] = int(time.time()) + expires_delta
    header = {"alg": "HS256", "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, secret))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str, secret: str) -> Optional[Dict[str, str]]:
    """Verify and decode a JWT token.

    Returns the payload when the signature matches, the subject is a
    string and the numeric ``exp`` has not passed, otherwise ``None``.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    try:
        actual_sig = _b64_url_decode(signature_b64)
        payload_json = _b64_url_decode(payload_b64)
        data = json.loads(payload_json.decode("utf-8"))
    except (binascii.Error, ValueError):
        return None
    if not hmac.compare_digest(_sign(signing_input, secret), actual_sig):
        return None
    if not isinstance(data, dict) or not isinstance(data.get("sub"), str):
        return None
    try:
        expires_at = int(data["exp"])
    except (KeyError, TypeError, ValueError, OverflowError):
        return None
    if expires_at < int(time.time()):
        return None
    return data


security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_actor(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> ActorContext:
    """Dependency that resolves the bearer token to the stored actor.

    Raises HTTP 401 when the header is missing, the token is invalid or
    expired, or the subject no longer exists.
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")
    services = request.app.state.services
    payload = decode_access_token(credentials.credentials, services.settings.secret_key)
    if not payload:
        raise _unauthorized("Invalid or expired token")
    user = services.actors.find_by_email(payload.get("sub"))
    if user is None:
        raise _unauthorized("User no longer exists")
    return ActorContext(user_id=user.id, role=user.role, email=user.email)


def require_roles(*roles: Role) -> Callable[[ActorContext], ActorContext]:
    """Dependency factory that only lets actors with one of ``roles`` through.

    Use as ``Depends(require_roles(Role.SCHOOL))``.  Other roles get a
    ``ForbiddenError``.
    """

    def _role_dependency(current: ActorContext = Depends(get_current_actor)) -> ActorContext:
        if current.role not in roles:
            allowed = ", ".join(role.value for role in roles)
            raise ForbiddenError(f"This action is only available to: {allowed}")
        return current

    return _role_dependency


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2-HMAC with SHA-256.

    Returns the salt and the derived key in hex, separated by ``$``.
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check ``plain_password`` against a ``salt$hash`` string."""
    try:
        salt_hex, hash_hex = hashed_password.split("$", 1)
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)
