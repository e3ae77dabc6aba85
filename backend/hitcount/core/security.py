"""
Security utilities: keyed hashing of visitor identifiers, dashboard token check.
"""
import hashlib
import hmac
import uuid
from typing import Annotated, Optional

from fastapi import Header, HTTPException, status

from hitcount.core.config import settings
from hitcount.core.logging import get_logger

logger = get_logger(__name__)


def hash_visitor(ip: str, user_agent: str, secret: Optional[str] = None) -> str:
    """
    One-way keyed hash of ``ip|user_agent``.

    Neither value is recoverable from the digest, and without the secret key
    the digest cannot be recomputed from a guessed IP either.
    """
    key = (secret or settings.secret_key).encode("utf-8")
    data = f"{ip}|{user_agent}".encode("utf-8")
    return hmac.new(key, data, hashlib.sha256).hexdigest()


def generate_session_id() -> str:
    """Random session identifier, unrelated to the visitor hash."""
    return str(uuid.uuid4())


async def require_dashboard_token(
    authorization: Annotated[Optional[str], Header()] = None,
) -> None:
    """Guard the read API with a bearer token when one is configured."""
    expected = settings.dashboard_token
    if not expected:
        return

    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not hmac.compare_digest(token, expected):
        logger.warning("Rejected dashboard request")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid dashboard token",
            headers={"WWW-Authenticate": "Bearer"},
        )
