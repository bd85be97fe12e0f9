"""
Bearer-key guard for the bookmark editor API.

Session routes depend on ``require_api_key``. The expected key comes from
``API_KEY``; without one every guarded request is refused, there is no
built-in key.
"""
import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pdfmarks.config.bookmark_settings import get_api_key

logger = logging.getLogger(__name__)

# Missing headers are reported by check_api_key, not by the scheme
bearer_scheme = HTTPBearer(auto_error=False)


def check_api_key(presented: Optional[str], expected: Optional[str]) -> str:
    """Compare a presented key with the configured one.

    Args:
        presented: Key from the request's Bearer header, if any
        expected: Configured key, None when the server has none

    Returns:
        The accepted key

    Raises:
        HTTPException: 503 when no key is configured, 401 when the key is
            missing or wrong
    """
    if not expected:
        logger.error("API_KEY is not set; refusing authenticated request")
        raise HTTPException(status_code=503, detail="API key is not configured")

    if not presented or not secrets.compare_digest(presented.encode(), expected.encode()):
        raise HTTPException(
            status_code=401,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return presented


async def require_api_key(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """FastAPI dependency: the request must carry the configured key."""
    presented = credentials.credentials if credentials else None
    return check_api_key(presented, get_api_key())
