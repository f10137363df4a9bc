from fastapi import Header
from typing import Optional
import logging

logger = logging.getLogger("uvicorn.error")

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Strip a single leading ``Bearer `` prefix from an Authorization header value.
    A header without the prefix is used as the raw token. Returns None when
    no usable token remains.
    """
    if not authorization:
        return None
    token = authorization
    if token.startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX):]
    return token or None


async def get_bearer_token(
    authorization: Optional[str] = Header(None),
) -> Optional[str]:
    """
    Dependency to retrieve the caller's bearer token from the Authorization header.
    The forwarder answers 401 itself when this returns None.
    """
    token = extract_bearer_token(authorization)
    if authorization and not token:
        logger.warning("Authorization header present but carries no token")
    return token
