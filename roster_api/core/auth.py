"""
Request authentication dependencies.

Identity and club membership are verified by an upstream gateway. This
service only checks the shared API key and reads the already-verified
acting user from the X-User-Id header.
"""
from typing import Optional
from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader
from starlette.requests import Request

from roster_api.core.config import settings
from roster_api.core.logging import get_logger, set_acting_user

logger = get_logger(__name__)

API_KEY_NAME = "X-API-Key"
USER_ID_HEADER = "X-User-Id"

api_key_header = APIKeyHeader(name=API_KEY_NAME, auto_error=False)
user_id_header = APIKeyHeader(name=USER_ID_HEADER, auto_error=False, scheme_name="ActingUser")


def get_api_key(request: Request, api_key: Optional[str] = Security(api_key_header)) -> str:
    """
    Validate API key from request header.

    Raises:
        HTTPException: If API key is missing or invalid
    """
    if not settings.API_KEY:
        if settings.is_production():
            logger.warning("API_KEY not configured in production - rejecting request")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="API key required. Configure API_KEY environment variable."
            )
        logger.debug("API_KEY not configured - allowing request outside production")
        return "_dev_skip_"

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key missing. Provide X-API-Key header."
        )

    if api_key != settings.API_KEY:
        logger.warning(f"Invalid API key attempt from {request.client.host if request.client else 'unknown'}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key."
        )

    return api_key


async def get_acting_user_id(
    api_key: str = Security(get_api_key),
    user_id: Optional[str] = Security(user_id_header),
) -> str:
    """
    Identifier of the user performing the request.

    Must stay async: set_acting_user() in a sync dependency would only
    touch the threadpool's copy of the context.

    Raises:
        HTTPException: 401 if the header is absent
    """
    if not user_id or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Acting user missing. Provide {USER_ID_HEADER} header."
        )

    user_id = user_id.strip()
    set_acting_user(user_id)
    return user_id
