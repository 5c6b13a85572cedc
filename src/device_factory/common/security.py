"""API key authentication and caller identity dependencies."""

from fastapi import Header, HTTPException

from device_factory.common.exceptions import InvalidInputError
from device_factory.common.messages import ApiMessage


async def require_api_key(
    x_dfm_api_key: str = Header(..., alias="X-Dfm-Api-Key"),
) -> str:
    """FastAPI dependency that validates the admin API key from header."""
    from device_factory.common.config import get_settings

    settings = get_settings()
    if x_dfm_api_key != settings.api_key:
        raise HTTPException(status_code=403, detail="Invalid API key")
    return x_dfm_api_key


async def require_user_id(
    user_id: str | None = Header(None, alias="user-id"),
) -> str:
    """FastAPI dependency returning the calling user from the ``user-id`` header."""
    if user_id is None or not user_id.strip():
        raise InvalidInputError(ApiMessage.MISSING_USERID)
    return user_id.strip()
