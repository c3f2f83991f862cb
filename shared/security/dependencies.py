from fastapi import Depends, Header, HTTPException, status
from fastapi.security import APIKeyHeader
from .api_key import verify_api_key

# Defines the expected internal service header
api_key_header = APIKeyHeader(name="X-Internal-API-Key", auto_error=False)

async def verify_internal_api_key(api_key: str = Depends(api_key_header)) -> bool:
    """Dependency to validate service-to-service internal requests."""
    if not verify_api_key(api_key):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or missing X-Internal-API-Key header"
        )
    return True

async def get_business_id(x_business_id: str | None = Header(default=None)) -> str:
    """Business scope forwarded by the gateway after it authenticated the user."""
    if not x_business_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing X-Business-Id header"
        )
    return x_business_id

async def get_actor_id(x_actor_id: str | None = Header(default=None)) -> str | None:
    """Acting user forwarded by the gateway. Optional for system callers."""
    return x_actor_id
