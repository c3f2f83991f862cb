from .api_key import verify_api_key
from .dependencies import verify_internal_api_key, get_business_id, get_actor_id

__all__ = [
    "verify_api_key",
    "verify_internal_api_key",
    "get_business_id",
    "get_actor_id",
]
