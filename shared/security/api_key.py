"""
Gateway-to-service shared secret.

The gateway authenticates users and forwards every call into the order and
inventory apps with ``X-Internal-API-Key``. Two keys can be live at once so
the secret can be rotated without downtime: ``INTERNAL_API_KEY`` is the
current one, ``INTERNAL_API_KEY_PREVIOUS`` the one being retired.

Keys are read per call, and with none configured every request is refused.
"""
import os
import secrets
from typing import Tuple

import structlog

logger = structlog.get_logger(__name__)

KEY_VARIABLES = ("INTERNAL_API_KEY", "INTERNAL_API_KEY_PREVIOUS")


def accepted_keys() -> Tuple[str, ...]:
    return tuple(key for key in (os.getenv(name, "").strip() for name in KEY_VARIABLES) if key)


def verify_api_key(provided_key: str | None) -> bool:
    if not provided_key:
        return False

    keys = accepted_keys()
    if not keys:
        logger.warning("internal_api_key_unset", detail="INTERNAL_API_KEY is not configured; refusing request")
        return False

    # Compare against every key so timing does not reveal which one matched
    matched = False
    for key in keys:
        matched |= secrets.compare_digest(provided_key.encode(), key.encode())
    return matched
