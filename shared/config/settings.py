"""
Process-wide settings read from the environment.

ORDER_TAX_RATE is the one canonical tax rate for order pricing. It has no
default: an unset or malformed value raises ConfigurationError the first
time an order service is built, instead of silently pricing with a guess.
"""
import os
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

load_dotenv()


class ConfigurationError(RuntimeError):
    """A required setting is missing or malformed."""


def get_tax_rate() -> Decimal:
    raw = os.getenv("ORDER_TAX_RATE")
    if raw is None or not raw.strip():
        raise ConfigurationError("ORDER_TAX_RATE is not set in the environment")
    try:
        rate = Decimal(raw.strip())
    except InvalidOperation as e:
        raise ConfigurationError(f"ORDER_TAX_RATE is not a decimal: {raw!r}") from e
    if rate < 0 or rate > 1:
        raise ConfigurationError(f"ORDER_TAX_RATE must be a fraction between 0 and 1, got {raw!r}")
    return rate


def tracing_enabled() -> bool:
    return os.getenv("OTEL_TRACING_ENABLED", "true").lower() == "true"


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()
