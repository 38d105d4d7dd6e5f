"""Rate limiting configuration for the portal API."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from grievance_api.core.config import settings

# memory:// for a single process; point RATE_LIMIT_STORAGE_URI at redis:// when
# running several workers.
DEFAULT_LIMITS = (
    [] if settings.RATE_LIMIT_API <= 0 else [f"{settings.RATE_LIMIT_API}/minute"]
)

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    default_limits=DEFAULT_LIMITS,
)
