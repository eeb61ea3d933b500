"""Shared slowapi limiter, keyed by client IP.

Limits come from settings so deployments behind a shared NAT can loosen
them without a code change.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from leavedesk.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)

# Every sign-in round-trips to Google
OAUTH_RATE_LIMIT = settings.RATE_LIMIT_OAUTH
