"""Per-client request throttling for credential-bearing routes.

The limiter is keyed on the client IP. ``create_app`` attaches it to
``app.state.limiter`` and toggles it from ``RATE_LIMIT_ENABLED``.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Applied to login and register
CREDENTIALS_LIMIT = "10/minute"

limiter = Limiter(key_func=get_remote_address)
