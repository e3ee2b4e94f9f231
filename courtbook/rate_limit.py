"""
Rate limiting configuration using slowapi.

Two tiers:
  • write   – 20/min (booking, cancellation and forum join endpoints)
  • default – 60/min (everything else)

The limiter keys on client IP by default.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Named rate strings for use in @limiter.limit() decorators
WRITE = "20/minute"      # state-changing player actions
DEFAULT = "60/minute"    # general API

limiter = Limiter(key_func=get_remote_address, default_limits=[DEFAULT])
