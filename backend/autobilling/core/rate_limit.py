"""
Rate limiter shared by the application and the endpoints that opt into limits.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from autobilling.core.config import settings


limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

RUN_TRIGGER_LIMIT = f"{settings.RATE_LIMIT_PER_MINUTE}/minute"
