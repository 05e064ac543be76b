"""Rate limiter instance for SlowAPI.

Shared so both main (app.state.limiter) and route modules can use the same
instance without circular imports. Write endpoints are decorated with
limit_writes; RATE_LIMIT_ENABLED=false turns limiting off (e.g. in tests).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from orgflow.core.config import get_settings

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    enabled=_settings.rate_limit_enabled,
)

WRITE_ENDPOINT_LIMIT = _settings.write_rate_limit

limit_writes = limiter.limit(WRITE_ENDPOINT_LIMIT)
