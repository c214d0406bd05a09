"""
Utility Helper Functions for the BlitzProof Score Engine
Decorators, numeric coercion and formatting helpers shared across modules
"""

import asyncio
import logging
import math
import time
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

# ============= Decorators =============

def measure_time(func):
    """Measure execution time decorator"""
    @wraps(func)
    async def async_wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            result = await func(*args, **kwargs)
            return result
        finally:
            elapsed = time.perf_counter() - start
            logger.debug(f"{func.__name__} took {elapsed:.4f} seconds")

    @wraps(func)
    def sync_wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            result = func(*args, **kwargs)
            return result
        finally:
            elapsed = time.perf_counter() - start
            logger.debug(f"{func.__name__} took {elapsed:.4f} seconds")

    return async_wrapper if asyncio.iscoroutinefunction(func) else sync_wrapper

# ============= Math Utilities =============

def round_half_up(value: Union[int, float]) -> int:
    """Round to nearest integer with halves rounded up.

    Python's round() uses banker's rounding (round(16.5) == 16); scores
    need floor(x + 0.5).
    """
    return int(math.floor(value + 0.5))

def clamp(value: float, lower: float = 0.0, upper: float = 100.0) -> float:
    """Clamp value into [lower, upper]"""
    return max(lower, min(upper, value))

def safe_float(value: Any, default: float = 0.0) -> float:
    """Coerce an upstream value to a finite float"""
    if value is None or isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result

def safe_int(value: Any, default: int = 0) -> int:
    """Coerce an upstream value to an int"""
    return int(safe_float(value, float(default)))

# ============= Time Utilities =============

def utc_now() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)

def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (or pass through a datetime)"""
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        return None

# ============= Security Utilities =============

def mask_url_credentials(url: str) -> str:
    """Hide user:password in a connection URL before logging it"""
    if '@' not in url or '//' not in url:
        return url
    scheme, rest = url.split('//', 1)
    return f"{scheme}//***:***@{rest.split('@', 1)[1]}"
