"""
Storage - PostgreSQL score store and Redis cache
"""

from .cache import CacheManager
from .database import DatabaseManager
from .models import BlitzProofScore, TokenInfo, TokenWithScore

__all__ = [
    'CacheManager',
    'DatabaseManager',
    'BlitzProofScore',
    'TokenInfo',
    'TokenWithScore'
]
