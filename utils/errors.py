"""
Typed Exception Classes for the BlitzProof Score Engine

Only ValidationError and PersistenceError are meant to cross the service
boundary. Collector and cache failures are absorbed where they happen.
"""


# ============================================================================
# Network & Collector Exceptions
# ============================================================================

class NetworkError(Exception):
    """Base exception for network-related errors"""
    pass


class CollectorError(NetworkError):
    """Upstream data source failure inside a data collector"""

    def __init__(self, category: str, message: str):
        super().__init__(f"{category}: {message}")
        self.category = category


# ============================================================================
# Validation Exceptions
# ============================================================================

class ConfigurationError(Exception):
    """Configuration validation errors"""
    pass


class ValidationError(Exception):
    """Invalid admin input (maps to a 400 response)"""

    def __init__(self, message: str, missing_fields=None):
        super().__init__(message)
        self.missing_fields = list(missing_fields or [])


# ============================================================================
# Storage Exceptions
# ============================================================================

class DatabaseError(Exception):
    """Database operation errors"""
    pass


class PersistenceError(DatabaseError):
    """Durable store read/write failure (maps to a 500 response)"""
    pass


class CacheError(Exception):
    """Cache connection or command failure"""
    pass
