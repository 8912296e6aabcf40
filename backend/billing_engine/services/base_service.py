"""
Base service class.
Services hold the billing rules and coordinate repositories; every public
write operation runs inside one unit of work.
"""

from abc import ABC


class BaseService(ABC):
    """Base service class for all services."""
    pass
