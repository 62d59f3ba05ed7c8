"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .memory_store import InMemoryBookingStore
from .sql_store import SqlAlchemyBookingStore

__all__ = ['InMemoryBookingStore', 'SqlAlchemyBookingStore']
