"""User directory adapters - Authentication and user/pet lookups."""

from .memory import InMemoryUserDirectory
from .postgres import PostgresUserDirectory

__all__ = ["InMemoryUserDirectory", "PostgresUserDirectory"]
