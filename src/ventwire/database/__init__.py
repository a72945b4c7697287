"""Database layer for ventwire."""

from ventwire.database.session import (
    cleanup_database,
    init_database,
    session_scope,
)

__all__ = [
    "cleanup_database",
    "init_database",
    "session_scope",
]
