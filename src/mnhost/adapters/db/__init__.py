from .sqlite import SqliteNodeStore

__all__ = ["SqliteNodeStore"]
