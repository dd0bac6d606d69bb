from .db import Database, db

__all__ = ["Database", "db"]
