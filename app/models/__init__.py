# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import user, kv_entry

# Explicit class exports for cleaner imports
from .user import User, UserSession
from .kv_entry import KVEntry

__all__ = [
    "User",
    "UserSession",
    "KVEntry",
]
