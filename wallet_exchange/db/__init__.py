from .database import Base, create_engine, create_session_factory, create_tables
from .models import IdentityRecord

__all__ = [
    "Base",
    "create_engine",
    "create_session_factory",
    "create_tables",
    "IdentityRecord",
]
