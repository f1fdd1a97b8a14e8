"""Persistence: SQLAlchemy-backed watch record and tenant stores."""

from mention_reminder.store.database import Base, create_engine, create_tables
from mention_reminder.store.mentions import SqlMentionStore
from mention_reminder.store.tenants import SqlTenantStore

__all__ = [
    "Base",
    "create_engine",
    "create_tables",
    "SqlMentionStore",
    "SqlTenantStore",
]
