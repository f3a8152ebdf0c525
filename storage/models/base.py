"""
Base ORM Model and Mixins.

============================================================
PURPOSE
============================================================
Provides the declarative base and common mixins used by all
ORM models of the oracle ledger.

============================================================
COMPONENTS
============================================================
- Base: SQLAlchemy declarative base for all models
- TimestampMixin: Common timestamp columns
- PayloadJSON: JSON column type, JSONB on PostgreSQL

============================================================
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# Serialized series payloads; JSONB where the backend supports it
PayloadJSON = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """
    Declarative base for all ORM models.
    
    All ledger tables inherit from this base so that a single
    ``Base.metadata.create_all`` provisions the whole layout.
    """
    
    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class TimestampMixin:
    """
    Mixin providing standard timestamp columns.
    
    Adds created_at and updated_at columns to models that
    require temporal tracking. All timestamps are timezone-aware.
    
    Usage:
        class MyModel(Base, TimestampMixin):
            __tablename__ = "my_table"
            ...
    """
    
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Record creation timestamp (UTC)"
    )
    
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
        comment="Last update timestamp (UTC)"
    )
