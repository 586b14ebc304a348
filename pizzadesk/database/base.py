"""
Declarative base and column helpers shared by all models
"""
import uuid
from datetime import datetime, timezone
from enum import Enum
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import declarative_base

# Create base class for all models
Base = declarative_base()


def new_id() -> str:
    """Opaque document identifier"""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def enum_type(enum_cls: type[Enum]) -> SQLAlchemyEnum:
    """Store enum values ("OutForDelivery"), not member names ("OUT_FOR_DELIVERY")"""
    return SQLAlchemyEnum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        validate_strings=True,
    )


def as_utc(value: datetime) -> datetime:
    """SQLite hands datetimes back naive; they were written as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
