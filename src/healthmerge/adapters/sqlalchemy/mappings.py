"""SQLAlchemy table metadata for imported person records and confirmed merges."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    Index,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)

from healthmerge.domain.model import MergeSource

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class DatasetIdListType(TypeDecorator[tuple[str, ...]]):
    """Ordered dataset ids stored as a JSON array."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value: tuple[str, ...] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(list(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> tuple[str, ...]:
        _ = dialect
        if value is None:
            return ()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return ()
        items = cast(list[Any], loaded)
        return tuple(item for item in items if isinstance(item, str))


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

person_record_table = Table(
    "person_record",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("dataset_id", String, nullable=False),
    Column("nik", String, nullable=False),
    Column("record_id", String, nullable=False),
    Column("name", String, nullable=False),
    Column("address", String, nullable=False),
    Column("date_of_birth", String, nullable=True),
    Column("phone", String, nullable=True),
    Column("last_visit", String, nullable=True),
    Column("imported_at", UTCDateTime(), nullable=False),
    UniqueConstraint("dataset_id", "nik"),
    Index("ix_person_record_nik", "nik"),
)

merged_record_table = Table(
    "merged_record",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("record_id", String, nullable=False),
    Column("nik", String, nullable=False),
    Column("name", String, nullable=True),
    Column("address", String, nullable=True),
    Column("date_of_birth", String, nullable=True),
    Column("phone", String, nullable=True),
    Column("last_visit", String, nullable=True),
    Column("explanation", Text, nullable=False),
    Column("confidence_score", Float, nullable=False),
    Column("source", Enum(MergeSource, native_enum=False), nullable=False),
    Column("source_dataset_ids", DatasetIdListType(), nullable=False),
    Column("confirmed_at", UTCDateTime(), nullable=False),
    Index("ix_merged_record_nik", "nik"),
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the registered metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
