"""SQLAlchemy adapter package for healthmerge."""

from __future__ import annotations

from .identity_index import SqlAlchemyIdentityIndex
from .mappings import (
    create_all_tables,
    mapper_registry,
    merged_record_table,
    person_record_table,
)
from .repositories import SqlAlchemyMergedRecordRepository, SqlAlchemyPersonRecordRepository
from .unit_of_work import (
    SqlAlchemyMergeUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyIdentityIndex",
    "SqlAlchemyMergeUnitOfWork",
    "SqlAlchemyMergedRecordRepository",
    "SqlAlchemyPersonRecordRepository",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "merged_record_table",
    "person_record_table",
    "shutdown",
    "startup",
]
