"""Ports for persisting person records and confirmed merges."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from healthmerge.domain.model import MergedRecord, Record


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class MergedRecordRepository(Repository["MergedRecord"], Protocol):
    """Persistence contract for confirmed merged records."""

    def add(self, entity: MergedRecord, *, confirmed_at: datetime | None = None) -> None: ...

    def list_for_nik(self, nik: str) -> list[MergedRecord]: ...


@runtime_checkable
class PersonRecordRepository(Protocol):
    """Persistence contract for per-dataset person records."""

    def put(self, dataset_id: str, record: Record) -> None: ...

    def get(self, dataset_id: str, nik: str) -> Record | None: ...

    def count(self, dataset_id: str | None = None) -> int: ...
