"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, cast

from sqlalchemy import func, select

from healthmerge.adapters.sqlalchemy.mappings import merged_record_table, person_record_table
from healthmerge.domain.model import MergedRecord, MergeSource, Record

if TYPE_CHECKING:
    from sqlalchemy import Row
    from sqlalchemy.orm import Session


def _record_from_row(row: Row[tuple[object, ...]]) -> Record:
    return Record(
        id=row.record_id,
        nik=row.nik,
        name=row.name,
        address=row.address,
        date_of_birth=row.date_of_birth,
        phone=row.phone,
        last_visit=row.last_visit,
    )


class SqlAlchemyPersonRecordRepository:
    """One record per (dataset, NIK); re-importing a NIK replaces its record."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def put(self, dataset_id: str, record: Record) -> None:
        values = {
            "record_id": record.id,
            "name": record.name,
            "address": record.address,
            "date_of_birth": record.date_of_birth,
            "phone": record.phone,
            "last_visit": record.last_visit,
            "imported_at": datetime.now(UTC),
        }
        existing = self.session.execute(
            select(person_record_table.c.id)
            .where(person_record_table.c.dataset_id == dataset_id)
            .where(person_record_table.c.nik == record.linkage_key)
        ).scalar_one_or_none()
        if existing is None:
            stmt = person_record_table.insert().values(
                dataset_id=dataset_id, nik=record.linkage_key, **values
            )
        else:
            stmt = (
                person_record_table.update()
                .where(person_record_table.c.id == existing)
                .values(**values)
            )
        self.session.execute(stmt)

    def get(self, dataset_id: str, nik: str) -> Record | None:
        stmt = (
            select(person_record_table)
            .where(person_record_table.c.dataset_id == dataset_id)
            .where(person_record_table.c.nik == nik)
        )
        row = self.session.execute(stmt).first()
        return _record_from_row(row) if row is not None else None

    def count(self, dataset_id: str | None = None) -> int:
        stmt = select(func.count()).select_from(person_record_table)
        if dataset_id is not None:
            stmt = stmt.where(person_record_table.c.dataset_id == dataset_id)
        return int(self.session.execute(stmt).scalar_one())


class SqlAlchemyMergedRecordRepository:
    """Audit trail of merged records the user confirmed."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: MergedRecord, *, confirmed_at: datetime | None = None) -> None:
        stmt = merged_record_table.insert().values(
            record_id=entity.id,
            nik=entity.nik,
            name=entity.name,
            address=entity.address,
            date_of_birth=entity.date_of_birth,
            phone=entity.phone,
            last_visit=entity.last_visit,
            explanation=entity.explanation,
            confidence_score=entity.confidence_score,
            source=entity.source,
            source_dataset_ids=entity.source_dataset_ids,
            confirmed_at=confirmed_at or datetime.now(UTC),
        )
        self.session.execute(stmt)

    def list_for_nik(self, nik: str) -> list[MergedRecord]:
        stmt = (
            select(merged_record_table)
            .where(merged_record_table.c.nik == nik)
            .order_by(merged_record_table.c.confirmed_at)
        )
        return [
            MergedRecord(
                id=row.record_id,
                nik=row.nik,
                name=row.name,
                address=row.address,
                date_of_birth=row.date_of_birth,
                phone=row.phone,
                last_visit=row.last_visit,
                explanation=row.explanation,
                confidence_score=row.confidence_score,
                source=MergeSource(row.source),
                source_dataset_ids=tuple(row.source_dataset_ids),
            )
            for row in self.session.execute(stmt)
        ]


if TYPE_CHECKING:
    from healthmerge.domain.ports.persistence import (
        MergedRecordRepository,
        PersonRecordRepository,
    )

    _session_stub = cast("Session", object())
    _person_repo: PersonRecordRepository = SqlAlchemyPersonRecordRepository(_session_stub)
    _merged_repo: MergedRecordRepository = SqlAlchemyMergedRecordRepository(_session_stub)
