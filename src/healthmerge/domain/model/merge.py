"""Conflict reports and merged records produced by reconciliation."""

from __future__ import annotations

import math
from dataclasses import dataclass

from healthmerge.domain.model.enums import (
    TRACKED_FIELDS,
    ChoiceReason,
    FieldStatus,
    MergeSource,
    TrackedField,
)
from healthmerge.domain.model.records import Record


def clamp_confidence(value: float) -> float:
    """Clamp a finite confidence score into ``[0, 1]``."""

    if not math.isfinite(value):
        raise ValueError(f"Confidence score must be finite, got {value!r}")
    return min(1.0, max(0.0, float(value)))


@dataclass(frozen=True, slots=True)
class FieldConflict:
    """Classification of one tracked field across a candidate set."""

    field: TrackedField
    status: FieldStatus
    values: tuple[str, ...] = ()
    missing_in: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class FieldConflictReport:
    nik: str
    fields: tuple[FieldConflict, ...]

    def __post_init__(self) -> None:
        if tuple(conflict.field for conflict in self.fields) != TRACKED_FIELDS:
            raise ValueError("Conflict report must cover every tracked field in order")

    def __getitem__(self, tracked: TrackedField) -> FieldConflict:
        return self.fields[TRACKED_FIELDS.index(tracked)]

    def status_of(self, tracked: TrackedField) -> FieldStatus:
        return self[tracked].status

    def fields_with(self, status: FieldStatus) -> tuple[TrackedField, ...]:
        return tuple(conflict.field for conflict in self.fields if conflict.status is status)

    @property
    def unanimous_fields(self) -> tuple[TrackedField, ...]:
        return self.fields_with(FieldStatus.UNANIMOUS)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.fields_with(FieldStatus.CONFLICTING))


@dataclass(frozen=True, slots=True)
class FieldChoice:
    """A fallback decision for one field: the value and the dataset it came from."""

    field: TrackedField
    value: str | None
    reason: ChoiceReason
    dataset_id: str | None = None
    dataset_name: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class MergedRecord:
    """Reconciliation result for one NIK.

    Becomes durable only once a merge session is confirmed; ``explanation``,
    ``confidence_score`` and ``source`` travel with it for auditing.
    """

    id: str
    nik: str
    name: str | None
    address: str | None
    date_of_birth: str | None = None
    phone: str | None = None
    last_visit: str | None = None
    explanation: str
    confidence_score: float
    source: MergeSource
    source_dataset_ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.nik or not self.nik.strip():
            raise ValueError("Merged record nik must be a non-empty string")
        if not math.isfinite(self.confidence_score) or not (
            0.0 <= self.confidence_score <= 1.0
        ):
            raise ValueError(
                f"Confidence score must lie in [0, 1], got {self.confidence_score!r}"
            )

    def value_of(self, tracked: TrackedField) -> str | None:
        return getattr(self, tracked.value)

    def as_record(self) -> Record:
        """Return the merged fields as a plain person record."""

        return Record(
            id=self.id,
            nik=self.nik,
            name=self.name or "",
            address=self.address or "",
            date_of_birth=self.date_of_birth,
            phone=self.phone,
            last_visit=self.last_visit,
        )
