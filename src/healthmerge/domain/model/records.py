"""Person records as known to one dataset, and candidate sets built from them."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from healthmerge.domain.errors import LookupFailed
    from healthmerge.domain.model.enums import TrackedField


def clean_value(value: str | None) -> str | None:
    """Return ``value`` trimmed, or ``None`` when it is absent or blank."""

    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def parse_visit(value: str | None) -> datetime | None:
    """Parse an ISO date or timestamp into an aware UTC datetime.

    Plain dates become midnight UTC. Unparsable values yield ``None`` so that
    they rank like a missing visit.
    """

    cleaned = clean_value(value)
    if cleaned is None:
        return None
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(cleaned)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


@dataclass(frozen=True, slots=True, kw_only=True)
class Record:
    """A person record from one dataset. ``nik`` is the only linkage key."""

    id: str
    nik: str
    name: str
    address: str
    date_of_birth: str | None = None
    phone: str | None = None
    last_visit: str | None = None

    def __post_init__(self) -> None:
        if not self.nik or not self.nik.strip():
            raise ValueError("Record nik must be a non-empty string")

    @property
    def linkage_key(self) -> str:
        return self.nik.strip()

    @property
    def last_visit_at(self) -> datetime | None:
        return parse_visit(self.last_visit)

    def value_of(self, tracked: TrackedField) -> str | None:
        """Return the trimmed value of ``tracked`` or ``None`` when blank."""

        return clean_value(getattr(self, tracked.value))

    def with_fields(self, **changes: str | None) -> Record:
        return replace(self, **changes)


@dataclass(frozen=True, slots=True, kw_only=True)
class Candidate:
    """One dataset's record matching a queried NIK."""

    dataset_id: str
    dataset_name: str
    record: Record


@dataclass(frozen=True, slots=True)
class CandidateSet:
    """Records found for one NIK across the requested datasets.

    ``failures`` lists the datasets that could not be read while collecting;
    they are informational and do not take part in equality.
    """

    nik: str
    candidates: tuple[Candidate, ...] = ()
    failures: tuple[LookupFailed, ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for candidate in self.candidates:
            if candidate.record.linkage_key != self.nik:
                raise ValueError(
                    f"Candidate from {candidate.dataset_id!r} has NIK "
                    f"{candidate.record.nik!r}, expected {self.nik!r}"
                )
            if candidate.dataset_id in seen:
                raise ValueError(f"Dataset {candidate.dataset_id!r} contributed more than once")
            seen.add(candidate.dataset_id)

    def __len__(self) -> int:
        return len(self.candidates)

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self.candidates)

    @property
    def dataset_ids(self) -> tuple[str, ...]:
        return tuple(candidate.dataset_id for candidate in self.candidates)
