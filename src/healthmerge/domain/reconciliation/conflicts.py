"""Per-field conflict detection across a candidate set."""

from __future__ import annotations

from typing import TYPE_CHECKING

from healthmerge.domain.model import (
    TRACKED_FIELDS,
    FieldConflict,
    FieldConflictReport,
    FieldStatus,
)

if TYPE_CHECKING:
    from healthmerge.domain.model import CandidateSet, TrackedField


def detect_conflicts(candidate_set: CandidateSet) -> FieldConflictReport:
    """Classify every tracked field as unanimous, conflicting or (partially) missing.

    Values compare after trimming whitespace and are case-sensitive. The report
    only depends on the multiset of candidate values, never on their order.
    """

    return FieldConflictReport(
        nik=candidate_set.nik,
        fields=tuple(_classify(tracked, candidate_set) for tracked in TRACKED_FIELDS),
    )


def _classify(tracked: TrackedField, candidate_set: CandidateSet) -> FieldConflict:
    present: set[str] = set()
    missing_in: list[str] = []
    for candidate in candidate_set:
        value = candidate.record.value_of(tracked)
        if value is None:
            missing_in.append(candidate.dataset_id)
            continue
        present.add(value)

    if not present:
        status = FieldStatus.WHOLLY_MISSING
    elif len(present) > 1:
        status = FieldStatus.CONFLICTING
    elif missing_in:
        status = FieldStatus.PARTIALLY_MISSING
    else:
        status = FieldStatus.UNANIMOUS

    return FieldConflict(
        field=tracked,
        status=status,
        values=tuple(sorted(present)),
        missing_in=tuple(sorted(missing_in)),
    )
