"""Deterministic fallback reconciliation policy.

Used whenever the external collaborator is absent, times out or answers with
something unusable. Identical candidate sets always produce identical merged
records, explanation included.

Field policy:
- unanimous: take the shared value
- conflicting / partially missing: take the value of the best-ranked candidate
  holding one, ranking by most recent visit, then longest value, then first seen
- wholly missing: leave empty

Confidence is the share of tracked fields that are unanimous.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from healthmerge.domain.errors import NoCandidates
from healthmerge.domain.model import (
    TRACKED_FIELDS,
    ChoiceReason,
    FieldChoice,
    FieldStatus,
    MergedRecord,
    MergeSource,
    TrackedField,
    clamp_confidence,
)

from .conflicts import detect_conflicts

if TYPE_CHECKING:
    from healthmerge.domain.model import (
        Candidate,
        CandidateSet,
        FieldConflict,
        FieldConflictReport,
        Record,
    )

type RecencyKey = tuple[int, float]
type _Holder = tuple[int, Candidate, str]


def _recency_key(record: Record) -> RecencyKey:
    visit = record.last_visit_at
    if visit is None:
        return (1, 0.0)
    return (0, -visit.timestamp())


def _holder_key(holder: _Holder) -> tuple[RecencyKey, int, int]:
    position, candidate, value = holder
    return (_recency_key(candidate.record), -len(value), position)


def most_trusted_candidate(candidate_set: CandidateSet) -> Candidate:
    """Return the candidate with the most recent visit, earliest listed on ties."""

    if not candidate_set.candidates:
        raise NoCandidates(candidate_set.nik)
    ranked = sorted(
        enumerate(candidate_set.candidates),
        key=lambda item: (_recency_key(item[1].record), item[0]),
    )
    return ranked[0][1]


def plan_field_choices(
    candidate_set: CandidateSet,
    report: FieldConflictReport,
) -> tuple[FieldChoice, ...]:
    """Decide, per tracked field, which value the fallback merge keeps."""

    return tuple(_choose(conflict, candidate_set) for conflict in report.fields)


def _choose(conflict: FieldConflict, candidate_set: CandidateSet) -> FieldChoice:
    tracked = conflict.field
    if conflict.status is FieldStatus.WHOLLY_MISSING:
        return FieldChoice(field=tracked, value=None, reason=ChoiceReason.MISSING)
    if conflict.status is FieldStatus.UNANIMOUS:
        return FieldChoice(field=tracked, value=conflict.values[0], reason=ChoiceReason.UNANIMOUS)

    holders: list[_Holder] = []
    for position, candidate in enumerate(candidate_set.candidates):
        value = candidate.record.value_of(tracked)
        if value is not None:
            holders.append((position, candidate, value))
    ranked = sorted(holders, key=_holder_key)
    _, winner, value = ranked[0]

    if conflict.status is FieldStatus.PARTIALLY_MISSING:
        reason = ChoiceReason.ONLY_VALUE
    else:
        rival = next(holder for holder in ranked if holder[2] != value)
        reason = _reason_against(ranked[0], rival)

    return FieldChoice(
        field=tracked,
        value=value,
        reason=reason,
        dataset_id=winner.dataset_id,
        dataset_name=winner.dataset_name,
    )


def _reason_against(winner: _Holder, rival: _Holder) -> ChoiceReason:
    winner_recency, winner_length, _ = _holder_key(winner)
    rival_recency, rival_length, _ = _holder_key(rival)
    if winner_recency != rival_recency:
        return ChoiceReason.MOST_RECENT
    if winner_length != rival_length:
        return ChoiceReason.MOST_COMPLETE
    return ChoiceReason.FIRST_LISTED


def fallback_confidence(report: FieldConflictReport) -> float:
    return clamp_confidence(len(report.unanimous_fields) / len(TRACKED_FIELDS))


def explain_choices(
    candidate_set: CandidateSet,
    choices: tuple[FieldChoice, ...],
    *,
    unanimous: int,
) -> str:
    count = len(candidate_set)
    lines = [f"Deterministic merge of {count} records for NIK {candidate_set.nik}."]
    for choice in choices:
        label = choice.field.value.replace("_", " ")
        match choice.reason:
            case ChoiceReason.UNANIMOUS:
                lines.append(f"- {label}: identical in all {count} sources.")
            case ChoiceReason.MISSING:
                lines.append(f"- {label}: missing in all sources.")
            case ChoiceReason.ONLY_VALUE:
                lines.append(f"- {label}: only value present, taken from {choice.dataset_name}.")
            case _:
                lines.append(
                    f"- {label}: chose value from {choice.dataset_name} ({choice.reason.value})."
                )
    lines.append(
        f"Confidence reflects {unanimous} of {len(TRACKED_FIELDS)} fields agreeing across sources."
    )
    return "\n".join(lines)


def reconcile_deterministically(
    candidate_set: CandidateSet,
    *,
    report: FieldConflictReport | None = None,
) -> MergedRecord:
    """Merge ``candidate_set`` with the fallback policy."""

    if not candidate_set.candidates:
        raise NoCandidates(candidate_set.nik)

    effective_report = report or detect_conflicts(candidate_set)
    choices = plan_field_choices(candidate_set, effective_report)
    values = {choice.field: choice.value for choice in choices}
    trusted = most_trusted_candidate(candidate_set)

    return MergedRecord(
        id=trusted.record.id,
        nik=candidate_set.nik,
        name=values[TrackedField.NAME],
        address=values[TrackedField.ADDRESS],
        date_of_birth=values[TrackedField.DATE_OF_BIRTH],
        phone=values[TrackedField.PHONE],
        last_visit=values[TrackedField.LAST_VISIT],
        explanation=explain_choices(
            candidate_set,
            choices,
            unanimous=len(effective_report.unanimous_fields),
        ),
        confidence_score=fallback_confidence(effective_report),
        source=MergeSource.FALLBACK,
        source_dataset_ids=candidate_set.dataset_ids,
    )
