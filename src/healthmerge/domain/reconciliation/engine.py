"""Reconciliation engine: one merged record per candidate set.

- one candidate: trivial merge, confidence 1.0, collaborator never called
- several candidates: ask the collaborator within a timeout, validate its
  answer, and fall back to the deterministic policy on any collaborator error
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from healthmerge.domain.errors import (
    CollaboratorError,
    CollaboratorTimeout,
    InvalidCollaboratorResponse,
    NoCandidates,
)
from healthmerge.domain.model import MergedRecord, MergeSource, clamp_confidence
from healthmerge.domain.ports.collaborator import CollaboratorRequest

from .conflicts import detect_conflicts
from .fallback import most_trusted_candidate, reconcile_deterministically

if TYPE_CHECKING:
    from healthmerge.domain.model import CandidateSet, FieldConflictReport
    from healthmerge.domain.ports import CollaboratorResponse, ReconciliationCollaborator

log = getLogger(__name__)

SINGLE_RECORD_EXPLANATION = "Only one record was found, so no merge was necessary."
DEFAULT_COLLABORATOR_TIMEOUT_SECONDS = 20.0


def merge_single_candidate(candidate_set: CandidateSet) -> MergedRecord:
    """Return the sole candidate's fields verbatim with full confidence."""

    if len(candidate_set) != 1:
        raise ValueError(f"Expected exactly one candidate, got {len(candidate_set)}")
    candidate = candidate_set.candidates[0]
    record = candidate.record
    return MergedRecord(
        id=record.id,
        nik=candidate_set.nik,
        name=record.name,
        address=record.address,
        date_of_birth=record.date_of_birth,
        phone=record.phone,
        last_visit=record.last_visit,
        explanation=SINGLE_RECORD_EXPLANATION,
        confidence_score=1.0,
        source=MergeSource.SINGLE_RECORD,
        source_dataset_ids=(candidate.dataset_id,),
    )


def validate_collaborator_response(
    response: CollaboratorResponse,
    *,
    candidate_set: CandidateSet,
) -> MergedRecord:
    """Turn a collaborator answer into a merged record, or reject it."""

    record = response.merged_record
    if record.linkage_key != candidate_set.nik:
        raise InvalidCollaboratorResponse(
            f"Collaborator answered for NIK {record.nik!r}, expected {candidate_set.nik!r}"
        )
    if not response.explanation or not response.explanation.strip():
        raise InvalidCollaboratorResponse("Collaborator returned an empty explanation")
    if not math.isfinite(response.confidence_score):
        raise InvalidCollaboratorResponse(
            f"Collaborator returned a non-finite confidence: {response.confidence_score!r}"
        )

    confidence = clamp_confidence(response.confidence_score)
    if confidence != response.confidence_score:
        log.warning(
            "Clamped collaborator confidence %s to %s for NIK %s",
            response.confidence_score,
            confidence,
            candidate_set.nik,
        )

    record_id = record.id.strip() if record.id else ""
    return MergedRecord(
        id=record_id or most_trusted_candidate(candidate_set).record.id,
        nik=candidate_set.nik,
        name=record.name,
        address=record.address,
        date_of_birth=record.date_of_birth,
        phone=record.phone,
        last_visit=record.last_visit,
        explanation=response.explanation,
        confidence_score=confidence,
        source=MergeSource.COLLABORATOR,
        source_dataset_ids=candidate_set.dataset_ids,
    )


@dataclass(slots=True)
class ReconciliationEngine:
    """Produce exactly one merged record from a non-empty candidate set."""

    collaborator: ReconciliationCollaborator | None = None
    timeout_seconds: float = DEFAULT_COLLABORATOR_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise ValueError("Collaborator timeout must be positive")

    async def reconcile(
        self,
        candidate_set: CandidateSet,
        *,
        report: FieldConflictReport | None = None,
    ) -> MergedRecord:
        if not candidate_set.candidates:
            raise NoCandidates(candidate_set.nik)
        if len(candidate_set) == 1:
            return merge_single_candidate(candidate_set)

        effective_report = report or detect_conflicts(candidate_set)
        if self.collaborator is None:
            log.debug("No reconciliation collaborator configured for NIK %s", candidate_set.nik)
            return reconcile_deterministically(candidate_set, report=effective_report)

        try:
            return await self._reconcile_via_collaborator(candidate_set)
        except CollaboratorError as exc:
            log.warning(
                "Falling back to deterministic merge for NIK %s: %s",
                candidate_set.nik,
                exc,
            )
            return reconcile_deterministically(candidate_set, report=effective_report)

    async def _reconcile_via_collaborator(self, candidate_set: CandidateSet) -> MergedRecord:
        collaborator = self.collaborator
        if collaborator is None:
            raise RuntimeError("No reconciliation collaborator configured")
        request = CollaboratorRequest.from_candidate_set(candidate_set)
        try:
            async with asyncio.timeout(self.timeout_seconds):
                response = await collaborator(request)
        except TimeoutError as exc:
            raise CollaboratorTimeout(self.timeout_seconds) from exc
        return validate_collaborator_response(response, candidate_set=candidate_set)
