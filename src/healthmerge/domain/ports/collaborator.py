"""Port for the external reconciliation collaborator (a hosted language model).

The collaborator is unreliable by assumption: it may time out, be unreachable,
or answer with data that does not belong to the queried NIK. Implementations
raise ``CollaboratorError`` subclasses; the engine validates whatever comes
back before trusting it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from healthmerge.domain.model import Candidate, CandidateSet, Record

MIN_COLLABORATOR_CANDIDATES = 2


@dataclass(frozen=True, slots=True)
class CollaboratorRequest:
    nik: str
    candidates: tuple[Candidate, ...]

    def __post_init__(self) -> None:
        if len(self.candidates) < MIN_COLLABORATOR_CANDIDATES:
            raise ValueError(
                f"Collaborator requests need at least {MIN_COLLABORATOR_CANDIDATES} candidates"
            )

    @classmethod
    def from_candidate_set(cls, candidate_set: CandidateSet) -> CollaboratorRequest:
        return cls(nik=candidate_set.nik, candidates=candidate_set.candidates)


@dataclass(frozen=True, slots=True)
class CollaboratorResponse:
    """Shape-validated, not yet trusted, collaborator answer."""

    merged_record: Record
    explanation: str
    confidence_score: float


@runtime_checkable
class ReconciliationCollaborator(Protocol):
    """Callable port merging two or more candidates into one record."""

    async def __call__(self, request: CollaboratorRequest) -> CollaboratorResponse: ...


__all__ = [
    "MIN_COLLABORATOR_CANDIDATES",
    "CollaboratorRequest",
    "CollaboratorResponse",
    "ReconciliationCollaborator",
]
