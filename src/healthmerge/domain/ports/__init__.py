"""Domain port definitions for adapters."""

from __future__ import annotations

from .collaborator import (
    MIN_COLLABORATOR_CANDIDATES,
    CollaboratorRequest,
    CollaboratorResponse,
    ReconciliationCollaborator,
)
from .identity_index import IdentityIndex
from .persistence import MergedRecordRepository, PersonRecordRepository, Repository
from .unit_of_work import (
    MergeRepositories,
    MergeUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "MIN_COLLABORATOR_CANDIDATES",
    "CollaboratorRequest",
    "CollaboratorResponse",
    "IdentityIndex",
    "MergeRepositories",
    "MergeUnitOfWork",
    "MergedRecordRepository",
    "PersonRecordRepository",
    "ReconciliationCollaborator",
    "Repository",
    "RepositoryCollection",
    "UnitOfWork",
]
