"""Public domain model surface."""

from __future__ import annotations

from healthmerge.domain.model.datasets import Dataset, DatasetCatalog
from healthmerge.domain.model.enums import (
    TRACKED_FIELDS,
    ChoiceReason,
    FieldStatus,
    MergeSource,
    SessionState,
    TrackedField,
)
from healthmerge.domain.model.merge import (
    FieldChoice,
    FieldConflict,
    FieldConflictReport,
    MergedRecord,
    clamp_confidence,
)
from healthmerge.domain.model.records import (
    Candidate,
    CandidateSet,
    Record,
    clean_value,
    parse_visit,
)

__all__ = [  # noqa: RUF022
    # records
    "Record",
    "Candidate",
    "CandidateSet",
    "clean_value",
    "parse_visit",
    # datasets
    "Dataset",
    "DatasetCatalog",
    # reconciliation results
    "FieldChoice",
    "FieldConflict",
    "FieldConflictReport",
    "MergedRecord",
    "clamp_confidence",
    # enums
    "TRACKED_FIELDS",
    "ChoiceReason",
    "FieldStatus",
    "MergeSource",
    "SessionState",
    "TrackedField",
]
