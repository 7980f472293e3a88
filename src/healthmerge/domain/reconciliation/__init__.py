"""Record reconciliation core: collect, detect conflicts, merge, confirm.

Layered flow:
1) collect one candidate per dataset holding the queried NIK
2) classify every tracked field across the candidates
3) merge via the external collaborator, or the deterministic fallback
4) hold the proposal in a merge session until the user confirms it
"""

from __future__ import annotations

from .collect import collect_candidates, normalize_nik, select_datasets
from .conflicts import detect_conflicts
from .engine import (
    DEFAULT_COLLABORATOR_TIMEOUT_SECONDS,
    SINGLE_RECORD_EXPLANATION,
    ReconciliationEngine,
    merge_single_candidate,
    validate_collaborator_response,
)
from .fallback import most_trusted_candidate, plan_field_choices, reconcile_deterministically
from .session import MergeSession, SessionSnapshot

__all__ = [
    "DEFAULT_COLLABORATOR_TIMEOUT_SECONDS",
    "SINGLE_RECORD_EXPLANATION",
    "MergeSession",
    "ReconciliationEngine",
    "SessionSnapshot",
    "collect_candidates",
    "detect_conflicts",
    "merge_single_candidate",
    "most_trusted_candidate",
    "normalize_nik",
    "plan_field_choices",
    "reconcile_deterministically",
    "select_datasets",
    "validate_collaborator_response",
]
