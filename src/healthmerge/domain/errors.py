"""Error taxonomy for record collection, reconciliation and merge sessions.

Only total failures (``NoDataAvailable`` and friends) are meant to reach end
users. Per-dataset lookup failures degrade the candidate set, and collaborator
failures are recovered by the deterministic fallback policy.
"""

from __future__ import annotations

from collections.abc import Sequence


class MergeError(Exception):
    """Base class for all record-merge errors."""


class NotConfigured(MergeError):
    """Raised when a dataset identifier is unknown to the identity index."""

    def __init__(self, dataset_id: str) -> None:
        self.dataset_id = dataset_id
        super().__init__(f"Dataset is not configured: {dataset_id!r}")


class LookupFailed(MergeError):
    """Raised when one dataset could not be read."""

    def __init__(self, dataset_id: str, *, reason: str | None = None) -> None:
        self.dataset_id = dataset_id
        self.reason = reason
        message = f"Lookup failed for dataset {dataset_id!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class NoDataAvailable(MergeError):
    """Raised when every requested dataset failed to answer."""

    def __init__(self, *, nik: str, failures: Sequence[LookupFailed]) -> None:
        self.nik = nik
        self.failures = tuple(failures)
        datasets = ", ".join(failure.dataset_id for failure in self.failures)
        super().__init__(f"Search failed for NIK {nik}: no dataset answered ({datasets})")


class NoCandidates(MergeError):
    """Raised when reconciliation is requested for an empty candidate set."""

    def __init__(self, nik: str) -> None:
        self.nik = nik
        super().__init__(f"No candidate records to reconcile for NIK {nik}")


class InvalidNik(MergeError, ValueError):
    """Raised when a blank national identity number is submitted."""

    def __init__(self, nik: str | None) -> None:
        self.nik = nik
        super().__init__("NIK must be a non-empty string")


class NoDatasetsSelected(MergeError, ValueError):
    """Raised when a search names no datasets at all."""

    def __init__(self) -> None:
        super().__init__("At least one dataset must be selected")


class InvalidSessionTransition(MergeError):
    """Raised when a merge session operation is not allowed in its current state."""

    def __init__(self, operation: str, state: str) -> None:
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} while session is {state}")


class CollaboratorError(MergeError):
    """Base class for failures of the external reconciliation collaborator."""


class InvalidCollaboratorResponse(CollaboratorError):
    """Raised when the collaborator answers with a malformed or mismatched payload."""


class CollaboratorTimeout(CollaboratorError):
    """Raised when the collaborator does not answer within the configured ceiling."""

    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Reconciliation collaborator timed out after {timeout_seconds}s")


class CollaboratorUnavailable(CollaboratorError):
    """Raised when the collaborator cannot be reached at all."""
