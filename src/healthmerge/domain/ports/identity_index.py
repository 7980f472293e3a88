"""Read port for looking up person records by NIK in one dataset."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from healthmerge.domain.model import Record


@runtime_checkable
class IdentityIndex(Protocol):
    """Map a (NIK, dataset) pair to at most one record.

    Implementations raise ``NotConfigured`` for unknown dataset ids and
    ``LookupFailed`` when their backing store cannot be read. Lookups are
    side-effect free and safe to run concurrently.
    """

    async def lookup(self, nik: str, dataset_id: str) -> Record | None: ...


__all__ = ["IdentityIndex"]
