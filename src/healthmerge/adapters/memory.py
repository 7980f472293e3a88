"""In-process identity index, used for demos and tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from healthmerge.domain.model import Record

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from healthmerge.domain.model import DatasetCatalog


def sample_records() -> dict[str, tuple[Record, ...]]:
    """Demo records: Budi Santoso appears in two sections with differing details."""

    return {
        "seksi-p2p": (
            Record(
                id="rec-001",
                nik="3171234567890001",
                name="Budi Santoso",
                address="Jl. Merdeka No. 1, Jakarta",
                date_of_birth="1985-08-17",
                phone="081234567890",
                last_visit="2024-05-20",
            ),
            Record(
                id="rec-002",
                nik="3171234567890002",
                name="Citra Lestari",
                address="Jl. Pahlawan No. 10, Jakarta",
                date_of_birth="1990-03-22",
                phone="081234567891",
                last_visit="2024-06-11",
            ),
        ),
        "seksi-sdk": (
            Record(
                id="rec-003",
                nik="3273123456789001",
                name="Agus Wijaya",
                address="Jl. Asia Afrika No. 5, Bandung",
                date_of_birth="1979-11-30",
                phone="081234567892",
                last_visit="2024-04-15",
            ),
        ),
        "seksi-kesmas": (
            Record(
                id="rec-004",
                nik="3171234567890001",
                name="Budi S.",
                address="Jl. Merdeka No. 1, Jakarta Pusat",
                date_of_birth="1985-08-17",
                phone=None,
                last_visit="2023-12-01",
            ),
        ),
    }


@dataclass(slots=True)
class InMemoryIdentityIndex:
    """Identity index over records held in memory, keyed by dataset id.

    When a dataset holds several records with the same NIK the first one wins.
    Datasets in the catalog without any records simply have no matches.
    """

    catalog: DatasetCatalog
    records: Mapping[str, Iterable[Record]] = field(default_factory=sample_records)
    _by_key: dict[tuple[str, str], Record] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        by_key: dict[tuple[str, str], Record] = {}
        for dataset_id, dataset_records in self.records.items():
            self.catalog.require(dataset_id)
            for record in dataset_records:
                by_key.setdefault((dataset_id, record.linkage_key), record)
        self._by_key = by_key

    async def lookup(self, nik: str, dataset_id: str) -> Record | None:
        self.catalog.require(dataset_id)
        return self._by_key.get((dataset_id, nik.strip()))
