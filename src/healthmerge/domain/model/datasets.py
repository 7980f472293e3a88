"""Known datasets (health-office sections) that can be searched by NIK."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from healthmerge.domain.errors import NotConfigured

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


@dataclass(frozen=True, slots=True)
class Dataset:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class DatasetCatalog:
    """Enumerated set of dataset identifiers with their display names."""

    datasets: tuple[Dataset, ...]
    _by_id: dict[str, Dataset] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_id: dict[str, Dataset] = {}
        for dataset in self.datasets:
            if dataset.id in by_id:
                raise ValueError(f"Duplicate dataset id: {dataset.id!r}")
            by_id[dataset.id] = dataset
        object.__setattr__(self, "_by_id", by_id)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> DatasetCatalog:
        return cls(tuple(Dataset(id=dataset_id, name=name) for dataset_id, name in pairs))

    def __contains__(self, dataset_id: object) -> bool:
        return dataset_id in self._by_id

    def __iter__(self) -> Iterator[Dataset]:
        return iter(self.datasets)

    def __len__(self) -> int:
        return len(self.datasets)

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(dataset.id for dataset in self.datasets)

    def require(self, dataset_id: str) -> Dataset:
        """Return the dataset for ``dataset_id`` or raise ``NotConfigured``."""

        dataset = self._by_id.get(dataset_id)
        if dataset is None:
            raise NotConfigured(dataset_id)
        return dataset
