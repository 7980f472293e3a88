"""Known health-office datasets searchable by NIK."""

from __future__ import annotations

from typing import Final

from healthmerge.domain.model import DatasetCatalog

from .env import optional_env_var
from .errors import ConfigurationError

DEFAULT_DATASETS: Final[tuple[tuple[str, str], ...]] = (
    ("seksi-p2p", "Seksi Pencegahan dan Penanggulangan Penyakit"),
    ("seksi-sdk", "Seksi Sumber Daya Kesehatan"),
    ("seksi-kesmas", "Seksi Kesehatan Masyarakat"),
    ("seksi-yankes", "Seksi Pelayanan Kesehatan"),
)


def parse_dataset_spec(value: str) -> tuple[tuple[str, str], ...]:
    """Parse ``"id=Name;other-id=Other Name"`` into (id, name) pairs."""

    pairs: list[tuple[str, str]] = []
    for chunk in value.split(";"):
        entry = chunk.strip()
        if not entry:
            continue
        dataset_id, separator, name = entry.partition("=")
        dataset_id = dataset_id.strip()
        name = name.strip()
        if not separator or not dataset_id or not name:
            raise ConfigurationError(f"Invalid dataset entry {entry!r}; expected 'id=Name'")
        pairs.append((dataset_id, name))
    if not pairs:
        raise ConfigurationError("Dataset configuration is empty")
    return tuple(pairs)


def get_dataset_catalog() -> DatasetCatalog:
    raw = optional_env_var("HEALTHMERGE_DATASETS")
    pairs = parse_dataset_spec(raw) if raw is not None else DEFAULT_DATASETS
    try:
        return DatasetCatalog.from_pairs(pairs)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
