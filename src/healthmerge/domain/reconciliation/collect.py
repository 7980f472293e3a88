"""Candidate collection across datasets.

Responsibilities of this stage:
- fan out one identity-index lookup per requested dataset and join them all
- drop misses and records whose NIK does not match the query
- tolerate per-dataset ``LookupFailed`` errors, escalating only when every
  dataset failed

Datasets are visited in sorted id order so that "first seen" is reproducible
for the same selection, whatever order the caller supplied.
"""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from healthmerge.domain.errors import (
    InvalidNik,
    LookupFailed,
    NoDataAvailable,
    NoDatasetsSelected,
)
from healthmerge.domain.model import Candidate, CandidateSet

if TYPE_CHECKING:
    from collections.abc import Iterable

    from healthmerge.domain.model import Dataset, DatasetCatalog, Record
    from healthmerge.domain.ports import IdentityIndex

log = getLogger(__name__)


def normalize_nik(nik: str | None) -> str:
    """Return the trimmed NIK or raise ``InvalidNik`` when it is blank."""

    query = nik.strip() if nik else ""
    if not query:
        raise InvalidNik(nik)
    return query


def select_datasets(dataset_ids: Iterable[str], *, catalog: DatasetCatalog) -> tuple[Dataset, ...]:
    """Resolve a dataset selection to catalog entries, in sorted id order."""

    selection = sorted(set(dataset_ids))
    if not selection:
        raise NoDatasetsSelected
    return tuple(catalog.require(dataset_id) for dataset_id in selection)


async def collect_candidates(
    nik: str,
    dataset_ids: Iterable[str],
    *,
    index: IdentityIndex,
    catalog: DatasetCatalog,
) -> CandidateSet:
    """Look ``nik`` up in every selected dataset and gather the hits."""

    query = normalize_nik(nik)
    datasets = select_datasets(dataset_ids, catalog=catalog)

    outcomes = await asyncio.gather(
        *(index.lookup(query, dataset.id) for dataset in datasets),
        return_exceptions=True,
    )

    candidates: list[Candidate] = []
    failures: list[LookupFailed] = []
    for dataset, outcome in zip(datasets, outcomes, strict=True):
        if isinstance(outcome, LookupFailed):
            log.warning("Lookup of NIK %s in %s failed: %s", query, dataset.id, outcome)
            failures.append(outcome)
            continue
        if isinstance(outcome, BaseException):
            raise outcome
        candidate = _candidate_for(query, dataset, outcome)
        if candidate is not None:
            candidates.append(candidate)

    if failures and len(failures) == len(datasets):
        raise NoDataAvailable(nik=query, failures=failures)

    log.debug(
        "Collected %d candidate(s) for NIK %s from %d dataset(s)",
        len(candidates),
        query,
        len(datasets),
    )
    return CandidateSet(nik=query, candidates=tuple(candidates), failures=tuple(failures))


def _candidate_for(query: str, dataset: Dataset, record: Record | None) -> Candidate | None:
    if record is None:
        return None
    if record.linkage_key != query:
        log.warning(
            "Discarding record %s from %s: NIK %r does not match query %r",
            record.id,
            dataset.id,
            record.nik,
            query,
        )
        return None
    return Candidate(dataset_id=dataset.id, dataset_name=dataset.name, record=record)
