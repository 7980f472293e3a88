from __future__ import annotations

import asyncio

import pytest

from healthmerge.adapters.memory import InMemoryIdentityIndex, sample_records
from healthmerge.domain.errors import NotConfigured
from healthmerge.domain.model import DatasetCatalog
from healthmerge.domain.reconciliation import collect_candidates
from tests.helpers.records import BUDI_NIK, make_record


def test_sample_records_hold_budi_in_two_sections(catalog: DatasetCatalog) -> None:
    index = InMemoryIdentityIndex(catalog=catalog)

    result = asyncio.run(
        collect_candidates(BUDI_NIK, catalog.ids, index=index, catalog=catalog)
    )

    assert result.dataset_ids == ("seksi-kesmas", "seksi-p2p")
    assert {c.record.id for c in result} == {"rec-001", "rec-004"}


def test_lookup_miss_and_trimmed_nik(catalog: DatasetCatalog) -> None:
    index = InMemoryIdentityIndex(catalog=catalog)

    assert asyncio.run(index.lookup("9999", "seksi-p2p")) is None
    hit = asyncio.run(index.lookup(f" {BUDI_NIK} ", "seksi-p2p"))
    assert hit is not None
    assert hit.id == "rec-001"


def test_first_record_wins_for_duplicate_nik(catalog: DatasetCatalog) -> None:
    index = InMemoryIdentityIndex(
        catalog=catalog,
        records={"seksi-sdk": [make_record("first"), make_record("second")]},
    )

    hit = asyncio.run(index.lookup(BUDI_NIK, "seksi-sdk"))

    assert hit is not None
    assert hit.id == "first"


def test_unknown_dataset_is_not_configured(catalog: DatasetCatalog) -> None:
    index = InMemoryIdentityIndex(catalog=catalog, records={})

    with pytest.raises(NotConfigured):
        asyncio.run(index.lookup(BUDI_NIK, "seksi-unknown"))
    with pytest.raises(NotConfigured):
        InMemoryIdentityIndex(catalog=catalog, records={"seksi-unknown": []})


def test_sample_records_are_fresh_copies() -> None:
    assert sample_records() == sample_records()
    assert sample_records() is not sample_records()
