from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.exc import OperationalError

from healthmerge.adapters.sqlalchemy import SqlAlchemyIdentityIndex
from healthmerge.adapters.sqlalchemy import identity_index as identity_index_module
from healthmerge.domain.errors import LookupFailed, NotConfigured
from healthmerge.domain.reconciliation import collect_candidates
from tests.helpers.records import BUDI_NIK, budi_kesmas, budi_p2p

if TYPE_CHECKING:
    from collections.abc import Callable

    from healthmerge.adapters.sqlalchemy import SqlAlchemyMergeUnitOfWork
    from healthmerge.domain.model import DatasetCatalog, Record


def _seed(uow_factory: Callable[[], SqlAlchemyMergeUnitOfWork]) -> None:
    with uow_factory() as uow:
        uow.repositories.person_records.put("seksi-p2p", budi_p2p())
        uow.repositories.person_records.put("seksi-kesmas", budi_kesmas())
        uow.commit()


def test_collects_imported_records(
    sqlite_unit_of_work: Callable[[], SqlAlchemyMergeUnitOfWork],
    catalog: DatasetCatalog,
) -> None:
    _seed(sqlite_unit_of_work)
    index = SqlAlchemyIdentityIndex(catalog=catalog)

    result = asyncio.run(collect_candidates(BUDI_NIK, catalog.ids, index=index, catalog=catalog))

    assert result.dataset_ids == ("seksi-kesmas", "seksi-p2p")
    assert [c.record for c in result] == [budi_kesmas(), budi_p2p()]


def test_unknown_dataset_is_not_configured(
    sqlite_unit_of_work: Callable[[], SqlAlchemyMergeUnitOfWork],
    catalog: DatasetCatalog,
) -> None:
    _ = sqlite_unit_of_work
    index = SqlAlchemyIdentityIndex(catalog=catalog)

    with pytest.raises(NotConfigured):
        asyncio.run(index.lookup(BUDI_NIK, "seksi-unknown"))


def test_database_errors_become_lookup_failures(
    sqlite_unit_of_work: Callable[[], SqlAlchemyMergeUnitOfWork],
    catalog: DatasetCatalog,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _ = sqlite_unit_of_work

    class _BrokenRepository:
        def __init__(self, _session: object) -> None:
            pass

        def get(self, dataset_id: str, nik: str) -> Record | None:
            raise OperationalError(f"SELECT {dataset_id} {nik}", {}, Exception("locked"))

    monkeypatch.setattr(
        identity_index_module, "SqlAlchemyPersonRecordRepository", _BrokenRepository
    )
    index = SqlAlchemyIdentityIndex(catalog=catalog)

    with pytest.raises(LookupFailed) as excinfo:
        asyncio.run(index.lookup(BUDI_NIK, "seksi-p2p"))

    assert excinfo.value.dataset_id == "seksi-p2p"
