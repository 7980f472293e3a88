"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from pydantic import ValidationError

from healthmerge.adapters.document_store import HttpIdentityIndex
from healthmerge.adapters.memory import InMemoryIdentityIndex, sample_records
from healthmerge.adapters.model import ModelReconciliationClient
from healthmerge.adapters.record_schema import RecordPayload
from healthmerge.adapters.sqlalchemy import (
    SqlAlchemyIdentityIndex,
    SqlAlchemyMergeUnitOfWork,
    is_started,
    startup,
)
from healthmerge.config import get_collaborator_config, get_dataset_catalog
from healthmerge.domain.model import SessionState
from healthmerge.domain.ports.unit_of_work import MergeUnitOfWork
from healthmerge.domain.reconciliation import (
    MergeSession,
    ReconciliationEngine,
    collect_candidates,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from healthmerge.domain.model import CandidateSet, DatasetCatalog
    from healthmerge.domain.ports import IdentityIndex
    from healthmerge.domain.reconciliation import SessionSnapshot

type IndexKind = Literal["sql", "http", "memory"]
UnitOfWorkFactory = Callable[[], MergeUnitOfWork]

INDEX_KINDS: tuple[IndexKind, ...] = ("sql", "http", "memory")

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LoadRecordsResult:
    dataset_id: str
    loaded: int
    skipped: int


def ensure_started(database_uri: str | None = None) -> None:
    """Start the SQLAlchemy adapter unless it already runs."""

    if not is_started():
        startup(database_uri=database_uri)


def build_identity_index(
    kind: IndexKind = "sql",
    *,
    catalog: DatasetCatalog | None = None,
) -> IdentityIndex:
    effective_catalog = catalog or get_dataset_catalog()
    if kind == "sql":
        ensure_started()
        return SqlAlchemyIdentityIndex(catalog=effective_catalog)
    if kind == "http":
        return HttpIdentityIndex(catalog=effective_catalog)
    if kind == "memory":
        records = {
            dataset_id: dataset_records
            for dataset_id, dataset_records in sample_records().items()
            if dataset_id in effective_catalog
        }
        return InMemoryIdentityIndex(catalog=effective_catalog, records=records)
    raise ValueError(f"Unknown identity index: {kind}")


def build_reconciliation_engine(*, use_model: bool = True) -> ReconciliationEngine:
    """Engine backed by the configured model, or the deterministic fallback alone."""

    config = get_collaborator_config() if use_model else None
    if config is None:
        log.info("No reconciliation model configured; using deterministic merges")
        return ReconciliationEngine()
    return ReconciliationEngine(
        collaborator=ModelReconciliationClient(config=config),
        timeout_seconds=config.timeout_seconds,
    )


def search_nik(
    nik: str,
    dataset_ids: Iterable[str] | None = None,
    *,
    index: IdentityIndex | None = None,
    catalog: DatasetCatalog | None = None,
) -> CandidateSet:
    """Find the records holding ``nik`` in the selected datasets, without merging."""

    effective_catalog = catalog or get_dataset_catalog()
    effective_index = index or build_identity_index(catalog=effective_catalog)
    selection = tuple(dataset_ids) if dataset_ids is not None else effective_catalog.ids
    candidate_set = asyncio.run(
        collect_candidates(nik, selection, index=effective_index, catalog=effective_catalog)
    )
    log.info(
        "Search for NIK %s found %s record(s) in %s dataset(s); %s failed",
        candidate_set.nik,
        len(candidate_set),
        len(selection),
        len(candidate_set.failures),
    )
    return candidate_set


def merge_nik(
    nik: str,
    dataset_ids: Iterable[str] | None = None,
    *,
    confirm: bool = False,
    use_model: bool = True,
    index: IdentityIndex | None = None,
    catalog: DatasetCatalog | None = None,
    engine: ReconciliationEngine | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SessionSnapshot:
    """Search ``nik``, propose a merged record and optionally confirm it."""

    effective_catalog = catalog or get_dataset_catalog()
    effective_index = index or build_identity_index(catalog=effective_catalog)
    effective_engine = engine or build_reconciliation_engine(use_model=use_model)
    effective_uow = unit_of_work_factory
    if confirm and effective_uow is None:
        ensure_started()
        effective_uow = SqlAlchemyMergeUnitOfWork

    session = MergeSession(
        index=effective_index,
        catalog=effective_catalog,
        engine=effective_engine,
        unit_of_work_factory=effective_uow,
    )
    selection = tuple(dataset_ids) if dataset_ids is not None else effective_catalog.ids
    snapshot = asyncio.run(session.search(nik, selection))
    if confirm and snapshot.state is SessionState.PROPOSED:
        session.confirm()
        snapshot = session.snapshot
    return snapshot


def load_records(
    dataset_id: str,
    path: Path,
    *,
    catalog: DatasetCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> LoadRecordsResult:
    """Import JSON Lines person records into one dataset.

    Lines that do not validate are skipped with a warning. A NIK already
    present in the dataset is replaced.
    """

    effective_catalog = catalog or get_dataset_catalog()
    effective_catalog.require(dataset_id)
    effective_uow = unit_of_work_factory
    if effective_uow is None:
        ensure_started()
        effective_uow = SqlAlchemyMergeUnitOfWork

    loaded = 0
    skipped = 0
    with path.open(encoding="utf-8") as handle, effective_uow() as uow:
        repository = uow.repositories.person_records
        for line_number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                payload = RecordPayload.model_validate_json(line)
            except ValidationError as exc:
                log.warning(
                    "Skipping line %s of %s: %s error(s)", line_number, path, exc.error_count()
                )
                skipped += 1
                continue
            repository.put(dataset_id, payload.to_record())
            loaded += 1
        uow.commit()

    log.info("Loaded %s record(s) into %s (%s skipped)", loaded, dataset_id, skipped)
    return LoadRecordsResult(dataset_id=dataset_id, loaded=loaded, skipped=skipped)
