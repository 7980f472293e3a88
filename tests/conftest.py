from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from healthmerge.adapters.sqlalchemy import create_all_tables
from healthmerge.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyMergeUnitOfWork,
    shutdown,
    startup,
)
from healthmerge.domain.model import DatasetCatalog
from tests.helpers.records import make_catalog

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


@pytest.fixture
def catalog() -> DatasetCatalog:
    return make_catalog()


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HEALTHMERGE_DATA_DIR", str(tmp_path / "data"))
    for name in (
        "DATABASE_URI",
        "HEALTHMERGE_DATASETS",
        "HEALTHMERGE_MODEL_BASE_URL",
        "HEALTHMERGE_MODEL_NAME",
        "HEALTHMERGE_MODEL_API_KEY",
        "HEALTHMERGE_MODEL_TIMEOUT_SECONDS",
        "HEALTHMERGE_DOCUMENT_STORE_URL",
        "HEALTHMERGE_DOCUMENT_STORE_TIMEOUT_SECONDS",
        "HEALTHMERGE_DOCUMENT_STORE_CACHE_TTL_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    # File-backed so that worker-thread lookups see the same database.
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'healthmerge.db'}", future=True)
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyMergeUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyMergeUnitOfWork:
        return SqlAlchemyMergeUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()
