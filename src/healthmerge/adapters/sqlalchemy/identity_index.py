"""Identity index over person records imported into the local database."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from healthmerge.adapters.sqlalchemy.repositories import SqlAlchemyPersonRecordRepository
from healthmerge.adapters.sqlalchemy.unit_of_work import session_factory
from healthmerge.domain.errors import LookupFailed

if TYPE_CHECKING:
    from healthmerge.domain.model import DatasetCatalog, Record

log = getLogger(__name__)


@dataclass(slots=True)
class SqlAlchemyIdentityIndex:
    """Look up imported records; each lookup runs in a worker thread with its own session."""

    catalog: DatasetCatalog

    async def lookup(self, nik: str, dataset_id: str) -> Record | None:
        self.catalog.require(dataset_id)
        try:
            return await asyncio.to_thread(self._lookup_sync, nik, dataset_id)
        except SQLAlchemyError as exc:
            log.warning("Database lookup for %s failed: %s", dataset_id, exc)
            raise LookupFailed(dataset_id, reason=type(exc).__name__) from exc

    def _lookup_sync(self, nik: str, dataset_id: str) -> Record | None:
        with session_factory()() as session:
            return SqlAlchemyPersonRecordRepository(session).get(dataset_id, nik)
