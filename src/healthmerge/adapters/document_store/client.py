"""Identity index backed by the health office's records REST API."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from healthmerge.adapters.http_resilience import ResilientClient
from healthmerge.config.document_store import DocumentStoreConfig, get_document_store_config
from healthmerge.domain.errors import LookupFailed

from .schema import RecordListResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from healthmerge.config.http_resilience import ResilienceConfig
    from healthmerge.domain.model import DatasetCatalog, Record

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class HttpIdentityIndex:
    """Look up ``GET datasets/{dataset_id}/records?nik=...`` for each dataset.

    A 404 or an empty list means the dataset holds no record for the NIK.
    Transport failures, error statuses and malformed payloads surface as
    ``LookupFailed`` for that dataset only.
    """

    catalog: DatasetCatalog
    config: DocumentStoreConfig = field(default_factory=get_document_store_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    async def lookup(self, nik: str, dataset_id: str) -> Record | None:
        self.catalog.require(dataset_id)
        async with self.client_factory(self.config.resilience) as client:
            try:
                response = await client.get(
                    f"datasets/{dataset_id}/records", params={"nik": nik}
                )
                if response.status_code == httpx.codes.NOT_FOUND:
                    return None
                response.raise_for_status()
                payload = RecordListResponse.model_validate(response.json())
            except httpx.HTTPError as exc:
                log.warning("Records API request for %s failed: %s", dataset_id, exc)
                raise LookupFailed(dataset_id, reason=str(exc)) from exc
            except (ValidationError, ValueError) as exc:
                log.warning("Records API returned an unreadable payload for %s", dataset_id)
                raise LookupFailed(dataset_id, reason="unreadable payload") from exc

        matches = [item for item in payload.records if item.nik == nik]
        if not matches:
            return None
        if len(matches) > 1:
            log.info(
                "%d records share NIK %s in %s; using the first", len(matches), nik, dataset_id
            )
        return matches[0].to_record()
