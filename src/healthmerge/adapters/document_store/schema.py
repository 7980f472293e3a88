"""Pydantic models describing the records REST API payloads."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import cast

from pydantic import model_validator

from healthmerge.adapters.record_schema import RecordBaseModel, RecordPayload


class RecordListResponse(RecordBaseModel):
    """Records matching a NIK in one dataset.

    The API answers either with a bare JSON array or with ``{"records": [...]}``.
    """

    records: list[RecordPayload] = []

    @model_validator(mode="before")
    @classmethod
    def _wrap_bare_list(cls, value: object) -> object:
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            return {"records": list(cast(Sequence[object], value))}
        if isinstance(value, Mapping):
            return value
        raise ValueError("Expected a list of records or an object with 'records'")
