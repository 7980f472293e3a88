"""Pydantic models for person records exchanged as JSON.

The same wire shape is used by the records REST API, the JSON-lines import
files and the reconciliation model: ``{id, nik, name, address, dob, phone,
lastVisit}``. Snake-case keys are accepted as well.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from healthmerge.domain.model import Record


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class RecordBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RecordPayload(RecordBaseModel):
    id: str
    nik: str
    name: str
    address: str
    date_of_birth: str | None = Field(
        default=None,
        validation_alias=AliasChoices("dob", "dateOfBirth", "date_of_birth"),
        serialization_alias="dob",
    )
    phone: str | None = None
    last_visit: str | None = Field(
        default=None,
        validation_alias=AliasChoices("lastVisit", "last_visit"),
        serialization_alias="lastVisit",
    )

    @field_validator("id", "nik", "name", "address", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("nik", mode="after")
    @classmethod
    def _require_nik(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("nik must not be blank")
        return stripped

    _normalize_optional = field_validator(
        "date_of_birth", "phone", "last_visit", mode="before"
    )(_blank_to_none)

    def to_record(self) -> Record:
        return Record(
            id=self.id,
            nik=self.nik,
            name=self.name,
            address=self.address,
            date_of_birth=self.date_of_birth,
            phone=self.phone,
            last_visit=self.last_visit,
        )

    @classmethod
    def from_record(cls, record: Record) -> RecordPayload:
        return cls(
            id=record.id,
            nik=record.nik,
            name=record.name,
            address=record.address,
            date_of_birth=record.date_of_birth,
            phone=record.phone,
            last_visit=record.last_visit,
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
