"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class TrackedField(StrEnum):
    """Person-record fields compared and reconciled across datasets."""

    NAME = "name"
    ADDRESS = "address"
    DATE_OF_BIRTH = "date_of_birth"
    PHONE = "phone"
    LAST_VISIT = "last_visit"


TRACKED_FIELDS: tuple[TrackedField, ...] = tuple(TrackedField)


class FieldStatus(StrEnum):
    UNANIMOUS = "unanimous"
    CONFLICTING = "conflicting"
    PARTIALLY_MISSING = "partially_missing"
    WHOLLY_MISSING = "wholly_missing"


class ChoiceReason(StrEnum):
    """Why the fallback policy picked a field value."""

    UNANIMOUS = "unanimous"
    MOST_RECENT = "most recent visit"
    MOST_COMPLETE = "most complete value"
    FIRST_LISTED = "first listed source"
    ONLY_VALUE = "only value present"
    MISSING = "missing in all sources"


class MergeSource(StrEnum):
    """Which path produced a merged record."""

    SINGLE_RECORD = "single_record"
    COLLABORATOR = "collaborator"
    FALLBACK = "fallback"


class SessionState(StrEnum):
    IDLE = "idle"
    SEARCHING = "searching"
    NOT_FOUND = "not_found"
    SINGLE_MATCH = "single_match"
    MULTIPLE_MATCHES_MERGING = "multiple_matches_merging"
    PROPOSED = "proposed"
    CONFIRMED = "confirmed"
    FAILED = "failed"
