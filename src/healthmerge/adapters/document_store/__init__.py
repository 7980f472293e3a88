"""Public interface for the records REST API adapter."""

from __future__ import annotations

from .client import HttpIdentityIndex
from .schema import RecordListResponse

__all__ = ["HttpIdentityIndex", "RecordListResponse"]
