"""Public interface for the language-model reconciliation adapter."""

from __future__ import annotations

from .client import ModelReconciliationClient
from .prompt import SYSTEM_PROMPT, render_merge_prompt
from .schema import ChatCompletionResponse, MergedRecordPayload, MergeOutputPayload

__all__ = [
    "SYSTEM_PROMPT",
    "ChatCompletionResponse",
    "MergeOutputPayload",
    "MergedRecordPayload",
    "ModelReconciliationClient",
    "render_merge_prompt",
]
