"""Pydantic models for the chat-completions endpoint and the merge answer."""

from __future__ import annotations

from pydantic import Field

from healthmerge.adapters.record_schema import RecordBaseModel, RecordPayload


class ChatMessage(RecordBaseModel):
    role: str
    content: str | None = None


class ChatChoice(RecordBaseModel):
    index: int = 0
    message: ChatMessage
    finish_reason: str | None = None


class ChatCompletionResponse(RecordBaseModel):
    id: str | None = None
    model: str | None = None
    choices: list[ChatChoice]

    @property
    def first_content(self) -> str | None:
        if not self.choices:
            return None
        return self.choices[0].message.content


class MergedRecordPayload(RecordPayload):
    """Merged record as proposed by the model; the id may be left out."""

    id: str = ""


class MergeOutputPayload(RecordBaseModel):
    merged_record: MergedRecordPayload = Field(alias="mergedRecord")
    merge_explanation: str = Field(alias="mergeExplanation")
    confidence_score: float = Field(alias="confidenceScore")
