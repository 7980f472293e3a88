"""Reconciliation collaborator backed by an OpenAI-compatible chat-completions API."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from healthmerge.adapters.http_resilience import ResilientClient
from healthmerge.domain.errors import CollaboratorUnavailable, InvalidCollaboratorResponse
from healthmerge.domain.ports import CollaboratorResponse

from .prompt import SYSTEM_PROMPT, render_merge_prompt
from .schema import ChatCompletionResponse, MergeOutputPayload

if TYPE_CHECKING:
    from collections.abc import Callable

    from healthmerge.config.collaborator import CollaboratorConfig
    from healthmerge.config.http_resilience import ResilienceConfig
    from healthmerge.domain.ports import CollaboratorRequest

log = getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding Markdown code fence some models wrap JSON in."""

    stripped = text.strip()
    match = _CODE_FENCE.match(stripped)
    return match.group(1) if match else stripped


def parse_merge_output(content: str) -> MergeOutputPayload:
    try:
        payload = json.loads(strip_code_fence(content))
    except ValueError as exc:
        raise InvalidCollaboratorResponse("Model reply is not valid JSON") from exc
    try:
        return MergeOutputPayload.model_validate(payload)
    except ValidationError as exc:
        raise InvalidCollaboratorResponse(
            f"Model reply does not match the merge schema ({exc.error_count()} errors)"
        ) from exc


@dataclass(slots=True)
class ModelReconciliationClient:
    """Ask a hosted language model to merge candidate records."""

    config: CollaboratorConfig
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    temperature: float = 0.0

    async def __call__(self, request: CollaboratorRequest) -> CollaboratorResponse:
        body = self._build_body(request)
        async with self.client_factory(self.config.resilience) as client:
            try:
                response = await client.post("chat/completions", json=body)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise CollaboratorUnavailable(f"Model endpoint failed: {exc}") from exc

        try:
            completion = ChatCompletionResponse.model_validate(response.json())
        except (ValidationError, ValueError) as exc:
            raise InvalidCollaboratorResponse("Unexpected chat-completions payload") from exc

        content = completion.first_content
        if not content:
            raise InvalidCollaboratorResponse("Model reply has no content")

        output = parse_merge_output(content)
        log.debug(
            "Model %s proposed a merge for NIK %s with confidence %s",
            self.config.model,
            request.nik,
            output.confidence_score,
        )
        return CollaboratorResponse(
            merged_record=output.merged_record.to_record(),
            explanation=output.merge_explanation,
            confidence_score=output.confidence_score,
        )

    def _build_body(self, request: CollaboratorRequest) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "temperature": self.temperature,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": render_merge_prompt(request)},
            ],
        }
