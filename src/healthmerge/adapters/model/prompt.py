"""Prompt text sent to the reconciliation model."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Final

from healthmerge.adapters.record_schema import RecordPayload

if TYPE_CHECKING:
    from healthmerge.domain.ports import CollaboratorRequest

SYSTEM_PROMPT: Final[str] = (
    "You are an expert data integration and deduplication system for public health data. "
    "You merge several records describing the same individual, identified by NIK, "
    "into one comprehensive and accurate master record. "
    "Answer with a single JSON object and nothing else."
)

_INSTRUCTIONS: Final[str] = """\
Please perform the following steps:
1. Compare the information from all source records. Identify inconsistencies, \
variations such as typos or different formatting, and missing data.
2. For each field (name, address, dob, phone, lastVisit) choose the most accurate and \
complete value. Prefer more recent or more complete data: a full address beats a \
partial one and a full name beats a nickname.
3. Build "mergedRecord" from the selected values. Keep the NIK unchanged. Use the record \
id of the most reliable source.
4. In "mergeExplanation" explain each choice, for example "Chose the address from \
'Seksi P2P' because it was more detailed than the one in 'Seksi Kesmas'."
5. In "confidenceScore" give a number from 0 to 1 expressing how likely it is that all \
records belong to the same person.

Answer with JSON of the form:
{"mergedRecord": {"id": "...", "nik": "...", "name": "...", "address": "...", \
"dob": "...", "phone": "...", "lastVisit": "..."}, "mergeExplanation": "...", \
"confidenceScore": 0.0}
"""


def _format_value(value: str | None) -> str:
    return value if value is not None else "(not recorded)"


def render_merge_prompt(request: CollaboratorRequest) -> str:
    lines = [f"You have been given the following records for NIK: {request.nik}", ""]
    for candidate in request.candidates:
        record = candidate.record
        lines.extend(
            [
                f"Dataset: {candidate.dataset_name}",
                f"Record ID: {record.id}",
                f"- Name: {record.name}",
                f"- Address: {record.address}",
                f"- Date of Birth: {_format_value(record.date_of_birth)}",
                f"- Phone: {_format_value(record.phone)}",
                f"- Last Visit: {_format_value(record.last_visit)}",
                "---",
            ]
        )
    lines.append("")
    lines.append("Source records as JSON:")
    lines.append(
        json.dumps(
            [
                {
                    "datasetName": candidate.dataset_name,
                    "record": RecordPayload.from_record(candidate.record).to_wire(),
                }
                for candidate in request.candidates
            ],
            ensure_ascii=False,
        )
    )
    lines.append("")
    lines.append(_INSTRUCTIONS)
    return "\n".join(lines)
