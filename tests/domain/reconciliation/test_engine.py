from __future__ import annotations

import asyncio
import logging
import math

import pytest

from healthmerge.domain.errors import (
    CollaboratorUnavailable,
    InvalidCollaboratorResponse,
    NoCandidates,
)
from healthmerge.domain.model import CandidateSet, MergedRecord, MergeSource
from healthmerge.domain.ports import CollaboratorResponse
from healthmerge.domain.reconciliation import (
    SINGLE_RECORD_EXPLANATION,
    ReconciliationEngine,
    reconcile_deterministically,
    validate_collaborator_response,
)
from tests.helpers.records import (
    BUDI_NIK,
    StubCollaborator,
    budi_kesmas,
    budi_p2p,
    collaborator_response,
    make_candidate_set,
    make_record,
)


def _budi_set() -> CandidateSet:
    return make_candidate_set({"seksi-kesmas": budi_kesmas(), "seksi-p2p": budi_p2p()})


def _reconcile(engine: ReconciliationEngine, candidate_set: CandidateSet) -> MergedRecord:
    return asyncio.run(engine.reconcile(candidate_set))


def test_single_candidate_is_returned_verbatim_without_collaborator_call() -> None:
    collaborator = StubCollaborator(collaborator_response())
    engine = ReconciliationEngine(collaborator=collaborator)
    candidate_set = make_candidate_set({"seksi-kesmas": budi_kesmas()})

    merged = _reconcile(engine, candidate_set)

    assert collaborator.requests == []
    assert merged.id == "rec-004"
    assert merged.name == "Budi S."
    assert merged.address == "Jl. Merdeka No. 1, Jakarta Pusat"
    assert merged.phone is None
    assert merged.explanation == SINGLE_RECORD_EXPLANATION
    assert merged.confidence_score == 1.0
    assert merged.source is MergeSource.SINGLE_RECORD


def test_empty_candidate_set_raises() -> None:
    with pytest.raises(NoCandidates):
        _reconcile(ReconciliationEngine(), CandidateSet(nik=BUDI_NIK))


def test_collaborator_answer_is_adopted() -> None:
    collaborator = StubCollaborator(collaborator_response(confidence_score=0.95))
    engine = ReconciliationEngine(collaborator=collaborator)

    merged = _reconcile(engine, _budi_set())

    assert merged.source is MergeSource.COLLABORATOR
    assert merged.address == "Jl. Merdeka No. 1, Jakarta Pusat"
    assert merged.explanation == "Chose the full name from Seksi P2P."
    assert merged.confidence_score == 0.95
    assert merged.source_dataset_ids == ("seksi-kesmas", "seksi-p2p")
    (request,) = collaborator.requests
    assert request.nik == BUDI_NIK
    assert [c.dataset_name for c in request.candidates] == [
        "Seksi Kesehatan Masyarakat",
        "Seksi Pencegahan dan Penanggulangan Penyakit",
    ]


@pytest.mark.parametrize(("raw", "expected"), [(1.7, 1.0), (-0.3, 0.0)])
def test_out_of_range_confidence_is_clamped(raw: float, expected: float) -> None:
    collaborator = StubCollaborator(collaborator_response(confidence_score=raw))
    engine = ReconciliationEngine(collaborator=collaborator)

    merged = _reconcile(engine, _budi_set())

    assert merged.source is MergeSource.COLLABORATOR
    assert merged.confidence_score == expected


def test_collaborator_answer_for_another_nik_falls_back(caplog: pytest.LogCaptureFixture) -> None:
    collaborator = StubCollaborator(collaborator_response(nik="3171234567890002"))
    engine = ReconciliationEngine(collaborator=collaborator)

    with caplog.at_level(logging.WARNING):
        merged = _reconcile(engine, _budi_set())

    assert merged == reconcile_deterministically(_budi_set())
    assert "Falling back" in caplog.text


@pytest.mark.parametrize(
    "response",
    [
        collaborator_response(explanation="   "),
        collaborator_response(confidence_score=math.nan),
        collaborator_response(confidence_score=math.inf),
    ],
)
def test_unusable_collaborator_answers_fall_back(response: CollaboratorResponse) -> None:
    engine = ReconciliationEngine(collaborator=StubCollaborator(response))

    merged = _reconcile(engine, _budi_set())

    assert merged.source is MergeSource.FALLBACK


def test_collaborator_timeout_falls_back() -> None:
    collaborator = StubCollaborator(collaborator_response(), delay=5.0)
    engine = ReconciliationEngine(collaborator=collaborator, timeout_seconds=0.05)

    merged = _reconcile(engine, _budi_set())

    assert merged.source is MergeSource.FALLBACK
    assert merged.confidence_score == pytest.approx(0.2)


@pytest.mark.parametrize(
    "error",
    [CollaboratorUnavailable("connection refused"), InvalidCollaboratorResponse("not json")],
)
def test_collaborator_errors_fall_back(error: Exception) -> None:
    engine = ReconciliationEngine(collaborator=StubCollaborator(error=error))

    merged = _reconcile(engine, _budi_set())

    assert merged == reconcile_deterministically(_budi_set())


def test_unexpected_collaborator_errors_propagate() -> None:
    engine = ReconciliationEngine(collaborator=StubCollaborator(error=KeyError("bug")))

    with pytest.raises(KeyError):
        _reconcile(engine, _budi_set())


def test_engine_without_collaborator_uses_fallback() -> None:
    merged = _reconcile(ReconciliationEngine(), _budi_set())

    assert merged.source is MergeSource.FALLBACK


def test_missing_collaborator_id_uses_most_trusted_candidate() -> None:
    response = CollaboratorResponse(
        merged_record=make_record(""),
        explanation="merged",
        confidence_score=0.8,
    )

    merged = validate_collaborator_response(response, candidate_set=_budi_set())

    assert merged.id == "rec-001"


def test_non_positive_timeout_is_rejected() -> None:
    with pytest.raises(ValueError, match="positive"):
        ReconciliationEngine(timeout_seconds=0)
