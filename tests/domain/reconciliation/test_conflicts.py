from __future__ import annotations

from itertools import permutations

from healthmerge.domain.model import FieldStatus, TrackedField
from healthmerge.domain.reconciliation import detect_conflicts
from tests.helpers.records import budi_kesmas, budi_p2p, make_candidate_set, make_record


def test_budi_records_report() -> None:
    report = detect_conflicts(
        make_candidate_set({"seksi-p2p": budi_p2p(), "seksi-kesmas": budi_kesmas()})
    )

    assert report.status_of(TrackedField.NAME) is FieldStatus.CONFLICTING
    assert report.status_of(TrackedField.ADDRESS) is FieldStatus.CONFLICTING
    assert report.status_of(TrackedField.DATE_OF_BIRTH) is FieldStatus.UNANIMOUS
    assert report.status_of(TrackedField.PHONE) is FieldStatus.PARTIALLY_MISSING
    assert report.status_of(TrackedField.LAST_VISIT) is FieldStatus.CONFLICTING
    assert report[TrackedField.PHONE].missing_in == ("seksi-kesmas",)
    assert report[TrackedField.NAME].values == ("Budi S.", "Budi Santoso")


def test_whitespace_differences_are_not_conflicts() -> None:
    report = detect_conflicts(
        make_candidate_set(
            {
                "seksi-p2p": make_record(name="Budi Santoso"),
                "seksi-sdk": make_record("rec-009", name="  Budi Santoso  "),
            }
        )
    )

    assert report.status_of(TrackedField.NAME) is FieldStatus.UNANIMOUS


def test_case_differences_are_conflicts() -> None:
    report = detect_conflicts(
        make_candidate_set(
            {
                "seksi-p2p": make_record(name="Budi Santoso"),
                "seksi-sdk": make_record("rec-009", name="BUDI SANTOSO"),
            }
        )
    )

    assert report.status_of(TrackedField.NAME) is FieldStatus.CONFLICTING


def test_field_missing_everywhere_is_wholly_missing() -> None:
    report = detect_conflicts(
        make_candidate_set(
            {
                "seksi-p2p": make_record(phone=None),
                "seksi-sdk": make_record("rec-009", phone="  "),
            }
        )
    )

    assert report.status_of(TrackedField.PHONE) is FieldStatus.WHOLLY_MISSING
    assert report[TrackedField.PHONE].missing_in == ("seksi-p2p", "seksi-sdk")


def test_single_candidate_fields_are_unanimous_or_missing() -> None:
    report = detect_conflicts(make_candidate_set({"seksi-kesmas": budi_kesmas()}))

    assert report.status_of(TrackedField.NAME) is FieldStatus.UNANIMOUS
    assert report.status_of(TrackedField.PHONE) is FieldStatus.WHOLLY_MISSING


def test_report_does_not_depend_on_candidate_order() -> None:
    records = {
        "seksi-p2p": budi_p2p(),
        "seksi-kesmas": budi_kesmas(),
        "seksi-sdk": make_record("rec-010", address="Jl. Sudirman 5", phone="0811"),
    }
    baseline = detect_conflicts(make_candidate_set(records))

    for order in permutations(records):
        shuffled = make_candidate_set({dataset_id: records[dataset_id] for dataset_id in order})
        assert detect_conflicts(shuffled) == baseline
