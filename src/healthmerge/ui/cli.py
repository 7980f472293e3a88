from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from healthmerge.app import (
    INDEX_KINDS,
    build_identity_index,
    load_records,
    merge_nik,
    search_nik,
)
from healthmerge.config import configure_logging, get_dataset_catalog
from healthmerge.domain.model import SessionState

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from healthmerge.domain.model import CandidateSet, MergedRecord, Record
    from healthmerge.domain.reconciliation import SessionSnapshot

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Find and merge person records by NIK")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output, including merge session transitions",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("datasets", help="List the datasets that can be searched")

    load = subparsers.add_parser("load", help="Import JSON Lines records into a dataset")
    load.add_argument("dataset_id", help="Dataset the records belong to")
    load.add_argument("path", type=Path, help="JSON Lines file, one record per line")

    for name, help_text in (
        ("search", "List the records holding a NIK"),
        ("merge", "Propose a merged record for a NIK"),
    ):
        command = subparsers.add_parser(name, help=help_text)
        command.add_argument("nik", help="National identity number to look up")
        command.add_argument(
            "--dataset",
            dest="dataset_ids",
            action="append",
            metavar="ID",
            help="Dataset to search (repeatable, defaults to all)",
        )
        command.add_argument(
            "--index",
            choices=INDEX_KINDS,
            default="sql",
            help="Where records are looked up (defaults to the local database)",
        )

    merge = subparsers.choices["merge"]
    merge.add_argument(
        "--confirm",
        action="store_true",
        help="Store the proposed record in the merge audit table",
    )
    merge.add_argument(
        "--no-model",
        dest="use_model",
        action="store_false",
        help="Skip the reconciliation model and merge deterministically",
    )

    return parser.parse_args(list(argv))


def _record_to_wire(record: Record | MergedRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "nik": record.nik,
        "name": record.name,
        "address": record.address,
        "dob": record.date_of_birth,
        "phone": record.phone,
        "lastVisit": record.last_visit,
    }


def _search_output(candidate_set: CandidateSet) -> dict[str, Any]:
    return {
        "nik": candidate_set.nik,
        "results": [
            {
                "datasetId": candidate.dataset_id,
                "datasetName": candidate.dataset_name,
                "record": _record_to_wire(candidate.record),
            }
            for candidate in candidate_set
        ],
        "failedDatasets": [failure.dataset_id for failure in candidate_set.failures],
    }


def _merge_output(snapshot: SessionSnapshot) -> dict[str, Any]:
    output: dict[str, Any] = {"state": snapshot.state.value, "nik": snapshot.nik}
    if snapshot.report is not None:
        output["fields"] = {
            conflict.field.value: conflict.status.value for conflict in snapshot.report.fields
        }
    proposal = snapshot.proposal
    if proposal is not None:
        output["mergedRecord"] = _record_to_wire(proposal)
        output["mergeExplanation"] = proposal.explanation
        output["confidenceScore"] = proposal.confidence_score
        output["source"] = proposal.source.value
        output["sourceDatasets"] = list(proposal.source_dataset_ids)
    return output


def _emit(payload: object) -> None:
    sys.stdout.write(json.dumps(payload, indent=2, ensure_ascii=False) + "\n")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        if parsed_args.command == "datasets":
            _emit([{"id": dataset.id, "name": dataset.name} for dataset in get_dataset_catalog()])
        elif parsed_args.command == "load":
            result = load_records(parsed_args.dataset_id, parsed_args.path)
            log.info(
                "Import finished: dataset=%s, loaded=%s, skipped=%s",
                result.dataset_id,
                result.loaded,
                result.skipped,
            )
        elif parsed_args.command == "search":
            candidate_set = search_nik(
                parsed_args.nik,
                parsed_args.dataset_ids,
                index=build_identity_index(parsed_args.index),
            )
            _emit(_search_output(candidate_set))
        elif parsed_args.command == "merge":
            snapshot = merge_nik(
                parsed_args.nik,
                parsed_args.dataset_ids,
                confirm=parsed_args.confirm,
                use_model=parsed_args.use_model,
                index=build_identity_index(parsed_args.index),
            )
            if snapshot.state is SessionState.FAILED:
                raise RuntimeError(str(snapshot.error))  # noqa: TRY301
            _emit(_merge_output(snapshot))
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point: load `.env`, trap Ctrl+C, run the CLI."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
