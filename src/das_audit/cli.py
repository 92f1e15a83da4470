from __future__ import annotations

import argparse
import asyncio
import functools
import json
import logging
import sys
from pathlib import Path

from das_audit.config import AuditSettings
from das_audit.document import render_audit_markdown, render_audit_pdf
from das_audit.identity import StaticIdentityProvider
from das_audit.models import ANSWER_STATUSES, ProjectInfo, Signoff
from das_audit.navigation import NavigationGate
from das_audit.progress import (
    incomplete_items,
    non_compliant_items,
    non_compliant_without_notes,
    overall_progress,
    section_progress,
)
from das_audit.store import AuditRecordStore, FileStorageSlot
from das_audit.submission import SubmissionCoordinator
from das_audit.upload import GraphDocumentStore
from das_audit.utils import to_plain_data
from das_audit.validation import validate_submission

_SIGNATURE_FIELDS = ("project_manager_signature", "auditor_signature")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="das-audit",
        description="Record and submit DAS installation compliance audits.",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding the saved audit (defaults to DAS_AUDIT_DATA_DIR or ~/.das-audit).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    status_parser = sub.add_parser("status", help="Show audit progress.")
    status_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit machine-readable JSON output.",
    )
    status_parser.set_defaults(handler=_cmd_status)

    project_parser = sub.add_parser("project", help="Set a project information field.")
    project_parser.add_argument("field", choices=ProjectInfo.field_names())
    project_parser.add_argument("value")
    project_parser.set_defaults(handler=_cmd_project)

    answer_parser = sub.add_parser("answer", help="Answer a checklist item.")
    answer_parser.add_argument("item_id")
    answer_parser.add_argument("status", choices=ANSWER_STATUSES)
    answer_parser.add_argument(
        "--notes",
        default=None,
        help="Notes for the item (required before submission when answering 'no').",
    )
    answer_parser.set_defaults(handler=_cmd_answer)

    notes_parser = sub.add_parser("notes", help="Set the notes of a checklist item.")
    notes_parser.add_argument("item_id")
    notes_parser.add_argument("text")
    notes_parser.set_defaults(handler=_cmd_notes)

    mark_parser = sub.add_parser("mark-all", help="Answer every item in a section.")
    mark_parser.add_argument("section_id")
    mark_parser.add_argument("status", choices=ANSWER_STATUSES)
    mark_parser.set_defaults(handler=_cmd_mark_all)

    signoff_parser = sub.add_parser("signoff", help="Set a sign-off field.")
    signoff_parser.add_argument("field", choices=Signoff.field_names())
    signoff_parser.add_argument("value", nargs="?", default=None)
    signoff_parser.add_argument(
        "--signature-file",
        type=Path,
        default=None,
        help="Image file to store as the signature (signature fields only).",
    )
    signoff_parser.set_defaults(handler=_cmd_signoff)

    tabs_parser = sub.add_parser("tabs", help="List form steps and whether they are reachable.")
    tabs_parser.set_defaults(handler=_cmd_tabs)

    validate_parser = sub.add_parser("validate", help="Run the pre-submission checks.")
    validate_parser.set_defaults(handler=_cmd_validate)

    report_parser = sub.add_parser("report", help="Render the audit as markdown.")
    report_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Optional path to write the markdown report.",
    )
    report_parser.set_defaults(handler=_cmd_report)

    export_parser = sub.add_parser("export", help="Write the audit PDF to a local directory.")
    export_parser.add_argument(
        "--output-dir",
        type=Path,
        required=True,
        help="Directory where the PDF is written.",
    )
    export_parser.set_defaults(handler=_cmd_export)

    submit_parser = sub.add_parser("submit", help="Validate and upload the audit PDF.")
    submit_parser.set_defaults(handler=_cmd_submit)

    reset_parser = sub.add_parser("reset", help="Discard the saved audit.")
    reset_parser.add_argument(
        "--yes",
        action="store_true",
        help="Confirm that all recorded answers should be lost.",
    )
    reset_parser.set_defaults(handler=_cmd_reset)

    return parser


def _open_store(args: argparse.Namespace) -> AuditRecordStore:
    data_dir = args.data_dir if args.data_dir is not None else args.settings.data_dir
    store = AuditRecordStore(FileStorageSlot(data_dir))
    store.load()
    return store


def _coordinator(args: argparse.Namespace, store: AuditRecordStore) -> SubmissionCoordinator:
    settings: AuditSettings = args.settings
    return SubmissionCoordinator(
        store,
        NavigationGate(store),
        identity=StaticIdentityProvider.from_settings(settings),
        uploader=GraphDocumentStore(settings),
        renderer=functools.partial(render_audit_pdf, catalog=store.catalog),
    )


def _cmd_status(args: argparse.Namespace) -> int:
    store = _open_store(args)
    record = store.record
    progress = overall_progress(record)
    sections = {
        section.section_id: to_plain_data(section_progress(record, section.section_id))
        for section in store.catalog.sections()
    }
    payload = {
        "overall": to_plain_data(progress),
        "sections": sections,
        "non_compliant": to_plain_data(non_compliant_items(record)),
        "missing_notes": to_plain_data(non_compliant_without_notes(record)),
    }

    if args.json:
        print(json.dumps(payload, indent=2, sort_keys=True))
        return 0

    print(f"progress: {progress.completed}/{progress.total} ({progress.percentage}%)")
    for section in store.catalog.sections():
        counts = sections[section.section_id]
        print(f"- {section.title}: {counts['completed']}/{counts['total']}")
    if payload["non_compliant"]:
        print("non-compliant:")
        for item in non_compliant_items(record):
            notes = item.notes or "<notes missing>"
            print(f"- {item.item_id} {item.item_label}: {notes}")
    return 0


def _cmd_project(args: argparse.Namespace) -> int:
    store = _open_store(args)
    store.set_project_info_field(args.field, args.value)
    return 0


def _cmd_answer(args: argparse.Namespace) -> int:
    store = _open_store(args)
    if not store.catalog.has_item(args.item_id):
        raise ValueError(f"Unknown checklist item '{args.item_id}'")
    store.set_answer_status(args.item_id, args.status)
    if args.notes is not None:
        store.set_answer_notes(args.item_id, args.notes)
    if args.status == "no" and not store.item_notes(args.item_id).strip():
        print(f"warning: {args.item_id} is non-compliant and needs notes", file=sys.stderr)
    return 0


def _cmd_notes(args: argparse.Namespace) -> int:
    store = _open_store(args)
    if not store.catalog.has_item(args.item_id):
        raise ValueError(f"Unknown checklist item '{args.item_id}'")
    store.set_answer_notes(args.item_id, args.text)
    return 0


def _cmd_mark_all(args: argparse.Namespace) -> int:
    store = _open_store(args)
    if store.catalog.section(args.section_id) is None:
        available = ", ".join(store.catalog.section_ids())
        raise ValueError(f"Unknown section '{args.section_id}'. Available: {available}")
    store.mark_all_in_section(args.section_id, args.status)
    return 0


def _cmd_signoff(args: argparse.Namespace) -> int:
    store = _open_store(args)
    if args.field in _SIGNATURE_FIELDS:
        if args.signature_file is None:
            raise ValueError(f"{args.field} requires --signature-file")
        store.set_signoff_field(args.field, args.signature_file.read_bytes())
        return 0
    if args.signature_file is not None:
        raise ValueError(f"--signature-file only applies to signature fields, not {args.field}")
    if args.value is None:
        raise ValueError(f"{args.field} requires a value")
    store.set_signoff_field(args.field, args.value)
    return 0


def _cmd_tabs(args: argparse.Namespace) -> int:
    store = _open_store(args)
    for tab in NavigationGate(store).tabs():
        marker = "x" if tab.complete else ("-" if tab.accessible else "#")
        counts = f" ({tab.completed}/{tab.total})" if tab.total is not None else ""
        print(f"[{marker}] {tab.index + 1}. {tab.label}{counts}")
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    store = _open_store(args)
    failure = validate_submission(store.record)
    if failure is None:
        print("validate: ok")
        return 0
    print(f"validate: failed ({failure.step})")
    print(failure.message)
    print(f"go to: {failure.section_id}")
    remaining = incomplete_items(store.record)
    if remaining:
        print(f"unanswered: {len(remaining)}")
    return 1


def _cmd_report(args: argparse.Namespace) -> int:
    store = _open_store(args)
    markdown = render_audit_markdown(store.record)
    if args.output is None:
        print(markdown, end="")
        return 0
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(markdown, encoding="utf-8")
    return 0


def _cmd_export(args: argparse.Namespace) -> int:
    store = _open_store(args)
    path = _coordinator(args, store).export_local(args.output_dir)
    print(str(path))
    return 0


def _cmd_submit(args: argparse.Namespace) -> int:
    store = _open_store(args)
    coordinator = _coordinator(args, store)
    result = asyncio.run(coordinator.submit())
    if result.ok:
        print(f"submitted: {result.file_name}")
        return 0

    print(f"submit: failed: {result.error}", file=sys.stderr)
    if result.failure is not None:
        print(f"go to: {result.failure.section_id}", file=sys.stderr)
    elif result.file_name is not None:
        print(
            "The audit is still saved. Retry with 'das-audit submit' "
            "or save a copy with 'das-audit export --output-dir DIR'.",
            file=sys.stderr,
        )
    return 1


def _cmd_reset(args: argparse.Namespace) -> int:
    if not args.yes:
        raise ValueError("Refusing to reset without --yes; all recorded answers would be lost")
    store = _open_store(args)
    store.reset()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))
    try:
        args.settings = AuditSettings.from_env()
        return int(args.handler(args))
    except Exception as exc:  # noqa: BLE001
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
