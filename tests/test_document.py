from __future__ import annotations

import base64
import logging
from datetime import datetime

import pytest

from das_audit.document import render_audit_markdown, render_audit_pdf
from das_audit.store import AuditRecordStore
from das_audit.validation import validate_submission


def test_pdf_renders_complete_audit(complete_store: AuditRecordStore) -> None:
    complete_store.set_answer_status("donor_2", "no")
    complete_store.set_answer_notes("donor_2", "Azimuth off by 10 deg <recheck> & log")
    complete_store.set_signoff_field("comments", "Minor rework only")

    data = render_audit_pdf(complete_store.record, generated_at=datetime(2026, 3, 15, 9, 30))
    assert data.startswith(b"%PDF")
    assert len(data) > 1000


def test_pdf_embeds_signature_given_as_data_url(
    answered_store: AuditRecordStore,
    signature_png: bytes,
    caplog: pytest.LogCaptureFixture,
) -> None:
    data_url = "data:image/png;base64," + base64.b64encode(signature_png).decode("ascii")
    answered_store.set_signoff_field("project_manager_name", "Sam Lee")
    answered_store.set_signoff_field("project_manager_signature", data_url)
    answered_store.set_signoff_field("project_manager_date", "2026-03-15")
    assert validate_submission(answered_store.record) is None

    with caplog.at_level(logging.WARNING, logger="das_audit.document"):
        data = render_audit_pdf(answered_store.record)
    assert data.startswith(b"%PDF")
    assert "Could not add signature image" not in caplog.text


def test_pdf_renders_with_unreadable_signature(answered_store: AuditRecordStore) -> None:
    answered_store.set_signoff_field("project_manager_signature", b"not an image")
    assert render_audit_pdf(answered_store.record).startswith(b"%PDF")


def test_pdf_renders_empty_record(store: AuditRecordStore) -> None:
    assert render_audit_pdf(store.record).startswith(b"%PDF")


def test_markdown_lists_items_and_non_compliance(project_store: AuditRecordStore) -> None:
    project_store.set_answer_status("swms_1", "yes")
    project_store.set_answer_status("cabinet_4", "no")
    project_store.set_answer_notes("cabinet_4", "Fan | blocked")
    project_store.set_answer_status("das_2", "no")

    markdown = render_audit_markdown(project_store.record)
    assert markdown.startswith("# Projects Audit Form: PT-2041")
    assert "- Answered: `3/57` (`5%`)" in markdown
    assert "## Cabinet & Equipment" in markdown
    assert "| swms_1 | SWMS reviewed and signed by all workers on site | YES |  |" in markdown
    assert "Fan \\| blocked" in markdown
    assert "- DAS Installation / Antenna mounting secure (notes missing)" in markdown
    assert "- Signature captured: `False`" in markdown
