from __future__ import annotations

import base64
import json
from dataclasses import replace
from datetime import date
from pathlib import Path

import pytest

from das_audit.models import AuditAnswer, AuditRecord, ProjectInfo, Signoff
from das_audit.store import (
    STORAGE_KEY,
    AuditRecordStore,
    FileStorageSlot,
    MemoryStorageSlot,
    decode_record,
    encode_record,
)


class _BrokenSlot:
    def read(self, key: str) -> bytes | None:
        raise OSError("disk unavailable")

    def write(self, key: str, data: bytes) -> None:
        raise AssertionError("not expected")


def test_load_without_saved_state_returns_defaults(store: AuditRecordStore) -> None:
    record = store.record
    assert record.project_info.audit_date == date.today().isoformat()
    assert record.project_info.project_code == ""
    assert record.answers == {}
    assert record.signoff == Signoff()


def test_load_falls_back_to_defaults_for_corrupt_payload() -> None:
    slot = MemoryStorageSlot({STORAGE_KEY: b"{not json"})
    record = AuditRecordStore(slot).load()
    assert record.answers == {}
    assert record.project_info.audit_date == date.today().isoformat()


def test_load_falls_back_to_defaults_when_slot_unreadable() -> None:
    record = AuditRecordStore(_BrokenSlot()).load()
    assert record.answers == {}


def test_every_mutation_is_persisted(store: AuditRecordStore, slot: MemoryStorageSlot) -> None:
    store.set_project_info_field("site_name", "Depot")
    store.set_answer_status("donor_1", "no")
    store.set_answer_notes("donor_1", "Bracket loose")
    store.set_signoff_field("comments", "Follow up next week")
    assert slot.write_count == 4

    reloaded = AuditRecordStore(slot).load()
    assert reloaded.project_info.site_name == "Depot"
    assert reloaded.answers["donor_1"] == AuditAnswer(status="no", notes="Bracket loose")
    assert reloaded.signoff.comments == "Follow up next week"


def test_save_then_load_round_trips_every_field(slot: MemoryStorageSlot, signature_png: bytes) -> None:
    record = AuditRecord(
        project_info=ProjectInfo(
            project_code="PT-1",
            site_name="Mall",
            site_address="2 Main Rd",
            project_manager="Sam",
            auditor="Alex",
            audit_date="2026-01-02",
        ),
        answers={
            "swms_1": AuditAnswer(status="yes"),
            "donor_2": AuditAnswer(status="no", notes="Tilted 5 degrees"),
            "das_3": AuditAnswer(status="na", notes=""),
        },
        signoff=Signoff(
            comments="ok",
            project_manager_name="Sam",
            project_manager_signature=signature_png,
            project_manager_date="2026-01-03",
            auditor_name="Alex",
            auditor_signature=b"\x00\x01binary",
            auditor_date="2026-01-03",
        ),
    )
    AuditRecordStore(slot).save(record)
    assert AuditRecordStore(slot).load() == record


def test_reset_restores_defaults_and_persists(store: AuditRecordStore, slot: MemoryStorageSlot) -> None:
    store.set_answer_status("swms_1", "yes")
    store.reset()
    assert store.record.answers == {}
    assert AuditRecordStore(slot).load().answers == {}


def test_mark_all_in_section_keeps_existing_notes(store: AuditRecordStore, slot: MemoryStorageSlot) -> None:
    store.set_answer_notes("cabinet_2", "Checked twice")
    writes_before = slot.write_count
    store.mark_all_in_section("cabinet", "yes")

    assert slot.write_count == writes_before + 1
    assert all(store.item_status(f"cabinet_{n}") == "yes" for n in range(1, 12))
    assert store.item_notes("cabinet_2") == "Checked twice"


def test_mark_all_in_unknown_section_is_noop(store: AuditRecordStore, slot: MemoryStorageSlot) -> None:
    store.mark_all_in_section("roof", "yes")
    assert slot.write_count == 0
    assert store.record.answers == {}


def test_point_reads_default_for_unanswered_items(store: AuditRecordStore) -> None:
    assert store.item_status("swms_1") == "unset"
    assert store.item_notes("swms_1") == ""


def test_invalid_inputs_rejected(store: AuditRecordStore) -> None:
    with pytest.raises(ValueError, match="status"):
        store.set_answer_status("swms_1", "maybe")
    with pytest.raises(ValueError, match="project info field"):
        store.set_project_info_field("budget", "1")
    with pytest.raises(ValueError, match="sign-off field"):
        store.set_signoff_field("witness", "x")
    with pytest.raises(ValueError, match="expects text"):
        store.set_signoff_field("comments", b"bytes")


def test_signature_data_url_is_stored_as_image_bytes(
    store: AuditRecordStore,
    slot: MemoryStorageSlot,
    signature_png: bytes,
) -> None:
    data_url = "data:image/png;base64," + base64.b64encode(signature_png).decode("ascii")
    store.set_signoff_field("project_manager_signature", data_url)

    assert store.record.signoff.project_manager_signature == signature_png
    reloaded = AuditRecordStore(slot).load()
    assert reloaded.signoff.project_manager_signature == signature_png


def test_signature_text_that_is_not_base64_is_rejected(store: AuditRecordStore, signature_png: bytes) -> None:
    store.set_signoff_field("auditor_signature", signature_png)
    with pytest.raises(ValueError, match="base64"):
        store.set_signoff_field("auditor_signature", "data:image/png;base64,%%not-base64%%")
    assert store.record.signoff.auditor_signature == signature_png


def test_record_answers_cannot_be_changed_behind_the_store(
    store: AuditRecordStore,
    slot: MemoryStorageSlot,
) -> None:
    store.set_answer_status("swms_1", "yes")
    writes = slot.write_count

    with pytest.raises(TypeError):
        store.record.answers["swms_1"] = AuditAnswer(status="no")  # type: ignore[index]
    assert store.item_status("swms_1") == "yes"
    assert slot.write_count == writes


def test_record_copies_answers_passed_in() -> None:
    answers = {"swms_1": AuditAnswer(status="yes")}
    record = AuditRecord(answers=answers)
    answers["swms_1"] = AuditAnswer(status="no")
    assert record.answer_for("swms_1").status == "yes"


def test_decode_tolerates_partial_and_garbled_fields() -> None:
    payload = {
        "projectInfo": {"projectCode": "PT-9", "siteName": 42},
        "auditItems": {
            "swms_1": {"status": "yes"},
            "swms_2": {"status": "bogus", "notes": "x"},
            "swms_3": "not-an-object",
        },
        "signoff": {"projectManagerSignature": "%%%"},
    }
    record = decode_record(json.dumps(payload).encode("utf-8"))
    assert record.project_info.project_code == "PT-9"
    assert record.project_info.site_name == ""
    assert record.answers["swms_1"] == AuditAnswer(status="yes")
    assert record.answers["swms_2"] == AuditAnswer(status="unset", notes="x")
    assert "swms_3" not in record.answers
    assert record.signoff.project_manager_signature == b""


def test_decode_accepts_data_url_signatures() -> None:
    raw = b"\x89PNG fake"
    payload = {
        "signoff": {
            "projectManagerSignature": "data:image/png;base64,"
            + base64.b64encode(raw).decode("ascii")
        }
    }
    record = decode_record(json.dumps(payload).encode("utf-8"))
    assert record.signoff.project_manager_signature == raw


def test_decode_rejects_non_object_payload() -> None:
    with pytest.raises(ValueError):
        decode_record(b"[1, 2, 3]")


def test_encoded_blob_uses_form_keys() -> None:
    record = replace(AuditRecord(), answers={"donor_1": AuditAnswer(status="no", notes="n")})
    payload = json.loads(encode_record(record))
    assert payload["auditItems"]["donor_1"] == {"status": "no", "notes": "n"}
    assert set(payload["projectInfo"]) == {
        "projectCode",
        "siteName",
        "siteAddress",
        "projectManager",
        "auditor",
        "auditDate",
    }


def test_file_storage_slot_round_trip(tmp_path: Path) -> None:
    slot = FileStorageSlot(tmp_path / "data")
    assert slot.read(STORAGE_KEY) is None

    store = AuditRecordStore(slot)
    store.load()
    store.set_project_info_field("auditor", "Alex")

    assert slot.path_for(STORAGE_KEY).is_file()
    assert AuditRecordStore(FileStorageSlot(tmp_path / "data")).load().project_info.auditor == "Alex"
    assert list((tmp_path / "data").glob("*.tmp")) == []
