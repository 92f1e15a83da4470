from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Protocol

from das_audit.catalog import DEFAULT_CATALOG, ChecklistCatalog
from das_audit.models import ANSWER_STATUSES, AuditAnswer, AuditRecord, ProjectInfo, Signoff
from das_audit.utils import today_iso, write_bytes_atomic

_LOGGER = logging.getLogger(__name__)

STORAGE_KEY = "powertec-audit-form-data"
RECORD_SCHEMA_VERSION = "1.0.0"

_PROJECT_INFO_KEYS = {
    "project_code": "projectCode",
    "site_name": "siteName",
    "site_address": "siteAddress",
    "project_manager": "projectManager",
    "auditor": "auditor",
    "audit_date": "auditDate",
}

_SIGNOFF_KEYS = {
    "comments": "comments",
    "project_manager_name": "projectManagerName",
    "project_manager_signature": "projectManagerSignature",
    "project_manager_date": "projectManagerDate",
    "auditor_name": "auditorName",
    "auditor_signature": "auditorSignature",
    "auditor_date": "auditorDate",
}

_SIGNATURE_FIELDS = frozenset({"project_manager_signature", "auditor_signature"})


class StorageSlot(Protocol):
    def read(self, key: str) -> bytes | None: ...

    def write(self, key: str, data: bytes) -> None: ...


class MemoryStorageSlot:
    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._values: dict[str, bytes] = dict(initial or {})
        self.write_count = 0

    def read(self, key: str) -> bytes | None:
        return self._values.get(key)

    def write(self, key: str, data: bytes) -> None:
        self._values[key] = bytes(data)
        self.write_count += 1


class FileStorageSlot:
    """One JSON file per key inside ``directory``."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory.expanduser()

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> bytes | None:
        path = self.path_for(key)
        if not path.is_file():
            return None
        return path.read_bytes()

    def write(self, key: str, data: bytes) -> None:
        write_bytes_atomic(self.path_for(key), data)


def default_record() -> AuditRecord:
    return AuditRecord(project_info=ProjectInfo(audit_date=today_iso()))


def encode_record(record: AuditRecord) -> bytes:
    info = record.project_info
    signoff = record.signoff
    payload: dict[str, Any] = {
        "schema_version": RECORD_SCHEMA_VERSION,
        "projectInfo": {
            key: getattr(info, attr) for attr, key in _PROJECT_INFO_KEYS.items()
        },
        "auditItems": {
            item_id: {"status": answer.status, "notes": answer.notes}
            for item_id, answer in record.answers.items()
        },
        "signoff": {},
    }
    for attr, key in _SIGNOFF_KEYS.items():
        value = getattr(signoff, attr)
        if attr in _SIGNATURE_FIELDS:
            value = base64.b64encode(value).decode("ascii")
        payload["signoff"][key] = value
    return json.dumps(payload, sort_keys=True).encode("utf-8")


def decode_record(data: bytes) -> AuditRecord:
    """Parse a stored blob, replacing malformed fields with their defaults.

    Raises ValueError when the blob is not a JSON object at all.
    """
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError(f"Stored audit record is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Stored audit record must be a JSON object")

    defaults = default_record()

    raw_info = payload.get("projectInfo")
    raw_info = raw_info if isinstance(raw_info, dict) else {}
    info_values = {
        attr: _str_or(raw_info.get(key), getattr(defaults.project_info, attr))
        for attr, key in _PROJECT_INFO_KEYS.items()
    }

    answers: dict[str, AuditAnswer] = {}
    raw_items = payload.get("auditItems")
    if isinstance(raw_items, dict):
        for item_id, raw_answer in raw_items.items():
            if not isinstance(raw_answer, dict):
                continue
            status = raw_answer.get("status")
            if status not in ANSWER_STATUSES:
                status = "unset"
            answers[str(item_id)] = AuditAnswer(
                status=status,
                notes=_str_or(raw_answer.get("notes"), ""),
            )

    raw_signoff = payload.get("signoff")
    raw_signoff = raw_signoff if isinstance(raw_signoff, dict) else {}
    signoff_values: dict[str, Any] = {}
    for attr, key in _SIGNOFF_KEYS.items():
        if attr in _SIGNATURE_FIELDS:
            signoff_values[attr] = _decode_signature(raw_signoff.get(key))
        else:
            signoff_values[attr] = _str_or(raw_signoff.get(key), "")

    return AuditRecord(
        project_info=ProjectInfo(**info_values),
        answers=answers,
        signoff=Signoff(**signoff_values),
    )


def _str_or(value: Any, fallback: str) -> str:
    return value if isinstance(value, str) else fallback


def _decode_signature(value: Any) -> bytes:
    if not isinstance(value, str) or not value:
        return b""
    try:
        return signature_from_text(value)
    except ValueError:
        _LOGGER.warning("Discarding undecodable signature payload")
        return b""


def signature_from_text(value: str) -> bytes:
    """Decode a base64 signature, with or without a ``data:`` URL prefix.

    Raises ValueError when the payload is not valid base64.
    """
    # Canvas pads hand over a data URL rather than bare base64.
    if value.startswith("data:"):
        _, _, value = value.partition(",")
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Signature is not valid base64 image data: {exc}") from exc


class AuditRecordStore:
    """Single owner of the audit record.

    Every mutation replaces the held record and writes it through to the
    storage slot before returning.
    """

    def __init__(
        self,
        slot: StorageSlot,
        *,
        key: str = STORAGE_KEY,
        catalog: ChecklistCatalog = DEFAULT_CATALOG,
    ) -> None:
        self._slot = slot
        self._key = key
        self.catalog = catalog
        self._record = default_record()

    @property
    def record(self) -> AuditRecord:
        return self._record

    def load(self) -> AuditRecord:
        self._record = self._read_or_default()
        return self._record

    def save(self, record: AuditRecord) -> None:
        self._record = record
        self._persist()

    def reset(self) -> AuditRecord:
        self._record = default_record()
        self._persist()
        _LOGGER.info("Audit record reset to defaults")
        return self._record

    def set_project_info_field(self, field: str, value: str) -> None:
        if field not in _PROJECT_INFO_KEYS:
            raise ValueError(f"Unknown project info field '{field}'")
        info = replace(self._record.project_info, **{field: value})
        self._commit(replace(self._record, project_info=info))

    def set_signoff_field(self, field: str, value: str | bytes) -> None:
        if field not in _SIGNOFF_KEYS:
            raise ValueError(f"Unknown sign-off field '{field}'")
        if field in _SIGNATURE_FIELDS:
            value = signature_from_text(value) if isinstance(value, str) else bytes(value)
        elif isinstance(value, bytes):
            raise ValueError(f"Sign-off field '{field}' expects text")
        signoff = replace(self._record.signoff, **{field: value})
        self._commit(replace(self._record, signoff=signoff))

    def set_answer_status(self, item_id: str, status: str) -> None:
        _check_status(status)
        answer = replace(self._record.answer_for(item_id), status=status)
        self._commit_answers({**self._record.answers, item_id: answer})

    def set_answer_notes(self, item_id: str, notes: str) -> None:
        answer = replace(self._record.answer_for(item_id), notes=notes)
        self._commit_answers({**self._record.answers, item_id: answer})

    def mark_all_in_section(self, section_id: str, status: str) -> None:
        _check_status(status)
        items = self.catalog.items_of(section_id)
        if not items:
            return
        answers = dict(self._record.answers)
        for item in items:
            answers[item.item_id] = replace(self._record.answer_for(item.item_id), status=status)
        self._commit_answers(answers)

    def item_status(self, item_id: str) -> str:
        return self._record.answer_for(item_id).status

    def item_notes(self, item_id: str) -> str:
        return self._record.answer_for(item_id).notes

    def _commit_answers(self, answers: dict[str, AuditAnswer]) -> None:
        self._commit(replace(self._record, answers=answers))

    def _commit(self, record: AuditRecord) -> None:
        self._record = record
        self._persist()

    def _persist(self) -> None:
        self._slot.write(self._key, encode_record(self._record))
        _LOGGER.debug("Persisted audit record under key %s", self._key)

    def _read_or_default(self) -> AuditRecord:
        try:
            data = self._slot.read(self._key)
        except OSError as exc:
            _LOGGER.warning("Could not read stored audit record: %s", exc)
            return default_record()
        if data is None:
            return default_record()
        try:
            return decode_record(data)
        except ValueError as exc:
            _LOGGER.warning("Ignoring corrupt stored audit record: %s", exc)
            return default_record()


def _check_status(status: str) -> None:
    if status not in ANSWER_STATUSES:
        allowed = ", ".join(ANSWER_STATUSES)
        raise ValueError(f"Unknown answer status '{status}'. Allowed: {allowed}")
