from __future__ import annotations

from io import BytesIO

import pytest
from PIL import Image

from das_audit.config import AuditSettings
from das_audit.store import AuditRecordStore, MemoryStorageSlot

PROJECT_INFO = {
    "project_code": "PT-2041",
    "site_name": "Westfield Tower",
    "site_address": "1 Harbour St, Sydney NSW",
    "project_manager": "Sam Lee",
    "auditor": "Alex Morgan",
    "audit_date": "2026-03-14",
}


@pytest.fixture()
def slot() -> MemoryStorageSlot:
    return MemoryStorageSlot()


@pytest.fixture()
def store(slot: MemoryStorageSlot) -> AuditRecordStore:
    audit_store = AuditRecordStore(slot)
    audit_store.load()
    return audit_store


@pytest.fixture()
def signature_png() -> bytes:
    image = Image.new("RGB", (240, 80), "white")
    for x in range(20, 220):
        image.putpixel((x, 40 + (x % 10) - 5), (0, 0, 0))
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture()
def project_store(store: AuditRecordStore) -> AuditRecordStore:
    for field, value in PROJECT_INFO.items():
        store.set_project_info_field(field, value)
    return store


@pytest.fixture()
def answered_store(project_store: AuditRecordStore) -> AuditRecordStore:
    for section in project_store.catalog.sections():
        project_store.mark_all_in_section(section.section_id, "yes")
    return project_store


@pytest.fixture()
def complete_store(answered_store: AuditRecordStore, signature_png: bytes) -> AuditRecordStore:
    answered_store.set_signoff_field("project_manager_name", "Sam Lee")
    answered_store.set_signoff_field("project_manager_signature", signature_png)
    answered_store.set_signoff_field("project_manager_date", "2026-03-15")
    return answered_store


@pytest.fixture()
def settings() -> AuditSettings:
    return AuditSettings(
        graph_base_url="https://graph.test/v1.0",
        sharepoint_site_url="contoso.sharepoint.com:/sites/projects",
        sharepoint_library="Shared Documents",
        sharepoint_folder="Audits",
        access_token="token-123",
        account="alex@contoso.test",
    )
