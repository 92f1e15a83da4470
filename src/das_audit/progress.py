"""Derived completion state for an audit record.

Two levels of completion are tracked separately:

* *answered*: an item has any status other than ``unset``. Progress counts
  (``section_progress``, ``overall_progress``) use this.
* *complete*: answered, and every item answered ``no`` carries a non-blank
  note. Section gating (``is_section_complete``) uses this.

Everything here is a pure function of a catalog and a record.
"""

from __future__ import annotations

from das_audit.catalog import DEFAULT_CATALOG, PROJECT_STEP, SIGNOFF_STEP, ChecklistCatalog
from das_audit.models import (
    AuditRecord,
    ItemRef,
    NonCompliantItem,
    OverallProgress,
    SectionProgress,
)

PROJECT_INFO_LABELS = {
    "project_code": "Project code",
    "site_name": "Site name",
    "site_address": "Site address",
    "project_manager": "Project manager",
    "auditor": "Auditor name",
    "audit_date": "Audit date",
}

SIGNOFF_LABELS = {
    "project_manager_name": "Project manager name",
    "project_manager_signature": "Project manager signature",
    "project_manager_date": "Sign-off date",
}


def section_progress(
    record: AuditRecord,
    section_id: str,
    *,
    catalog: ChecklistCatalog = DEFAULT_CATALOG,
) -> SectionProgress:
    items = catalog.items_of(section_id)
    completed = sum(1 for item in items if record.answer_for(item.item_id).answered)
    return SectionProgress(completed=completed, total=len(items))


def overall_progress(
    record: AuditRecord,
    *,
    catalog: ChecklistCatalog = DEFAULT_CATALOG,
) -> OverallProgress:
    completed = 0
    for section in catalog.sections():
        completed += section_progress(record, section.section_id, catalog=catalog).completed
    total = catalog.total_item_count()
    percentage = round(100 * completed / total) if total > 0 else 0
    return OverallProgress(completed=completed, total=total, percentage=percentage)


def all_items_answered(
    record: AuditRecord,
    *,
    catalog: ChecklistCatalog = DEFAULT_CATALOG,
) -> bool:
    progress = overall_progress(record, catalog=catalog)
    return progress.completed == progress.total


def non_compliant_items(
    record: AuditRecord,
    *,
    catalog: ChecklistCatalog = DEFAULT_CATALOG,
) -> list[NonCompliantItem]:
    found: list[NonCompliantItem] = []
    for section in catalog.sections():
        for item in section.items:
            answer = record.answer_for(item.item_id)
            if answer.status == "no":
                found.append(
                    NonCompliantItem(
                        section_id=section.section_id,
                        section_title=section.title,
                        item_id=item.item_id,
                        item_label=item.label,
                        notes=answer.notes,
                    )
                )
    return found


def non_compliant_without_notes(
    record: AuditRecord,
    *,
    catalog: ChecklistCatalog = DEFAULT_CATALOG,
) -> list[ItemRef]:
    return [
        ItemRef(
            section_id=item.section_id,
            section_title=item.section_title,
            item_id=item.item_id,
            item_label=item.item_label,
        )
        for item in non_compliant_items(record, catalog=catalog)
        if not item.notes.strip()
    ]


def incomplete_items(
    record: AuditRecord,
    *,
    catalog: ChecklistCatalog = DEFAULT_CATALOG,
) -> list[ItemRef]:
    found: list[ItemRef] = []
    for section in catalog.sections():
        for item in section.items:
            if not record.answer_for(item.item_id).answered:
                found.append(
                    ItemRef(
                        section_id=section.section_id,
                        section_title=section.title,
                        item_id=item.item_id,
                        item_label=item.label,
                    )
                )
    return found


def project_info_errors(record: AuditRecord) -> dict[str, str]:
    """Missing project info fields mapped to a message for each, in form order."""
    info = record.project_info
    return {
        name: f"{label} is required"
        for name, label in PROJECT_INFO_LABELS.items()
        if not getattr(info, name).strip()
    }


def missing_signoff_fields(record: AuditRecord) -> list[str]:
    signoff = record.signoff
    missing: list[str] = []
    if not signoff.project_manager_name.strip():
        missing.append("project_manager_name")
    if not signoff.project_manager_signature:
        missing.append("project_manager_signature")
    if not signoff.project_manager_date.strip():
        missing.append("project_manager_date")
    return missing


def is_project_info_complete(record: AuditRecord) -> bool:
    return not project_info_errors(record)


def is_signoff_complete(record: AuditRecord) -> bool:
    return not missing_signoff_fields(record)


def is_section_complete(
    record: AuditRecord,
    section_id: str,
    *,
    catalog: ChecklistCatalog = DEFAULT_CATALOG,
) -> bool:
    if section_id == PROJECT_STEP:
        return is_project_info_complete(record)
    if section_id == SIGNOFF_STEP:
        return is_signoff_complete(record)
    if catalog.section(section_id) is None:
        return False

    progress = section_progress(record, section_id, catalog=catalog)
    if progress.completed != progress.total:
        return False
    return not any(
        record.answer_for(item.item_id).needs_notes for item in catalog.items_of(section_id)
    )
