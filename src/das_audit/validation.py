from __future__ import annotations

from das_audit.catalog import DEFAULT_CATALOG, PROJECT_STEP, SIGNOFF_STEP, ChecklistCatalog
from das_audit.models import AuditRecord, ValidationFailure
from das_audit.progress import (
    PROJECT_INFO_LABELS,
    incomplete_items,
    missing_signoff_fields,
    non_compliant_without_notes,
    project_info_errors,
)


def validate_submission(
    record: AuditRecord,
    *,
    catalog: ChecklistCatalog = DEFAULT_CATALOG,
) -> ValidationFailure | None:
    """Run the final pre-submit checks and return the first failure, if any.

    Checks run in a fixed order: project info, unanswered items,
    non-compliant items without notes, then sign-off.
    """
    errors = project_info_errors(record)
    if errors:
        labels = ", ".join(PROJECT_INFO_LABELS[name] for name in errors)
        return ValidationFailure(
            step="project_info",
            message=f"Please fill in all required project information ({labels})",
            section_id=PROJECT_STEP,
            missing_fields=tuple(errors),
        )

    incomplete = incomplete_items(record, catalog=catalog)
    if incomplete:
        first = incomplete[0]
        return ValidationFailure(
            step="incomplete_items",
            message=(
                f"Please complete all audit items. {len(incomplete)} item(s) remaining. "
                f'First incomplete: "{first.item_label}" in {first.section_title}'
            ),
            section_id=first.section_id,
            item_id=first.item_id,
        )

    missing_notes = non_compliant_without_notes(record, catalog=catalog)
    if missing_notes:
        first = missing_notes[0]
        return ValidationFailure(
            step="missing_notes",
            message=(
                f"Please add notes for all non-compliant items. {len(missing_notes)} item(s) "
                f'need notes. First: "{first.item_label}" in {first.section_title}'
            ),
            section_id=first.section_id,
            item_id=first.item_id,
        )

    missing_signoff = missing_signoff_fields(record)
    if missing_signoff:
        return ValidationFailure(
            step="signoff",
            message=(
                "Please complete the Project Manager sign-off "
                "(name, signature, and date required)"
            ),
            section_id=SIGNOFF_STEP,
            missing_fields=tuple(missing_signoff),
        )

    return None
