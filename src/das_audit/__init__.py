from __future__ import annotations

from importlib.metadata import version as _distribution_version
from pathlib import Path
import tomllib

from das_audit.catalog import DEFAULT_CATALOG, ChecklistCatalog, ChecklistItem, Section
from das_audit.models import AuditAnswer, AuditRecord, ProjectInfo, Signoff
from das_audit.navigation import NavigationGate
from das_audit.progress import (
    incomplete_items,
    is_project_info_complete,
    is_section_complete,
    is_signoff_complete,
    non_compliant_items,
    non_compliant_without_notes,
    overall_progress,
    section_progress,
)
from das_audit.store import AuditRecordStore, FileStorageSlot, MemoryStorageSlot
from das_audit.submission import SubmissionCoordinator
from das_audit.validation import validate_submission


def _read_version_from_pyproject() -> str | None:
    pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    if not pyproject_path.exists():
        return None

    data = tomllib.loads(pyproject_path.read_text(encoding="utf-8"))
    project = data.get("project", {})
    version = project.get("version")
    if not version:
        return None
    return str(version)


def _resolve_version() -> str:
    local_version = _read_version_from_pyproject()
    if local_version is not None:
        return local_version
    return _distribution_version("das-audit")


__version__ = _resolve_version()

__all__ = [
    "DEFAULT_CATALOG",
    "ChecklistCatalog",
    "ChecklistItem",
    "Section",
    "AuditAnswer",
    "AuditRecord",
    "ProjectInfo",
    "Signoff",
    "AuditRecordStore",
    "FileStorageSlot",
    "MemoryStorageSlot",
    "section_progress",
    "overall_progress",
    "non_compliant_items",
    "non_compliant_without_notes",
    "incomplete_items",
    "is_project_info_complete",
    "is_signoff_complete",
    "is_section_complete",
    "NavigationGate",
    "validate_submission",
    "SubmissionCoordinator",
]
