from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Literal

AnswerStatus = Literal["yes", "no", "na", "unset"]
ValidationStep = Literal["project_info", "incomplete_items", "missing_notes", "signoff"]
SubmissionState = Literal["idle", "pending", "succeeded", "failed"]

ANSWER_STATUSES: tuple[str, ...] = ("yes", "no", "na", "unset")


@dataclass(frozen=True, slots=True)
class ProjectInfo:
    project_code: str = ""
    site_name: str = ""
    site_address: str = ""
    project_manager: str = ""
    auditor: str = ""
    audit_date: str = ""

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(item.name for item in fields(cls))


@dataclass(frozen=True, slots=True)
class AuditAnswer:
    status: AnswerStatus = "unset"
    notes: str = ""

    @property
    def answered(self) -> bool:
        return self.status != "unset"

    @property
    def needs_notes(self) -> bool:
        return self.status == "no" and not self.notes.strip()


@dataclass(frozen=True, slots=True)
class Signoff:
    comments: str = ""
    project_manager_name: str = ""
    project_manager_signature: bytes = b""
    project_manager_date: str = ""
    auditor_name: str = ""
    auditor_signature: bytes = b""
    auditor_date: str = ""

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(item.name for item in fields(cls))


@dataclass(frozen=True, slots=True)
class AuditRecord:
    project_info: ProjectInfo = field(default_factory=ProjectInfo)
    answers: Mapping[str, AuditAnswer] = field(default_factory=dict)
    signoff: Signoff = field(default_factory=Signoff)

    def __post_init__(self) -> None:
        # Changes go through AuditRecordStore so they are persisted.
        object.__setattr__(self, "answers", MappingProxyType(dict(self.answers)))

    def answer_for(self, item_id: str) -> AuditAnswer:
        return self.answers.get(item_id) or AuditAnswer()


@dataclass(frozen=True, slots=True)
class SectionProgress:
    completed: int
    total: int


@dataclass(frozen=True, slots=True)
class OverallProgress:
    completed: int
    total: int
    percentage: int


@dataclass(frozen=True, slots=True)
class ItemRef:
    section_id: str
    section_title: str
    item_id: str
    item_label: str


@dataclass(frozen=True, slots=True)
class NonCompliantItem:
    section_id: str
    section_title: str
    item_id: str
    item_label: str
    notes: str = ""


@dataclass(frozen=True, slots=True)
class ValidationFailure:
    step: ValidationStep
    message: str
    section_id: str
    item_id: str | None = None
    missing_fields: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class NavigationResult:
    moved: bool
    index: int
    section_id: str
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    state: SubmissionState
    file_name: str | None = None
    failure: ValidationFailure | None = None
    error: str | None = None
    remote_item: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.state == "succeeded"
