from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from das_audit.catalog import PROJECT_STEP, SIGNOFF_STEP, Step
from das_audit.models import NavigationResult
from das_audit.progress import (
    SIGNOFF_LABELS,
    is_section_complete,
    missing_signoff_fields,
    project_info_errors,
    section_progress,
)
from das_audit.store import AuditRecordStore

_LOGGER = logging.getLogger(__name__)

LOCKED_MESSAGE = "Please complete previous sections first"


@dataclass(frozen=True, slots=True)
class TabStatus:
    index: int
    step_id: str
    label: str
    active: bool
    accessible: bool
    complete: bool
    completed: int | None = None
    total: int | None = None


class NavigationGate:
    """Sequential access over project info, the checklist sections, and sign-off.

    A step is reachable only when every step before it is complete. Moving
    backwards is always allowed.
    """

    def __init__(
        self,
        store: AuditRecordStore,
        *,
        active_index: int = 0,
        on_transition: Callable[[int], None] | None = None,
    ) -> None:
        self._store = store
        self.steps: tuple[Step, ...] = store.catalog.steps()
        if not 0 <= active_index < len(self.steps):
            raise ValueError(f"Step index {active_index} is out of range")
        self._active_index = active_index
        self._on_transition = on_transition

    @property
    def active_index(self) -> int:
        return self._active_index

    @property
    def active_step(self) -> Step:
        return self.steps[self._active_index]

    @property
    def is_first(self) -> bool:
        return self._active_index == 0

    @property
    def is_last(self) -> bool:
        return self._active_index == len(self.steps) - 1

    def index_of(self, step_id: str) -> int:
        for index, step in enumerate(self.steps):
            if step.step_id == step_id:
                return index
        raise ValueError(f"Unknown step '{step_id}'")

    def is_step_complete(self, index: int) -> bool:
        return is_section_complete(
            self._store.record,
            self.steps[index].step_id,
            catalog=self._store.catalog,
        )

    def can_access(self, index: int) -> bool:
        if not 0 <= index < len(self.steps):
            return False
        return all(self.is_step_complete(earlier) for earlier in range(index))

    def go_next(self) -> NavigationResult:
        if not self.is_step_complete(self._active_index):
            reason = self.blocking_reason(self._active_index)
            _LOGGER.debug("Refusing to leave step %s: %s", self.active_step.step_id, reason)
            return self._stay(reason)
        if self.is_last:
            return self._stay(None)
        return self._move_to(self._active_index + 1)

    def go_previous(self) -> NavigationResult:
        if self.is_first:
            return self._stay(None)
        return self._move_to(self._active_index - 1)

    def jump_to(self, index: int) -> NavigationResult:
        if not self.can_access(index):
            return self._stay(LOCKED_MESSAGE)
        if index == self._active_index:
            return self._stay(None)
        return self._move_to(index)

    def show(self, step_id: str) -> None:
        """Point the gate at ``step_id`` without gating.

        Used by submission validation to send the user to the step that
        failed, which is always at or before the first incomplete step.
        """
        index = self.index_of(step_id)
        if index != self._active_index:
            self._move_to(index)

    def blocking_reason(self, index: int) -> str | None:
        record = self._store.record
        step = self.steps[index]
        if step.step_id == PROJECT_STEP:
            errors = project_info_errors(record)
            if not errors:
                return None
            labels = ", ".join(message.removesuffix(" is required") for message in errors.values())
            return f"Please fill in all required project information: {labels}"
        if step.step_id == SIGNOFF_STEP:
            missing = missing_signoff_fields(record)
            if not missing:
                return None
            labels = ", ".join(SIGNOFF_LABELS[name] for name in missing)
            return f"Please complete the Project Manager sign-off: {labels}"

        section = self._store.catalog.section(step.step_id)
        if section is None:
            return None
        progress = section_progress(record, section.section_id, catalog=self._store.catalog)
        remaining = progress.total - progress.completed
        if remaining:
            return (
                f"Please answer all items in {section.title}. "
                f"{remaining} item(s) remaining."
            )
        needing_notes = [
            item.label
            for item in section.items
            if record.answer_for(item.item_id).needs_notes
        ]
        if needing_notes:
            quoted = ", ".join(f'"{label}"' for label in needing_notes)
            return f"Please add notes explaining non-compliant items in {section.title}: {quoted}"
        return None

    def tabs(self) -> list[TabStatus]:
        record = self._store.record
        catalog = self._store.catalog
        overview: list[TabStatus] = []
        for index, step in enumerate(self.steps):
            counts = None
            if catalog.section(step.step_id) is not None:
                counts = section_progress(record, step.step_id, catalog=catalog)
            overview.append(
                TabStatus(
                    index=index,
                    step_id=step.step_id,
                    label=step.label,
                    active=index == self._active_index,
                    accessible=self.can_access(index),
                    complete=self.is_step_complete(index),
                    completed=counts.completed if counts else None,
                    total=counts.total if counts else None,
                )
            )
        return overview

    def _stay(self, reason: str | None) -> NavigationResult:
        return NavigationResult(
            moved=False,
            index=self._active_index,
            section_id=self.active_step.step_id,
            reason=reason,
        )

    def _move_to(self, index: int) -> NavigationResult:
        self._active_index = index
        if self._on_transition is not None:
            self._on_transition(index)
        return NavigationResult(moved=True, index=index, section_id=self.active_step.step_id)
