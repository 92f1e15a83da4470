from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

from das_audit.errors import AuthenticationError, SubmissionInProgressError, UploadError
from das_audit.identity import IdentityProvider
from das_audit.models import AuditRecord, SubmissionResult, SubmissionState
from das_audit.navigation import NavigationGate
from das_audit.store import AuditRecordStore
from das_audit.upload import generate_file_name
from das_audit.utils import write_bytes_atomic
from das_audit.validation import validate_submission

_LOGGER = logging.getLogger(__name__)

NOT_SIGNED_IN_MESSAGE = "Not signed in. Please sign in to submit the audit."


class DocumentUploader(Protocol):
    async def upload(self, token: str, document: bytes, file_name: str) -> dict[str, Any]: ...


DocumentRenderer = Callable[[AuditRecord], bytes]


class SubmissionCoordinator:
    """Validates, renders and uploads the audit, one attempt at a time.

    Validation and sign-in problems are reported before anything is rendered
    or sent. A failed upload leaves the record untouched so the same audit
    can be retried or exported locally.
    """

    def __init__(
        self,
        store: AuditRecordStore,
        gate: NavigationGate,
        *,
        identity: IdentityProvider,
        uploader: DocumentUploader,
        renderer: DocumentRenderer,
    ) -> None:
        self._store = store
        self._gate = gate
        self._identity = identity
        self._uploader = uploader
        self._renderer = renderer
        self._state: SubmissionState = "idle"

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def pending(self) -> bool:
        return self._state == "pending"

    async def submit(self) -> SubmissionResult:
        if self._state == "pending":
            raise SubmissionInProgressError("A submission for this audit is already in progress")
        self._state = "pending"
        try:
            result = await self._submit()
        except BaseException:
            self._state = "failed"
            raise
        self._state = "succeeded" if result.ok else "failed"
        return result

    async def retry(self) -> SubmissionResult:
        return await self.submit()

    def export_local(self, directory: Path) -> Path:
        """Write the rendered document under ``directory`` and return its path."""
        record = self._store.record
        path = directory.expanduser() / generate_file_name(record.project_info)
        write_bytes_atomic(path, self._renderer(record))
        _LOGGER.info("Exported audit document to %s", path)
        return path

    async def _submit(self) -> SubmissionResult:
        record = self._store.record
        catalog = self._store.catalog

        failure = validate_submission(record, catalog=catalog)
        if failure is not None:
            self._gate.show(failure.section_id)
            _LOGGER.info("Submission blocked at %s: %s", failure.step, failure.message)
            return SubmissionResult(state="failed", failure=failure, error=failure.message)

        identity = self._identity.get_active_identity()
        if identity is None:
            return SubmissionResult(state="failed", error=NOT_SIGNED_IN_MESSAGE)
        try:
            token = await self._identity.acquire_access_token(identity)
        except AuthenticationError as exc:
            _LOGGER.warning("Could not acquire access token: %s", exc)
            return SubmissionResult(state="failed", error=str(exc))

        file_name = generate_file_name(record.project_info)
        # Rendering is CPU bound.
        document = await asyncio.to_thread(self._renderer, record)
        try:
            remote_item = await self._uploader.upload(token, document, file_name)
        except UploadError as exc:
            return SubmissionResult(state="failed", file_name=file_name, error=exc.reason)

        _LOGGER.info("Submitted audit as %s", file_name)
        return SubmissionResult(state="succeeded", file_name=file_name, remote_item=remote_item)
