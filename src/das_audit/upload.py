from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from das_audit.config import AuditSettings
from das_audit.errors import UploadError
from das_audit.models import ProjectInfo
from das_audit.utils import compact_date, sanitize_component

_LOGGER = logging.getLogger(__name__)

HTTP_STATUS_BAD_REQUEST = 400


def generate_file_name(project_info: ProjectInfo) -> str:
    project_code = sanitize_component(project_info.project_code, fallback="UNKNOWN")
    site_name = sanitize_component(project_info.site_name, fallback="Site")
    return f"{project_code}_{site_name}_{compact_date(project_info.audit_date)}_Audit.pdf"


class GraphDocumentStore:
    """Uploads finished audit documents to a SharePoint document library.

    The library is located by name among the drives of the configured site
    and the document is written into the configured folder, replacing any
    existing file with the same name.
    """

    def __init__(
        self,
        settings: AuditSettings,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._client = client

    async def upload(self, token: str, document: bytes, file_name: str) -> dict[str, Any]:
        if self._client is not None:
            return await self._upload_with(self._client, token, document, file_name)
        async with httpx.AsyncClient(timeout=self._settings.upload_timeout) as client:
            return await self._upload_with(client, token, document, file_name)

    async def _upload_with(
        self,
        client: httpx.AsyncClient,
        token: str,
        document: bytes,
        file_name: str,
    ) -> dict[str, Any]:
        site = await self._get_json(client, token, f"/sites/{self._settings.sharepoint_site_url}")
        site_id = site.get("id")
        if not isinstance(site_id, str):
            raise UploadError("Site lookup did not return an id")

        drives = (await self._get_json(client, token, f"/sites/{site_id}/drives")).get("value")
        if not isinstance(drives, list):
            raise UploadError("Drive listing did not return a list of drives")
        library = self._settings.sharepoint_library
        drive_id = None
        for drive in drives:
            if isinstance(drive, dict) and drive.get("name") == library:
                drive_id = drive.get("id")
                break
        if drive_id is None:
            raise UploadError(f'Document library "{library}" not found')

        folder = self._settings.sharepoint_folder.strip("/")
        folder_path = f"{folder}/{file_name}" if folder else file_name
        url = self._url(f"/drives/{drive_id}/root:/{quote(folder_path, safe='/')}:/content")

        try:
            response = await client.put(
                url,
                content=document,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/pdf",
                },
            )
        except httpx.HTTPError as err:
            _LOGGER.warning("Upload of %s failed: %s", file_name, err)
            raise UploadError(f"Upload failed: {err}") from err

        if response.status_code >= HTTP_STATUS_BAD_REQUEST:
            reason = _error_message(response, f"Upload failed: {response.status_code}")
            _LOGGER.warning("Upload of %s rejected: %s", file_name, reason)
            raise UploadError(reason, status_code=response.status_code)

        _LOGGER.info("Uploaded %s (%d bytes) to %s", file_name, len(document), library)
        return _json_object(response)

    async def _get_json(
        self,
        client: httpx.AsyncClient,
        token: str,
        endpoint: str,
    ) -> dict[str, Any]:
        try:
            response = await client.get(
                self._url(endpoint),
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as err:
            _LOGGER.debug("Graph request to %s failed: %s", endpoint, err)
            raise UploadError(f"Graph API request failed: {err}") from err

        if response.status_code >= HTTP_STATUS_BAD_REQUEST:
            raise UploadError(
                _error_message(response, f"Graph API error: {response.status_code}"),
                status_code=response.status_code,
            )
        return _json_object(response)

    def _url(self, endpoint: str) -> str:
        return self._settings.graph_base_url.rstrip("/") + endpoint


def _json_object(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _error_message(response: httpx.Response, fallback: str) -> str:
    error = _json_object(response).get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    return fallback
