from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
DEFAULT_SITE_URL = "powertectelecom.sharepoint.com:/sites/projects"
DEFAULT_LIBRARY = "Shared Documents"
DEFAULT_FOLDER = "13 - Project Audit Form Submissions"
DEFAULT_UPLOAD_TIMEOUT = 60.0


@dataclass(frozen=True, slots=True)
class AuditSettings:
    data_dir: Path = Path("~/.das-audit")
    graph_base_url: str = DEFAULT_GRAPH_BASE_URL
    sharepoint_site_url: str = DEFAULT_SITE_URL
    sharepoint_library: str = DEFAULT_LIBRARY
    sharepoint_folder: str = DEFAULT_FOLDER
    access_token: str | None = None
    account: str | None = None
    upload_timeout: float = DEFAULT_UPLOAD_TIMEOUT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AuditSettings:
        env = os.environ if environ is None else environ
        timeout_raw = env.get("DAS_AUDIT_UPLOAD_TIMEOUT")
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_UPLOAD_TIMEOUT
        except ValueError as exc:
            raise ValueError(f"DAS_AUDIT_UPLOAD_TIMEOUT must be a number, got {timeout_raw!r}") from exc

        return cls(
            data_dir=Path(env.get("DAS_AUDIT_DATA_DIR") or "~/.das-audit").expanduser(),
            graph_base_url=env.get("GRAPH_BASE_URL") or DEFAULT_GRAPH_BASE_URL,
            sharepoint_site_url=env.get("SHAREPOINT_SITE_URL") or DEFAULT_SITE_URL,
            sharepoint_library=env.get("SHAREPOINT_LIBRARY") or DEFAULT_LIBRARY,
            # An explicitly empty folder uploads to the library root.
            sharepoint_folder=env.get("SHAREPOINT_FOLDER", DEFAULT_FOLDER),
            access_token=env.get("DAS_AUDIT_ACCESS_TOKEN") or None,
            account=env.get("DAS_AUDIT_ACCOUNT") or None,
            upload_timeout=timeout,
        )
