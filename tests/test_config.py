from __future__ import annotations

from pathlib import Path

import pytest

from das_audit.config import DEFAULT_FOLDER, DEFAULT_LIBRARY, AuditSettings


def test_defaults_from_empty_environment() -> None:
    settings = AuditSettings.from_env({})
    assert settings.sharepoint_library == DEFAULT_LIBRARY
    assert settings.sharepoint_folder == DEFAULT_FOLDER
    assert settings.access_token is None
    assert settings.upload_timeout == 60.0
    assert settings.data_dir == Path("~/.das-audit").expanduser()


def test_environment_overrides(tmp_path: Path) -> None:
    settings = AuditSettings.from_env(
        {
            "DAS_AUDIT_DATA_DIR": str(tmp_path),
            "SHAREPOINT_LIBRARY": "Audits",
            "SHAREPOINT_FOLDER": "",
            "DAS_AUDIT_ACCESS_TOKEN": "abc",
            "DAS_AUDIT_ACCOUNT": "alex@contoso.test",
            "DAS_AUDIT_UPLOAD_TIMEOUT": "12.5",
        }
    )
    assert settings.data_dir == tmp_path
    assert settings.sharepoint_library == "Audits"
    assert settings.sharepoint_folder == ""
    assert settings.access_token == "abc"
    assert settings.account == "alex@contoso.test"
    assert settings.upload_timeout == 12.5


def test_invalid_timeout_rejected() -> None:
    with pytest.raises(ValueError, match="DAS_AUDIT_UPLOAD_TIMEOUT"):
        AuditSettings.from_env({"DAS_AUDIT_UPLOAD_TIMEOUT": "soon"})
