from __future__ import annotations

import os
import re
import tempfile
from dataclasses import asdict, is_dataclass
from datetime import date
from pathlib import Path
from typing import Any

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def today_iso() -> str:
    return date.today().isoformat()


def sanitize_component(value: str | None, *, fallback: str) -> str:
    return _NON_ALNUM.sub("", value or "") or fallback


def compact_date(value: str | None) -> str:
    return (value or today_iso()).replace("-", "")


def write_bytes_atomic(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def to_plain_data(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return to_plain_data(asdict(value))
    if isinstance(value, dict):
        return {str(k): to_plain_data(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_plain_data(item) for item in value]
    if isinstance(value, tuple):
        return [to_plain_data(item) for item in value]
    if isinstance(value, bytes):
        return f"<{len(value)} bytes>"
    return value
