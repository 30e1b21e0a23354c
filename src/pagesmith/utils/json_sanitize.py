from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any, Mapping


def json_sanitize(x: Any) -> Any:
    """
    Convert YAML-decoded values into JSON-safe types.
    - datetime/date -> ISO string (YAML timestamps)
    - Path -> str
    - set/tuple -> list
    - bytes -> utf-8 text (YAML !!binary)
    - mappings/sequences -> recursively sanitized
    - unknown objects -> str(x)
    """
    if x is None or isinstance(x, (str, int, float, bool)):
        return x

    if isinstance(x, (datetime, date)):
        return x.isoformat()

    if isinstance(x, Path):
        return x.as_posix()

    if isinstance(x, bytes):
        return x.decode("utf-8", errors="replace")

    if isinstance(x, (set, frozenset)):
        return [json_sanitize(v) for v in sorted(x, key=lambda v: str(v))]

    if isinstance(x, (tuple, list)):
        return [json_sanitize(v) for v in x]

    if isinstance(x, Mapping):
        return {str(k): json_sanitize(v) for k, v in x.items()}

    return str(x)
