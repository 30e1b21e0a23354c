from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from tests.helpers.renderers import FakeRenderer


@pytest.fixture
def write(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a UTF-8 file under tmp_path, creating parent directories."""

    def _write(rel: str, text: str) -> Path:
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()
