"""Renderer doubles for pipeline tests."""
from __future__ import annotations

import json

from pagesmith.domain.errors import RenderError


class FakeRenderer:
    """Records calls and echoes the module and body as markup."""

    def __init__(self, markup: str | None = None) -> None:
        self.calls: list[tuple[str, dict, str]] = []
        self.markup = markup

    def render(self, module: str, preamble_json: str, body: str) -> str:
        preamble = json.loads(preamble_json)
        self.calls.append((module, preamble, body))
        if self.markup is not None:
            return self.markup
        return f"<html><head></head><body><h1>{module}</h1><p>{body}</p></body></html>"


class FailingRenderer:
    def render(self, module: str, preamble_json: str, body: str) -> str:
        raise RenderError(f"cannot render {module}")
