from __future__ import annotations

from typing import Protocol


class Renderer(Protocol):
    """
    Turns a module name, a serialized resolved preamble and a body into markup.
    Raises RenderError when the page cannot be rendered.
    """

    def render(self, module: str, preamble_json: str, body: str) -> str:
        ...
