from __future__ import annotations

from typing import Protocol


class PostProcessor(Protocol):
    """
    Final cleanup of rendered markup. Must be idempotent and leave unrelated content alone.
    """

    def process(self, markup: str) -> str:
        ...
