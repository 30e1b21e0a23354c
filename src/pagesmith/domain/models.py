from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

from pagesmith.domain.schema import KEY_DRAFT, KEY_MODULE, KEY_PATH
from pagesmith.utils.json_sanitize import json_sanitize


# -------------------------
# Source objects
# -------------------------

@dataclass(frozen=True, slots=True)
class SourceDocument:
    """
    A source file split into its fenced metadata text and its trimmed body.
    """
    metadata_text: str
    body: str


# -------------------------
# Resolved metadata
# -------------------------

@dataclass(frozen=True, slots=True)
class Preamble:
    """
    Fully resolved metadata of a content document.

    `path` is always derived from the file location, never authored.
    `fields` holds every other author key, with indirection already expanded.
    """
    module: str
    path: str
    draft: bool = False
    fields: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            KEY_MODULE: self.module,
            **self.fields,
            KEY_DRAFT: self.draft,
            KEY_PATH: self.path,
        }

    def to_json(self) -> str:
        return json.dumps(json_sanitize(self.to_dict()), ensure_ascii=False)


# -------------------------
# Build output
# -------------------------

@dataclass(frozen=True, slots=True)
class BuildReport:
    scanned: int = 0
    written: int = 0
    skipped_draft: int = 0
    skipped_empty: int = 0
    failed: int = 0
    outputs: tuple[str, ...] = ()
