from __future__ import annotations

from typing import Final

# Reserved preamble keys
KEY_MODULE: Final[str] = "module"
KEY_DRAFT: Final[str] = "draft"
KEY_PATH: Final[str] = "path"
KEY_EXTERNAL: Final[str] = "external"
KEY_PREAMBLES_IN: Final[str] = "preamblesIn"

DELIMITER: Final[str] = "---"
