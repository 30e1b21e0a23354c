from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def _looks_binary(data: bytes) -> bool:
    """
    Heuristic: NUL bytes, or more than 2% control bytes in the first 4KB.
    """
    if not data:
        return False
    if b"\x00" in data:
        return True

    sample = data[:4096]
    control = sum(1 for b in sample if b < 9 or (13 < b < 32))
    return (control / max(1, len(sample))) > 0.02


@dataclass(frozen=True, slots=True)
class TextLoader:
    """
    Loads a UTF-8 source file from disk.

    Returns None (and logs why) for files that are too large, binary or not UTF-8,
    so a batch can skip them without failing.
    """
    max_bytes: int = 2_000_000  # 2MB
    encoding: str = "utf-8"

    def load(self, path: Path) -> Optional[str]:
        try:
            size = path.stat().st_size
            if size > self.max_bytes:
                logger.warning("%s: skipped, %d bytes exceeds %d", path, size, self.max_bytes)
                return None
            data = path.read_bytes()
        except OSError as e:
            logger.warning("%s: unreadable (%s)", path, e)
            return None

        if _looks_binary(data):
            logger.info("%s: skipped, looks binary", path)
            return None

        try:
            return data.decode(self.encoding, errors="strict")
        except UnicodeDecodeError:
            logger.warning("%s: skipped, not valid %s", path, self.encoding)
            return None
