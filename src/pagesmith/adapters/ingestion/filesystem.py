from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from pagesmith.preamble import is_excluded


def _is_hidden(path: Path, root: Path) -> bool:
    return any(part.startswith(".") for part in path.relative_to(root).parts)


@dataclass(frozen=True, slots=True)
class FilesystemSource:
    """
    Discovers the source documents of a site under `src_dir`.
    """
    src_dir: Path
    excludes: Sequence[str] = field(default_factory=tuple)
    allowed_extensions: set[str] = field(default_factory=lambda: {".md"})
    recursive: bool = True

    @property
    def content_root(self) -> str:
        return f"{self.src_dir.as_posix()}/*"

    def discover(self) -> list[Path]:
        root = self.src_dir
        if not root.is_dir():
            raise FileNotFoundError(f"Source directory not found: {root}")

        it = root.rglob("*") if self.recursive else root.glob("*")
        files = [
            p for p in it
            if p.is_file()
            and not _is_hidden(p, root)
            and (not self.allowed_extensions or p.suffix.lower() in self.allowed_extensions)
            and not is_excluded(p, self.excludes)
        ]
        # Stable, deterministic ordering
        return sorted(files, key=lambda p: p.as_posix())
