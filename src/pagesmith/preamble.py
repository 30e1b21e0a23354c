from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path, PurePath, PurePosixPath
from typing import Any, Mapping, Optional, Sequence

from pagesmith.domain.errors import (
    MissingModule,
    ReferenceNotFound,
    ReservedFieldCollision,
    SiblingKeysForbidden,
    StructuralParseFailure,
)
from pagesmith.domain.models import Preamble
from pagesmith.domain.schema import (
    KEY_DRAFT,
    KEY_EXTERNAL,
    KEY_MODULE,
    KEY_PATH,
    KEY_PREAMBLES_IN,
)
from pagesmith.utils.parsing import load_mapping, load_yaml, split_document

logger = logging.getLogger(__name__)


def _is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


def _visit_key(path: Path) -> str:
    return str(path.resolve())


def is_excluded(path: Path, excludes: Sequence[str]) -> bool:
    """
    True when the path (as listed, absolute, or relative to the working directory)
    matches any exclusion glob. Each `*` stands for one path segment, and a
    relative pattern is matched against the trailing segments.
    """
    if not excludes:
        return False
    absolute = os.path.abspath(path)
    candidates = (
        PurePosixPath(path.as_posix()),
        PurePosixPath(Path(absolute).as_posix()),
        PurePosixPath(Path(os.path.relpath(absolute)).as_posix()),
    )
    return any(c.match(pattern) for pattern in excludes for c in candidates)


def list_content_files(directory: Path, excludes: Sequence[str] = ()) -> list[Path]:
    """
    Regular, non-hidden files directly inside `directory`, minus exclusions.
    Sorted by path so that aggregation order is stable across platforms.
    """
    files = [
        p for p in directory.glob("*")
        if p.is_file() and not _is_hidden(p) and not is_excluded(p, excludes)
    ]
    return sorted(files, key=lambda p: p.as_posix())


def derive_path(source: str | Path, content_root: str) -> str:
    """
    Site path of a source file, relative to the directory of the content root glob.

        site/blog/post1.md -> /blog/post1
        site/blog/index.md -> /blog
        site/index.md      -> /
    """
    root_dir = os.path.dirname(content_root) or "."
    rel = PurePath(os.path.relpath(os.path.abspath(source), os.path.abspath(root_dir)))

    if rel.suffix:
        rel = rel.with_suffix("")
    if rel.name == "index":
        rel = rel.parent

    site_path = rel.as_posix()
    if site_path == ".":
        site_path = ""
    return f"/{site_path}"


def _read_text(path: Path, *, referrer: Optional[Path]) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ReferenceNotFound(
            f"cannot read {path.as_posix()}: {getattr(e, 'strerror', None) or e}",
            source=str(referrer) if referrer else str(path),
            target=str(path),
        ) from e


@dataclass(frozen=True, slots=True)
class PreambleResolver:
    """
    Decodes preamble blocks and expands their indirection keys.

      - `external: file.yml` replaces its node with that file's YAML, resolved
        relative to the file holding the key
      - `preamblesIn: dir` replaces its node with the resolved preambles of every
        document directly inside dir

    The visited set holds the files on the current resolution chain. Each
    descent gets its own copy, so sibling branches never see each other's
    entries. Nothing is cached between calls.
    """
    content_root: str
    excludes: tuple[str, ...] = field(default_factory=tuple)

    def resolve_file(
        self,
        source: str | Path,
        *,
        visited: Optional[set[str]] = None,
        referrer: Optional[Path] = None,
    ) -> Preamble:
        path = Path(source)
        doc = split_document(_read_text(path, referrer=referrer))
        if doc is None:
            raise StructuralParseFailure("no '---' fenced preamble", source=str(path))
        return self.parse_preamble(doc.metadata_text, path, visited=visited)

    def parse_preamble(
        self,
        metadata_text: str,
        source: str | Path,
        *,
        visited: Optional[set[str]] = None,
    ) -> Preamble:
        path = Path(source)
        raw = load_mapping(metadata_text, source=str(path))

        if KEY_PATH in raw:
            raise ReservedFieldCollision(
                f'"{KEY_PATH}" is derived and cannot be set at the top level', source=str(path)
            )
        module = raw.get(KEY_MODULE)
        if not isinstance(module, str):
            raise MissingModule(f'no "{KEY_MODULE}"', source=str(path))
        draft = raw.get(KEY_DRAFT)
        if not isinstance(draft, bool):
            draft = False

        # ancestor chain of this file; the caller's set is left as is
        visited = (visited or set()) | {_visit_key(path)}

        resolved = self._resolve_node({**raw, KEY_DRAFT: draft}, path, visited)
        fields = {k: v for k, v in resolved.items() if k not in (KEY_MODULE, KEY_DRAFT)}
        return Preamble(
            module=module,
            path=derive_path(path, self.content_root),
            draft=draft,
            fields=fields,
        )

    def _resolve_node(self, node: Any, source: Path, visited: set[str]) -> Any:
        if isinstance(node, Mapping):
            if KEY_EXTERNAL in node:
                self._require_alone(node, KEY_EXTERNAL, source)
                return self._expand_external(node[KEY_EXTERNAL], source, visited)
            if KEY_PREAMBLES_IN in node:
                return self._aggregate(node[KEY_PREAMBLES_IN], source, visited)
            return {key: self._resolve_node(value, source, visited) for key, value in node.items()}

        if isinstance(node, list):
            return [self._resolve_node(item, source, visited) for item in node]

        return node

    @staticmethod
    def _require_alone(node: Mapping[Any, Any], key: str, source: Path) -> None:
        if len(node) != 1:
            siblings = ", ".join(sorted(str(k) for k in node if k != key))
            raise SiblingKeysForbidden(
                f'"{key}" cannot have siblings (found: {siblings})', source=str(source)
            )

    @staticmethod
    def _reference(target: Any, key: str, source: Path) -> Path:
        if not isinstance(target, str) or not target.strip():
            raise ReferenceNotFound(
                f'"{key}" must be a relative path string, got {target!r}', source=str(source)
            )
        return Path(os.path.normpath(source.parent / target))

    def _expand_external(self, target: Any, source: Path, visited: set[str]) -> Any:
        ref = self._reference(target, KEY_EXTERNAL, source)
        logger.debug("%s: splicing external %s", source, ref)
        fragment = load_yaml(_read_text(ref, referrer=source), source=str(ref))
        # keys inside the fragment are relative to the fragment's own file
        return self._resolve_node(fragment, ref, visited)

    def _aggregate(self, target: Any, source: Path, visited: set[str]) -> list[dict[str, Any]]:
        directory = self._reference(target, KEY_PREAMBLES_IN, source)
        if not directory.is_dir():
            raise ReferenceNotFound(
                f"no such directory: {directory.as_posix()}",
                source=str(source),
                target=str(directory),
            )

        pending = [
            entry for entry in list_content_files(directory, self.excludes)
            if _visit_key(entry) not in visited
        ]
        logger.debug("%s: aggregating %d preambles in %s", source, len(pending), directory)

        return [
            self.resolve_file(entry, visited=visited, referrer=source).to_dict()
            for entry in pending
        ]
