from __future__ import annotations

import re
from typing import Any, Optional

import yaml

from pagesmith.domain.errors import DecodeFailure
from pagesmith.domain.models import SourceDocument
from pagesmith.domain.schema import DELIMITER

_CLOSING = "\n" + DELIMITER
_BOOL_TAG = "tag:yaml.org,2002:bool"


class CoreSchemaLoader(yaml.SafeLoader):
    """
    SafeLoader that reads only true/false as booleans, as YAML 1.2 does.
    yes/no/on/off stay plain strings.
    """


CoreSchemaLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _BOOL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
CoreSchemaLoader.add_implicit_resolver(
    _BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


def split_document(source: str) -> Optional[SourceDocument]:
    """
    Split a source text into its fenced metadata block and its body.

    The text must open with '---'. The opening marker and any whitespace after it
    are consumed, then characters are taken one by one until the last four taken
    equal '\\n---'. That closing marker is stripped from the metadata text; the rest
    of the source, trimmed, is the body.

    Returns:
        A SourceDocument, or None when there is no opening or no closing marker.
    """
    if not source.startswith(DELIMITER):
        return None

    pos = len(DELIMITER)
    while pos < len(source) and source[pos].isspace():
        pos += 1

    # The window is seeded with the opening so that "---\n---" closes immediately.
    window = source[:pos][-len(_CLOSING):]
    start = pos
    while window != _CLOSING:
        if pos >= len(source):
            return None
        window = (window + source[pos])[-len(_CLOSING):]
        pos += 1

    captured = source[start:pos]
    if captured.endswith(DELIMITER):
        captured = captured[: -len(DELIMITER)]

    return SourceDocument(metadata_text=captured, body=source[pos:].strip())


def load_yaml(text: str, *, source: str | None = None) -> Any:
    """
    Decode a YAML text. An empty text decodes to an empty mapping.
    """
    try:
        loaded = yaml.load(text, Loader=CoreSchemaLoader)
    except yaml.YAMLError as e:
        raise DecodeFailure(f"invalid metadata: {e}", source=source) from e
    return {} if loaded is None else loaded


def load_mapping(text: str, *, source: str | None = None) -> dict[str, Any]:
    """
    Decode a YAML text that must be a mapping (a preamble block).
    """
    loaded = load_yaml(text, source=source)
    if not isinstance(loaded, dict):
        raise DecodeFailure(
            f"metadata must be a mapping, got {type(loaded).__name__}", source=source
        )
    return loaded
