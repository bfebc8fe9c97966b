"""Markdown front-matter document codec.

This module isolates YAML front-matter parsing and rendering.
It keeps the storage adapter focused on file-system flow.
"""

from __future__ import annotations

from typing import Any, cast

import yaml

from core.constants import FRONT_MATTER_DELIMITER
from core.errors import RescatDocumentError
from core.types import Resource


def render_document(resource: Resource) -> str:
    """Render a resource as markdown with YAML front matter.

    Args:
        resource: Resource to serialize.

    Returns:
        Document text; the markdown body follows the closing delimiter verbatim.
    """
    payload = resource.to_dict()
    markdown = str(payload.pop("markdown"))
    front_matter = yaml.safe_dump(payload, sort_keys=False, allow_unicode=True)
    return f"{FRONT_MATTER_DELIMITER}\n{front_matter}{FRONT_MATTER_DELIMITER}\n{markdown}"


def parse_document(text: str, source: str = "<document>") -> Resource:
    """Parse markdown with YAML front matter into a resource.

    Args:
        text: Raw document text.
        source: Document origin used in error messages.

    Returns:
        Parsed resource.

    Raises:
        RescatDocumentError: If front matter is missing or invalid.
    """
    front_matter_text, markdown = _split_front_matter(text, source)
    try:
        payload = cast(object, yaml.safe_load(front_matter_text))
    except yaml.YAMLError as error:
        raise RescatDocumentError(
            f"Failed to parse front matter in {source}: {error}. Fix YAML syntax and retry."
        ) from error
    if not isinstance(payload, dict):
        raise RescatDocumentError(
            f"Failed to parse front matter in {source}: expected a mapping at top level."
        )
    document = cast(dict[str, Any], payload)
    document["markdown"] = markdown
    return Resource.from_dict(document)


def _split_front_matter(text: str, source: str) -> tuple[str, str]:
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != FRONT_MATTER_DELIMITER:
        raise RescatDocumentError(
            f"Document {source} does not start with a '{FRONT_MATTER_DELIMITER}' front-matter block."
        )
    for index in range(1, len(lines)):
        if lines[index].rstrip("\r\n") == FRONT_MATTER_DELIMITER:
            return "".join(lines[1:index]), "".join(lines[index + 1 :])
    raise RescatDocumentError(
        f"Document {source} has an unterminated front-matter block. "
        f"Close it with a '{FRONT_MATTER_DELIMITER}' line."
    )
