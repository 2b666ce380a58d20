"""YAML frontmatter handling for Markdown resources."""

from pathlib import Path
from typing import Any

import yaml

from aix.exceptions import FrontmatterError, MissingFrontmatterError

DELIMITER = "---"


def _is_delimiter(line: str) -> bool:
    return line.rstrip("\r\n") == DELIMITER


def _load_yaml(text: str) -> dict[str, Any]:
    data = yaml.safe_load(text) if text.strip() else {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FrontmatterError("frontmatter must be a YAML mapping")
    return data


def split(content: str, required: bool = False) -> tuple[dict[str, Any], str]:
    """Split a document into its frontmatter mapping and body.

    Args:
        content: Full document text
        required: Raise instead of returning ({}, content) when the
            document has no frontmatter block

    Returns:
        Tuple of (metadata, body). The blank line following the closing
        delimiter is not part of the body.

    Raises:
        MissingFrontmatterError: If required and there is no opening delimiter
        FrontmatterError: If the closing delimiter is missing (when required)
        yaml.YAMLError: If the frontmatter is not valid YAML
    """
    content = content.lstrip("\ufeff")
    lines = content.splitlines(keepends=True)

    if not lines or not _is_delimiter(lines[0]):
        if required:
            raise MissingFrontmatterError("missing frontmatter")
        return {}, content

    for index in range(1, len(lines)):
        if _is_delimiter(lines[index]):
            header = "".join(lines[1:index])
            body = "".join(lines[index + 1 :])
            if body.startswith("\r\n"):
                body = body[2:]
            elif body.startswith("\n"):
                body = body[1:]
            return _load_yaml(header), body

    if required:
        raise FrontmatterError("missing closing frontmatter delimiter")
    return {}, content


def read_header(path: Path) -> dict[str, Any]:
    """Read only the frontmatter block of a file.

    Stops reading at the closing delimiter, so large bodies are never
    loaded. A file without frontmatter yields an empty mapping.
    """
    with open(path, encoding="utf-8") as f:
        first = f.readline().lstrip("\ufeff")
        if not _is_delimiter(first):
            return {}
        buf: list[str] = []
        for line in f:
            if _is_delimiter(line):
                return _load_yaml("".join(buf))
            buf.append(line)
    raise FrontmatterError("missing closing frontmatter delimiter")


def format(metadata: dict[str, Any], body: str) -> str:
    """Render metadata and body as a frontmatter document."""
    header = yaml.safe_dump(
        metadata, sort_keys=False, allow_unicode=True, default_flow_style=False
    )
    out = f"{DELIMITER}\n{header}{DELIMITER}\n"
    if body:
        out += "\n" + body
        if not body.endswith("\n"):
            out += "\n"
    return out
