"""File discovery and parsing helpers shared by the phase validators."""

from __future__ import annotations

import json
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Iterable, Optional


class ArtifactParseError(Exception):
    """An input file could not be parsed into a resource mapping."""


def find_files(root: Path, extensions: Iterable[str]) -> list[Path]:
    """Recursively list files under ``root`` with one of ``extensions``, sorted."""
    wanted = {ext.lower() for ext in extensions}
    return sorted(
        p for p in root.rglob("*") if p.is_file() and p.suffix.lower() in wanted
    )


def read_text(path: Path) -> str:
    with open(path, encoding="utf-8", errors="replace") as fh:
        return fh.read()


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _coerce(value: str) -> Any:
    if value == "true":
        return True
    if value == "false":
        return False
    return value


def parse_xml_resource(text: str) -> dict[str, Any]:
    """Flatten the top-level ``value=`` elements of a FHIR XML document."""
    root = ET.fromstring(text)
    resource: dict[str, Any] = {"resourceType": _local_name(root.tag)}
    for child in root:
        value = child.get("value")
        if value is not None:
            resource.setdefault(_local_name(child.tag), _coerce(value))
    return resource


def parse_resource(path: Path) -> dict[str, Any]:
    """Parse a JSON or XML artifact into a dict.

    Raises:
        ArtifactParseError: If the file cannot be read or parsed, or the
            document root is not an object.
    """
    try:
        text = read_text(path)
        if path.suffix.lower() == ".xml":
            resource = parse_xml_resource(text)
        else:
            resource = json.loads(text)
    except (OSError, ValueError, RecursionError, ET.ParseError) as exc:
        raise ArtifactParseError(str(exc)) from exc
    if not isinstance(resource, dict):
        raise ArtifactParseError(
            f"Expected a JSON object at document root, got {type(resource).__name__}"
        )
    return resource


def first_profile(resource: dict[str, Any]) -> Optional[str]:
    """First entry of ``meta.profile``, if any."""
    meta = resource.get("meta")
    if isinstance(meta, dict):
        profiles = meta.get("profile")
        if isinstance(profiles, list) and profiles and isinstance(profiles[0], str):
            return profiles[0]
    return None


_MD_LINK = re.compile(r"(?<!!)\[[^\]]*\]\(([^)\s]+)(?:\s+\"[^\"]*\")?\)")


def markdown_links(text: str) -> list[tuple[int, str]]:
    """``(line_number, target)`` for every inline Markdown link in ``text``."""
    links: list[tuple[int, str]] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        for match in _MD_LINK.finditer(line):
            links.append((lineno, match.group(1)))
    return links
