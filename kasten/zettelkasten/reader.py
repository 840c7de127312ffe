"""Per-format readers turning note text into metadata and body."""

from __future__ import annotations

import re
from typing import Protocol

import frontmatter
import yaml

from ..errors import ZettelParseError
from ..models import ParsedContent, ZettelFormat


class ZettelReader(Protocol):
    """Parses the text of one note. Must be a pure function of the text."""

    def parse(self, text: str) -> ParsedContent: ...


class MarkdownReader:
    """Markdown with an optional YAML front matter block."""

    def __init__(self) -> None:
        self._handler = frontmatter.YAMLHandler()

    def parse(self, text: str) -> ParsedContent:
        if not self._handler.detect(text):
            return ParsedContent(metadata={}, body=text)

        try:
            fm_text, body = self._handler.split(text)
        except ValueError:
            # Opening fence without a closing one: treat it all as body
            return ParsedContent(metadata={}, body=text)

        try:
            metadata = self._handler.load(fm_text)
        except yaml.YAMLError as e:
            raise ZettelParseError(f"Invalid YAML front matter: {e}") from e

        if metadata is None:
            metadata = {}
        if not isinstance(metadata, dict):
            raise ZettelParseError(
                f"YAML front matter must be a mapping, got {type(metadata).__name__}"
            )

        return ParsedContent(metadata=metadata, body=body.lstrip("\n"))


# Match #+KEY: value
ORG_KEYWORD_PATTERN = re.compile(r"^#\+(\w+):\s*(.*?)\s*$")

# Match :KEY: value inside a property drawer
ORG_PROPERTY_PATTERN = re.compile(r"^:([^:\s]+):\s*(.*?)\s*$")


class OrgReader:
    """Org-mode notes with leading #+KEYWORDS and an optional property drawer."""

    def parse(self, text: str) -> ParsedContent:
        lines = text.splitlines()
        metadata: dict[str, object] = {}
        i = 0

        while i < len(lines):
            stripped = lines[i].strip()
            match = ORG_KEYWORD_PATTERN.match(stripped)
            if match:
                key, value = match.group(1).lower(), match.group(2)
                metadata[key] = _split_org_tags(value) if key in ("tags", "filetags") else value
                i += 1
            elif stripped.upper() == ":PROPERTIES:":
                i = self._read_drawer(lines, i + 1, metadata)
            elif not stripped and metadata:
                i += 1
            else:
                break

        if "filetags" in metadata and "tags" not in metadata:
            metadata["tags"] = metadata.pop("filetags")

        return ParsedContent(metadata=metadata, body="\n".join(lines[i:]))

    def _read_drawer(self, lines: list[str], start: int, metadata: dict[str, object]) -> int:
        for j in range(start, len(lines)):
            stripped = lines[j].strip()
            if stripped.upper() == ":END:":
                return j + 1
            match = ORG_PROPERTY_PATTERN.match(stripped)
            if match is None:
                raise ZettelParseError(f"Malformed property on line {j + 1}: {stripped!r}")
            metadata[match.group(1).lower()] = match.group(2)
        raise ZettelParseError(f"Property drawer opened on line {start} is never closed with :END:")


def _split_org_tags(value: str) -> list[str]:
    return [t for t in re.split(r"[\s:]+", value) if t]


READERS: dict[ZettelFormat, ZettelReader] = {
    ZettelFormat.MARKDOWN: MarkdownReader(),
    ZettelFormat.ORG: OrgReader(),
}


def reader_for_format(fmt: ZettelFormat) -> ZettelReader:
    return READERS[fmt]
