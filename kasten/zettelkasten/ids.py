"""Zettel identifier resolution from note file paths."""

from pathlib import PurePosixPath

from ..errors import InvalidZettelID
from ..models import ZettelFormat, ZettelID

ALLOWED_SPECIAL_CHARS = frozenset("_-.,;():\"'@ ")

# Slugs used by site-level outputs; a note with one of these names would
# overwrite them.
RESERVED_SLUGS = frozenset({"z-index", "search"})


def is_valid_slug(text: str) -> bool:
    return bool(text) and all(c.isalnum() or c in ALLOWED_SPECIAL_CHARS for c in text)


def parse_zettel_id(text: str) -> ZettelID:
    """Parse bare text (e.g. a link target) as a zettel identifier."""
    if not is_valid_slug(text):
        raise InvalidZettelID(f"Invalid zettel ID: {text!r}")
    return ZettelID(text)


def resolve_zettel_id(fmt: ZettelFormat, rel_path: str) -> ZettelID | None:
    """Derive a zettel ID from a file's format and relative path.

    Returns None when the path does not carry the format's extension or its
    base name is not a valid identifier.
    """
    path = PurePosixPath(rel_path.replace("\\", "/"))
    if path.suffix != fmt.extension:
        return None
    slug = path.name[: -len(fmt.extension)]
    if not is_valid_slug(slug) or slug in RESERVED_SLUGS:
        return None
    return ZettelID(slug)
