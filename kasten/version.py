"""Version comparison for the min_version gate."""

from itertools import zip_longest

from . import __version__
from .errors import ConfigError


def parse_version(text: str) -> tuple[int, ...]:
    """Parse a dotted numeric version such as "1.2.3"."""
    parts = text.strip().split(".")
    try:
        return tuple(int(p) for p in parts)
    except ValueError:
        raise ConfigError(f"Invalid version string: {text!r}") from None


def older_than(min_version: str, current: str = __version__) -> bool:
    """True if `current` is older than `min_version`."""
    for have, want in zip_longest(parse_version(current), parse_version(min_version), fillvalue=0):
        if have != want:
            return have < want
    return False
