"""Exception types raised by kasten.

Per-note problems (parse failures, broken links, duplicate IDs) are not
exceptions: they are collected into the error map returned by the loader.
Only conditions that abort a whole build are raised.
"""


class KastenError(Exception):
    """Base class for fatal kasten errors."""


class ConfigError(KastenError):
    """The configuration file is malformed or holds an invalid value."""


class VersionMismatchError(KastenError):
    """The running kasten is older than the configured minimum version."""

    def __init__(self, required: str, running: str):
        self.required = required
        self.running = running
        super().__init__(
            f"Require kasten minimum version {required}, but your kasten version is {running}"
        )


class ZettelParseError(KastenError):
    """A reader could not parse a note's text."""


class InvalidZettelID(KastenError):
    """Text does not match the zettel identifier grammar."""


class CacheMissError(KastenError):
    """No graph has been stored in the cache yet."""
