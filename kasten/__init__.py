"""kasten - builds a link graph from a directory of zettels."""

__version__ = "0.3.0"
