"""
Exception taxonomy for compressed reads.

All errors are fail-fast; nothing here is retried. Iteration errors raised
by inner readers are not wrapped and propagate as-is.
"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid source configuration (missing delegate/strategy, bad offsets)."""


class CodecError(OSError):
    """Compressed bytes could not be decoded (bad or truncated header/body)."""


class UnsupportedOperationError(NotImplementedError):
    """Operation is not supported by this object; a programming error."""


class NoSuchElementError(LookupError):
    """Reader has no current record."""
