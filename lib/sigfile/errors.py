"""
sigfile.errors - Exception types raised while acquiring and decoding signal files

Structural problems with the input (short headers, unknown representation
tags, unknown format characters, unsupported byte orders) abort a decode and
are raised as one of the ValueError subclasses below. Problems obtaining the
bytes in the first place are raised as AcquisitionError.

License: MIT
"""


class SigfileError(Exception):
    """Base class for all errors raised by sigfile."""


class AcquisitionError(SigfileError, IOError):
    """The byte source could not be read or returned no data."""

    def __init__(self, source, reason):
        self.source = source
        self.reason = reason
        super().__init__(f"Unable to acquire {source!r}: {reason}")


class MalformedHeaderError(SigfileError, ValueError):
    """The fixed header is too short or contains an unrecognized field value."""


class UnsupportedFormatError(SigfileError, ValueError):
    """A format character or data type has no decoder."""


class UnsupportedEndiannessError(SigfileError, ValueError):
    """The data byte order differs from the host for multi-byte elements."""


class IndexOutOfRangeError(SigfileError, IndexError):
    """A bit index lies outside a BitArray."""
