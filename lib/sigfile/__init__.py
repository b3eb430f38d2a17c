"""
sigfile - Readers for signal data files

A Python implementation for decoding Bluefiles and MATLAB level 5 MAT-files
held in memory into an immutable header object plus a zero-copy view of the
sample data, ready for plotting and analysis.

Features:
- Bluefile type 1000 (1-D) and type 2000 (2-D) headers and adjuncts
- Scalar, complex, vector, ... atoms of int8/uint8/int16/int32/int64/
  float32/float64 scalars as NumPy views, bit-packed data as a BitArray
- Extended header keywords as a dict or as a list of Keyword(tag, value)
- Uncompressed numeric MAT-file matrices, real and complex
- Reading from memory, local files and HTTP(S) URLs

Copyright (c) 2025 sigfile contributors
License: MIT
"""

__version__ = "0.1.0"

from .bitarray import BitArray
from .bluefile import BlueFileReader, BlueHeader, decode, decode_header
from .errors import (AcquisitionError, IndexOutOfRangeError, MalformedHeaderError, SigfileError,
                     UnsupportedEndiannessError, UnsupportedFormatError)
from .formats import FormatGeometry, resolve_format
from .keywords import Keyword, unpack_keywords
from .matfile import MatFileReader, MatHeader
from .options import DEFAULT_OPTIONS
from .reader import FormatReader, decode_from_source

__all__ = [
    'AcquisitionError',
    'BitArray',
    'BlueFileReader',
    'BlueHeader',
    'DEFAULT_OPTIONS',
    'FormatGeometry',
    'FormatReader',
    'IndexOutOfRangeError',
    'Keyword',
    'MalformedHeaderError',
    'MatFileReader',
    'MatHeader',
    'SigfileError',
    'UnsupportedEndiannessError',
    'UnsupportedFormatError',
    'decode',
    'decode_from_source',
    'decode_header',
    'resolve_format',
    'unpack_keywords',
]
