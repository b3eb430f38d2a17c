"""
sigfile.formats - Format code tables and scalar codecs

A Bluefile format code is a two character digraph such as 'SF' or 'CD'. The
first character gives the number of scalars per atom (scalar, complex,
vector, ...), the second the storage type of each scalar. Both tables are
built once at import time and wrapped in read-only mappings, so independent
decodes can share them freely.

License: MIT
"""

import struct
import sys
from types import MappingProxyType
from typing import Any, List, NamedTuple, Optional

import numpy as np

from .errors import UnsupportedFormatError

# Byte order of the running interpreter
HOST_LITTLE_ENDIAN = sys.byteorder == 'little'


def struct_prefix(little_endian: bool) -> str:
    """Return the struct byte order prefix for the given endianness."""
    return '<' if little_endian else '>'


# Number of scalars in one atom, keyed by the first character of the format code
SCALARS_PER_ATOM = MappingProxyType({
    'S': 1,   # Scalar
    'C': 2,   # Complex (real, imaginary)
    'V': 3,   # Vector
    'Q': 4,   # Quad
    'M': 9,   # 3x3 matrix
    'X': 10,  # Midas X tuple
    'T': 16,  # 4x4 matrix
    'U': 1,   # Unspecified
    '1': 1, '2': 2, '3': 3, '4': 4, '5': 5,
    '6': 6, '7': 7, '8': 8, '9': 9,
})


class ScalarCodec:
    """
    Decoder for one storage type of the format table.

    Every variant answers the same two questions: how to decode a single
    value at an offset of a buffer, and which NumPy dtype (if any) views a
    run of such values without copying. The `kind` tag tells the variants
    apart ('numeric', 'text' or 'bit').
    """

    kind = ''

    def __init__(self, code: str, width: float):
        self.code = code
        # Bytes per scalar; fractional for bit-packed storage
        self.width = width

    def decode(self, buf, offset: int, little_endian: bool) -> Any:
        """
        Decode one scalar.

        Args:
            buf: Object exporting the buffer protocol
            offset: Position of the scalar (bytes, or bits for bit-packed codecs)
            little_endian: Byte order of the stored value

        Returns:
            The decoded value as a Python scalar
        """
        raise NotImplementedError

    def dtype(self, little_endian: bool) -> Optional[np.dtype]:
        """Return the NumPy dtype that views this storage type, or None."""
        return None

    def __repr__(self):
        return f"{type(self).__name__}({self.code!r}, {self.width})"


class NumericCodec(ScalarCodec):
    """Fixed-width integer or floating point scalar."""

    kind = 'numeric'

    def __init__(self, code: str, width: int, struct_char: str, dtype_char: str):
        super().__init__(code, width)
        self.struct_char = struct_char
        self.dtype_char = dtype_char

    def decode(self, buf, offset: int, little_endian: bool) -> Any:
        return struct.unpack_from(struct_prefix(little_endian) + self.struct_char, buf, offset)[0]

    def decode_many(self, buf, offset: int, count: int, little_endian: bool) -> List[Any]:
        """Decode `count` consecutive scalars starting at `offset`, in order."""
        fmt = f"{struct_prefix(little_endian)}{count}{self.struct_char}"
        return list(struct.unpack_from(fmt, buf, offset))

    def dtype(self, little_endian: bool) -> Optional[np.dtype]:
        return np.dtype(struct_prefix(little_endian) + self.dtype_char)


class TextCodec(ScalarCodec):
    """Single byte characters, decoded verbatim as latin-1."""

    kind = 'text'

    def decode(self, buf, offset: int, little_endian: bool) -> Any:
        return self.decode_text(buf, offset, 1)

    def decode_text(self, buf, offset: int, length: int) -> str:
        """Decode `length` characters starting at `offset`."""
        return bytes(memoryview(buf).cast('B')[offset:offset + length]).decode('latin-1')

    def dtype(self, little_endian: bool) -> Optional[np.dtype]:
        return np.dtype('S1')


class BitCodec(ScalarCodec):
    """Bit-packed scalar; offsets are bit positions, most significant bit first."""

    kind = 'bit'

    def decode(self, buf, offset: int, little_endian: bool) -> Any:
        byte = memoryview(buf).cast('B')[offset >> 3]
        return (byte >> (7 - (offset & 7))) & 1


# Storage type of each scalar, keyed by the second character of the format code
SCALAR_CODECS = MappingProxyType({codec.code: codec for codec in (
    BitCodec('P', 0.125),               # Packed bits
    TextCodec('A', 1),                  # ASCII characters
    NumericCodec('O', 1, 'B', 'u1'),    # 8-bit unsigned integer (offset byte)
    NumericCodec('B', 1, 'b', 'i1'),    # 8-bit signed integer
    NumericCodec('I', 2, 'h', 'i2'),    # 16-bit signed integer
    NumericCodec('L', 4, 'i', 'i4'),    # 32-bit signed integer
    NumericCodec('X', 8, 'q', 'i8'),    # 64-bit signed integer
    NumericCodec('F', 4, 'f', 'f4'),    # 32-bit float
    NumericCodec('D', 8, 'd', 'f8'),    # 64-bit float
)})

# Bytes per scalar, keyed by the second character of the format code
BYTES_PER_SCALAR = MappingProxyType({code: codec.width for code, codec in SCALAR_CODECS.items()})


class FormatGeometry(NamedTuple):
    """Element geometry resolved from a format code."""
    spa: int            # scalars per atom
    bps: float          # bytes per scalar
    codec: ScalarCodec  # storage type of each scalar

    @property
    def bpa(self) -> float:
        """Bytes per atom."""
        return self.spa * self.bps


def resolve_format(code: str) -> FormatGeometry:
    """
    Resolve a two character format code into its element geometry.

    Args:
        code: Format digraph, e.g. 'SD' or 'CF'

    Returns:
        FormatGeometry: scalars per atom, bytes per scalar and scalar codec

    Raises:
        UnsupportedFormatError: If the code is not two characters long or
            either character is not in its table
    """
    if not isinstance(code, str) or len(code) != 2:
        raise UnsupportedFormatError(f"Format code must be two characters, got {code!r}")

    spa = SCALARS_PER_ATOM.get(code[0])
    if spa is None:
        raise UnsupportedFormatError(f"Unsupported format size character {code[0]!r} in format {code!r}")

    codec = SCALAR_CODECS.get(code[1])
    if codec is None:
        raise UnsupportedFormatError(f"Unsupported format type character {code[1]!r} in format {code!r}")

    return FormatGeometry(spa, codec.width, codec)
