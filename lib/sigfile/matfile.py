"""
sigfile.matfile - MATLAB level 5 MAT-file decoding

A MAT-file consists of a 128-byte header followed by data elements. Only the
first element is decoded, and it must be an uncompressed numeric matrix.

    | Offset | Name        | Size | Type     | Description                        |
    |:-------|:------------|:-----|:---------|:-----------------------------------|
    | 0      | header      | 116  | char[116]| Descriptive text                   |
    | 116    | subsys      | 8    | char[8]  | Subsystem data offset              |
    | 124    | version     | 2    | int_2    | 0x0100 for level 5 files           |
    | 126    | endianness  | 2    | char[2]  | 'IM' little-endian, 'MI' big-endian|
    | 128    | data_type   | 4    | int_4    | Type of the first data element     |
    | 132    | array_size  | 4    | int_4    | Size of the first data element     |

An miMATRIX element holds the subelements array flags, dimensions, array
name, real part and (for complex arrays) imaginary part. A subelement whose
size fits into four bytes may use the small element format, where type and
size share the first 32-bit word and the data follows immediately.

License: MIT
"""

import logging
import struct
from concurrent.futures import Executor, Future
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional, Tuple

from .dataview import create_data_view
from .errors import MalformedHeaderError, UnsupportedFormatError
from .formats import FormatGeometry, NumericCodec, struct_prefix
from .options import merge_options
from .reader import decode_from_source

logger = logging.getLogger(__name__)

HEADER_TEXT_SIZE = 116
SUBSYS_OFFSET = 116
VERSION_OFFSET = 124
ENDIAN_OFFSET = 126
FIRST_ELEMENT_OFFSET = 128
# Header plus the tag of the first data element
MIN_SIZE = 136

VERSION_NAMES = MappingProxyType({0x0100: 'MAT-file'})

# Endian indicator -> little endian
REPRESENTATIONS = MappingProxyType({
    'IM': True,
    'MI': False,
})


class MatDataType(NamedTuple):
    name: str
    codec: Optional[NumericCodec]  # None for types without a numeric view


# Data type codes of data element tags
DATA_TYPES = MappingProxyType({
    1: MatDataType('miINT8', NumericCodec('miINT8', 1, 'b', 'i1')),
    2: MatDataType('miUINT8', NumericCodec('miUINT8', 1, 'B', 'u1')),
    3: MatDataType('miINT16', NumericCodec('miINT16', 2, 'h', 'i2')),
    4: MatDataType('miUINT16', NumericCodec('miUINT16', 2, 'H', 'u2')),
    5: MatDataType('miINT32', NumericCodec('miINT32', 4, 'i', 'i4')),
    6: MatDataType('miUINT32', NumericCodec('miUINT32', 4, 'I', 'u4')),
    7: MatDataType('miSINGLE', NumericCodec('miSINGLE', 4, 'f', 'f4')),
    # 8 is reserved
    9: MatDataType('miDOUBLE', NumericCodec('miDOUBLE', 8, 'd', 'f8')),
    # 10 and 11 are reserved
    12: MatDataType('miINT64', NumericCodec('miINT64', 8, 'q', 'i8')),
    13: MatDataType('miUINT64', NumericCodec('miUINT64', 8, 'Q', 'u8')),
    14: MatDataType('miMATRIX', None),
    15: MatDataType('miCOMPRESSED', None),
    16: MatDataType('miUTF8', None),
    17: MatDataType('miUTF16', None),
    18: MatDataType('miUTF32', None),
})

MI_MATRIX = 14
MI_COMPRESSED = 15

ARRAY_CLASSES = MappingProxyType({
    1: 'mxCELL_CLASS',
    2: 'mxSTRUCT_CLASS',
    3: 'mxOBJECT_CLASS',
    4: 'mxCHAR_CLASS',
    5: 'mxSPARSE_CLASS',
    6: 'mxDOUBLE_CLASS',
    7: 'mxSINGLE_CLASS',
    8: 'mxINT8_CLASS',
    9: 'mxUINT8_CLASS',
    10: 'mxINT16_CLASS',
    11: 'mxUINT16_CLASS',
    12: 'mxINT32_CLASS',
    13: 'mxUINT32_CLASS',
    14: 'mxINT64_CLASS',
    15: 'mxUINT64_CLASS',
})

# Array flag bits, above the class byte
FLAG_COMPLEX = 0x0800
FLAG_GLOBAL = 0x0400
FLAG_LOGICAL = 0x0200


@dataclass(frozen=True, eq=False)
class MatHeader:
    """Decoded MAT-file holding one numeric matrix."""
    header_text: str
    matfile: str
    platform: Optional[str]
    created_on: Optional[str]
    subsystem_offset: bytes
    version: int
    version_name: Optional[str]
    datarep: str
    data_type: int
    data_type_name: str
    array_size: int
    array_flags: int
    array_class: Optional[str]
    complex: bool
    global_: bool
    logical: bool
    rows: int
    cols: int
    name: str
    data: Any = field(default=None, repr=False)
    imag: Any = field(default=None, repr=False)
    file_name: Optional[str] = None

    @property
    def little_endian(self) -> bool:
        return REPRESENTATIONS[self.datarep]


def _data_type(type_code: int) -> MatDataType:
    data_type = DATA_TYPES.get(type_code)
    if data_type is None:
        raise UnsupportedFormatError(f"Unknown MAT-file data type {type_code}")
    return data_type


def _read_tag(view, pos: int, e: str) -> Tuple[int, int, int, int]:
    """
    Read the tag of a data element.

    Returns:
        Tuple[int, int, int, int]: data type, number of data bytes, position
            of the data and position of the next element
    """
    word, = struct.unpack_from(e + 'I', view, pos)
    if word >> 16:
        # Small data element: size in the upper, type in the lower half
        return word & 0xFFFF, word >> 16, pos + 4, pos + 8
    type_code, nbytes = struct.unpack_from(e + 'II', view, pos)
    # Data is padded to a multiple of 8 bytes
    return type_code, nbytes, pos + 8, pos + 8 + nbytes + (-nbytes % 8)


def _numeric_view(buf, view, pos: int, e: str, little_endian: bool, rows: int, cols: int, part: str):
    type_code, nbytes, data_pos, next_pos = _read_tag(view, pos, e)
    data_type = _data_type(type_code)
    if data_type.codec is None:
        raise UnsupportedFormatError(f"Unsupported MAT-file data type {data_type.name} for {part} part")

    codec = data_type.codec
    values = create_data_view(buf, data_pos, nbytes, FormatGeometry(1, codec.width, codec), little_endian)
    if len(values) != rows * cols:
        raise MalformedHeaderError(
            f"{part.capitalize()} part holds {len(values)} values for a {rows}x{cols} array")
    if rows > 1 and cols > 1:
        # MATLAB stores arrays column by column
        values = values.reshape((rows, cols), order='F')
    return values, next_pos


def _read_fields(buf) -> Dict[str, Any]:
    view = memoryview(buf).cast('B')
    if len(view) < MIN_SIZE:
        raise MalformedHeaderError(f"MAT-file header needs {MIN_SIZE} bytes, got {len(view)}")

    datarep = bytes(view[ENDIAN_OFFSET:ENDIAN_OFFSET + 2]).decode('latin-1')
    if datarep not in REPRESENTATIONS:
        raise MalformedHeaderError(f"Unrecognized endian indicator {datarep!r}, expected 'IM' or 'MI'")
    little_endian = REPRESENTATIONS[datarep]
    e = struct_prefix(little_endian)

    header_text = bytes(view[:HEADER_TEXT_SIZE]).decode('latin-1').rstrip(' \x00')
    parts = [part.strip() for part in header_text.split(',')]
    version, = struct.unpack_from(e + 'H', view, VERSION_OFFSET)

    data_type, array_size = struct.unpack_from(e + 'II', view, FIRST_ELEMENT_OFFSET)
    if data_type == MI_COMPRESSED:
        raise UnsupportedFormatError("Compressed MAT-files (miCOMPRESSED) are not supported")
    if data_type != MI_MATRIX:
        raise UnsupportedFormatError(f"First MAT-file element is {_data_type(data_type).name}, expected miMATRIX")

    # Array flags
    _, _, flags_pos, pos = _read_tag(view, MIN_SIZE, e)
    array_flags, = struct.unpack_from(e + 'I', view, flags_pos)

    # Dimensions
    _, nbytes, dims_pos, pos = _read_tag(view, pos, e)
    ndims = nbytes // 4
    if ndims != 2:
        raise UnsupportedFormatError(f"Only 2-dimensional MAT-file arrays are supported, got {ndims} dimensions")
    rows, cols = struct.unpack_from(e + 'ii', view, dims_pos)

    # Array name
    _, nbytes, name_pos, pos = _read_tag(view, pos, e)
    name = bytes(view[name_pos:name_pos + nbytes]).decode('latin-1')

    is_complex = bool(array_flags & FLAG_COMPLEX)
    data, pos = _numeric_view(buf, view, pos, e, little_endian, rows, cols, 'real')
    imag = None
    if is_complex:
        imag, pos = _numeric_view(buf, view, pos, e, little_endian, rows, cols, 'imaginary')

    return dict(
        header_text=header_text,
        matfile=parts[0],
        platform=parts[1] if len(parts) > 1 else None,
        created_on=parts[2] if len(parts) > 2 else None,
        subsystem_offset=bytes(view[SUBSYS_OFFSET:VERSION_OFFSET]),
        version=version,
        version_name=VERSION_NAMES.get(version),
        datarep=datarep,
        data_type=data_type,
        data_type_name=DATA_TYPES[data_type].name,
        array_size=array_size,
        array_flags=array_flags,
        array_class=ARRAY_CLASSES.get(array_flags & 0xFF),
        complex=is_complex,
        global_=bool(array_flags & FLAG_GLOBAL),
        logical=bool(array_flags & FLAG_LOGICAL),
        rows=rows,
        cols=cols,
        name=name,
        data=data,
        imag=imag,
    )


def decode(buf) -> MatHeader:
    """
    Decode a MAT-file held in memory.

    Vectors (one row or one column) are exposed as flat arrays, matrices as
    (rows, cols) arrays in column-major order. Both alias the buffer.

    Args:
        buf: Object exporting the buffer protocol holding the whole file

    Returns:
        MatHeader: The decoded header and matrix

    Raises:
        MalformedHeaderError: If the header is too short, the endian
            indicator is unknown or the matrix is truncated
        UnsupportedFormatError: If the file is compressed or holds
            anything but a 2-D numeric matrix
        UnsupportedEndiannessError: If multi-byte data is not in host byte order
    """
    try:
        fields = _read_fields(buf)
    except struct.error as e:
        raise MalformedHeaderError(f"Truncated MAT-file: {e}") from e

    hdr = MatHeader(**fields)
    byte_order = 'little' if hdr.little_endian else 'big'
    logger.debug(f"Decoded {byte_order}-endian MAT-file array {hdr.name!r}, {hdr.rows}x{hdr.cols} {hdr.array_class}")
    return hdr


class MatFileReader:
    """Reads MAT-files from memory, local files or HTTP(S) URLs."""

    def __init__(self, options: Optional[Mapping[str, Any]] = None, session=None):
        """
        Initialize a MatFileReader.

        Args:
            options: Reader options, see sigfile.options.DEFAULT_OPTIONS
            session: Optional requests.Session used for HTTP sources
        """
        self.options = merge_options(options)
        self.session = session

    def decode(self, buf) -> MatHeader:
        """Decode a MAT-file already held in memory."""
        return decode(buf)

    def read(self, source, on_complete: Optional[Callable[[Optional[MatHeader]], Any]] = None,
             executor: Optional[Executor] = None) -> Future:
        """
        Acquire and decode a MAT-file.

        See BlueFileReader.read() for the meaning of the arguments and result.
        """
        return decode_from_source(self, source, on_complete=on_complete, executor=executor,
                                  timeout=self.options['timeout'], session=self.session)

    read_file = read
    read_http = read
