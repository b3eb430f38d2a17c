"""
sigfile.bluefile - Bluefile header and data decoding

A Bluefile consists of a 512-byte header followed by binary data and an
optional extended header of keyword records.

    | Offset | Name       | Size | Type      | Description                               |
    |:-------|:-----------|:-----|:----------|:------------------------------------------|
    | 0      | version    | 4    | char[4]   | Header version, 'BLUE'                    |
    | 4      | head_rep   | 4    | char[4]   | Header representation, 'EEEI' or 'IEEE'   |
    | 8      | data_rep   | 4    | char[4]   | Data representation, 'EEEI' or 'IEEE'     |
    | 24     | ext_start  | 4    | int_4     | Extended header start, in 512-byte blocks |
    | 28     | ext_size   | 4    | int_4     | Extended header size in bytes             |
    | 32     | data_start | 8    | real_8    | Data start in bytes                       |
    | 40     | data_size  | 8    | real_8    | Data size in bytes                        |
    | 48     | type       | 4    | int_4     | File type code                            |
    | 52     | format     | 2    | char[2]   | Data format code                          |
    | 56     | timecode   | 8    | real_8    | Seconds since Jan 1st 1950                |
    | 256    | adjunct    | 256  | char[256] | Type-specific adjunct (see below)         |

Type 1000 adjunct: xstart (real_8, +0), xdelta (real_8, +8), xunits (int_4, +16).

Type 2000 adjunct: the type 1000 fields plus subsize (int_4, +20),
ystart (real_8, +24), ydelta (real_8, +32) and yunits (int_4, +40).

'EEEI' marks little-endian values, 'IEEE' big-endian ones. All numbers in
the fixed header use the header representation; the data segment uses the
data representation.

License: MIT
"""

import logging
import math
import struct
from concurrent.futures import Executor, Future
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from .dataview import create_data_view, element_count
from .errors import MalformedHeaderError
from .formats import resolve_format, struct_prefix
from .keywords import unpack_keywords
from .options import merge_options
from .reader import decode_from_source

logger = logging.getLogger(__name__)

HEADER_SIZE = 512
ADJUNCT_OFFSET = 0x100
# Unit of ext_start
EXT_BLOCK_SIZE = 512

VERSION = 'BLUE'

# Representation tag -> little endian
REPRESENTATIONS = MappingProxyType({
    'EEEI': True,
    'IEEE': False,
})


@dataclass(frozen=True, eq=False)
class BlueHeader:
    """
    Decoded Bluefile.

    Adjunct fields that do not exist for the file's class are None: class 1
    files have no ystart, ydelta or yunits, and files of any class other
    than 1 or 2 have no adjunct fields at all. The geometry fields and the
    data view are None for a header decoded without its data.
    """
    version: str
    headrep: str
    datarep: str
    ext_start: int
    ext_size: int
    type: int
    class_: int
    format: str
    timecode: float
    data_start: float
    data_size: float

    # Adjunct
    xstart: Optional[float] = None
    xdelta: Optional[float] = None
    xunits: Optional[int] = None
    subsize: Optional[int] = None
    ystart: Optional[float] = None
    ydelta: Optional[float] = None
    yunits: Optional[int] = None

    # Element geometry
    spa: Optional[int] = None    # scalars per atom
    bps: Optional[float] = None  # bytes per scalar
    bpa: Optional[float] = None  # bytes per atom
    ape: Optional[int] = None    # atoms per element
    bpe: Optional[float] = None  # bytes per element
    size: Optional[int] = None   # number of elements

    ext_header: Any = None
    data: Any = field(default=None, repr=False)
    file_name: Optional[str] = None

    @property
    def little_endian_header(self) -> bool:
        return REPRESENTATIONS[self.headrep]

    @property
    def little_endian_data(self) -> bool:
        return REPRESENTATIONS[self.datarep]


def _text(view, start: int, end: int) -> str:
    return bytes(view[start:end]).decode('latin-1')


def _byte_count(value: float, name: str) -> int:
    # data_start and data_size are stored as doubles but must be whole bytes
    if not math.isfinite(value) or value < 0 or value != int(value):
        raise MalformedHeaderError(f"Invalid {name} {value!r}")
    return int(value)


def _representation(view, start: int, name: str) -> str:
    rep = _text(view, start, start + 4)
    if rep not in REPRESENTATIONS:
        raise MalformedHeaderError(f"Unrecognized {name} {rep!r}, expected 'EEEI' or 'IEEE'")
    return rep


def _read_fields(buf, options: Mapping[str, Any]) -> Dict[str, Any]:
    """Read the fixed header, the adjunct and the extended header into a dict."""
    view = memoryview(buf).cast('B')
    if len(view) < HEADER_SIZE:
        raise MalformedHeaderError(f"Bluefile header needs {HEADER_SIZE} bytes, got {len(view)}")

    version = _text(view, 0, 4)
    if version != VERSION:
        raise MalformedHeaderError(f"Unrecognized version {version!r}, expected {VERSION!r}")
    headrep = _representation(view, 4, 'header representation')
    datarep = _representation(view, 8, 'data representation')

    # Every number in the fixed header uses the header representation
    e = struct_prefix(REPRESENTATIONS[headrep])
    ext_start, ext_size = struct.unpack_from(e + 'ii', view, 24)
    data_start, data_size = struct.unpack_from(e + 'dd', view, 32)
    file_type, = struct.unpack_from(e + 'I', view, 48)
    timecode, = struct.unpack_from(e + 'd', view, 56)

    fields = dict(
        version=version,
        headrep=headrep,
        datarep=datarep,
        ext_start=ext_start,
        ext_size=ext_size,
        type=file_type,
        class_=file_type // 1000,
        format=_text(view, 52, 54),
        timecode=timecode,
        data_start=data_start,
        data_size=data_size,
    )

    if fields['class_'] == 1:
        xstart, xdelta, xunits = struct.unpack_from(e + 'ddi', view, ADJUNCT_OFFSET)
        fields.update(xstart=xstart, xdelta=xdelta, xunits=xunits, subsize=1)
    elif fields['class_'] == 2:
        xstart, xdelta, xunits, subsize, ystart, ydelta, yunits = struct.unpack_from(
            e + 'ddiiddi', view, ADJUNCT_OFFSET)
        fields.update(xstart=xstart, xdelta=xdelta, xunits=xunits, subsize=subsize,
                      ystart=ystart, ydelta=ydelta, yunits=yunits)
    else:
        logger.debug(f"No adjunct layout for type {file_type}, adjunct fields left unset")

    if ext_size:
        start = ext_start * EXT_BLOCK_SIZE
        if ext_start < 0 or ext_size < 0 or start + ext_size > len(view):
            raise MalformedHeaderError(
                f"Extended header [{start}, {start + ext_size}) outside buffer of {len(view)} bytes")
        fields['ext_header'] = unpack_keywords(
            view[start:start + ext_size], REPRESENTATIONS[headrep], options['ext_header_type'])

    return fields


def decode_header(buf, options: Optional[Mapping[str, Any]] = None) -> BlueHeader:
    """
    Decode the header and extended header of a Bluefile, leaving the data alone.

    Args:
        buf: Object exporting the buffer protocol, at least 512 bytes long
        options: Reader options, see sigfile.options.DEFAULT_OPTIONS

    Returns:
        BlueHeader: Header fields and keywords; geometry and data are None

    Raises:
        MalformedHeaderError: If the buffer is too short or the version or a
            representation tag is not recognized
    """
    return BlueHeader(**_read_fields(buf, merge_options(options)))


def decode(buf, options: Optional[Mapping[str, Any]] = None) -> BlueHeader:
    """
    Decode a complete Bluefile held in memory.

    The data segment is exposed as hdr.data without copying: a NumPy array
    with one entry per element along its first axis, or a BitArray for
    bit-packed ('P') formats.

    Args:
        buf: Object exporting the buffer protocol holding the whole file
        options: Reader options, see sigfile.options.DEFAULT_OPTIONS

    Returns:
        BlueHeader: The fully decoded file

    Raises:
        MalformedHeaderError: If the header or data segment is invalid
        UnsupportedFormatError: If the format code is not recognized, or a
            bit-packed format has more than one bit per element
        UnsupportedEndiannessError: If multi-byte data is not in host byte order
    """
    hdr = decode_header(buf, options)

    geometry = resolve_format(hdr.format)
    # 2-D files hold subsize atoms per element; 1-D and unknown classes one
    ape = hdr.subsize if hdr.class_ == 2 else 1
    data_start = _byte_count(hdr.data_start, 'data_start')
    data_size = _byte_count(hdr.data_size, 'data_size')

    data = create_data_view(buf, data_start, data_size, geometry,
                            hdr.little_endian_data, ape=ape)

    hdr = replace(
        hdr,
        spa=geometry.spa,
        bps=geometry.bps,
        bpa=geometry.bpa,
        ape=ape,
        bpe=ape * geometry.bpa,
        size=element_count(data_size, geometry, ape),
        data=data,
    )
    logger.debug(f"Decoded type {hdr.type} Bluefile, format {hdr.format}, {hdr.size} elements")
    return hdr


class BlueFileReader:
    """
    Reads Bluefiles from memory, local files or HTTP(S) URLs.

    Example:
        >>> reader = BlueFileReader({'ext_header_type': 'list'})
        >>> hdr = reader.read('sin.tmp').result()
        >>> hdr.data[0]
        1.0
    """

    def __init__(self, options: Optional[Mapping[str, Any]] = None, session=None):
        """
        Initialize a BlueFileReader.

        Args:
            options: Reader options, see sigfile.options.DEFAULT_OPTIONS.
                     ext_header_type selects whether extended header keywords
                     are returned as a dict ('dict', 'json', 'DICT', 'JSON',
                     'XMTable' or {}) or as a list of Keyword(tag, value).
            session: Optional requests.Session used for HTTP sources
        """
        self.options = merge_options(options)
        self.session = session

    def decode(self, buf) -> BlueHeader:
        """Decode a Bluefile already held in memory."""
        return decode(buf, self.options)

    def read(self, source, on_complete: Optional[Callable[[Optional[BlueHeader]], Any]] = None,
             executor: Optional[Executor] = None) -> Future:
        """
        Acquire and decode a Bluefile.

        Args:
            source: Path, http(s) URL or bytes-like object
            on_complete: Called exactly once with the BlueHeader, or with
                         None if the source could not be read or decoded
            executor: Run acquisition and decoding on this executor instead
                      of the calling thread

        Returns:
            Future: Resolves to the BlueHeader, or None if the source could
                    not be acquired; holds the error if decoding failed
        """
        return decode_from_source(self, source, on_complete=on_complete, executor=executor,
                                  timeout=self.options['timeout'], session=self.session)

    read_file = read
    read_http = read
