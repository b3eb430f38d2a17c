"""
Builders for synthetic Bluefiles and MAT-files used by the tests.

The files are assembled byte by byte with struct so the tests do not depend
on the decoder to produce their inputs.
"""

import struct
import sys

# Representation tags matching and not matching the host byte order
HOST_REP = 'EEEI' if sys.byteorder == 'little' else 'IEEE'
OTHER_REP = 'IEEE' if sys.byteorder == 'little' else 'EEEI'
HOST_MAT_REP = 'IM' if sys.byteorder == 'little' else 'MI'
OTHER_MAT_REP = 'MI' if sys.byteorder == 'little' else 'IM'

# struct characters for keyword formats
KEYWORD_STRUCT = {'B': 'b', 'O': 'B', 'I': 'h', 'L': 'i', 'X': 'q', 'F': 'f', 'D': 'd'}


def prefix(rep):
    """struct prefix for a Bluefile or MAT-file representation tag."""
    return '<' if rep in ('EEEI', 'IM') else '>'


def keyword(tag, fmt, value, rep=HOST_REP, padding=None):
    """
    Build one extended header keyword record.

    Args:
        tag: Keyword name
        fmt: Keyword format character ('A' for text)
        value: str for 'A', a number or list of numbers otherwise, or raw
               bytes used as the payload verbatim
        rep: Header representation tag
        padding: Bytes of padding after the tag; defaults to whatever makes
                 the record a multiple of 8 bytes
    """
    if isinstance(value, bytes):
        payload = value
    elif fmt == 'A':
        payload = value.encode('latin-1')
    else:
        values = value if isinstance(value, (list, tuple)) else [value]
        payload = struct.pack(f"{prefix(rep)}{len(values)}{KEYWORD_STRUCT[fmt]}", *values)

    tag_bytes = tag.encode('latin-1')
    if padding is None:
        padding = -(8 + len(payload) + len(tag_bytes)) % 8
    lextra = 8 + len(tag_bytes) + padding
    lkey = len(payload) + lextra
    control = struct.pack(f"{prefix(rep)}Ihb", lkey, lextra, len(tag_bytes)) + fmt.encode('latin-1')
    return control + payload + tag_bytes + b'\x00' * padding


def bluefile(data=b'', fmt='SD', file_type=1000, headrep=HOST_REP, datarep=HOST_REP,
             version='BLUE', timecode=0.0, xstart=0.0, xdelta=1.0, xunits=0,
             subsize=0, ystart=0.0, ydelta=1.0, yunits=0, keywords=b'',
             data_start=512.0, data_size=None):
    """
    Build a Bluefile: 512-byte header, data, then the extended header starting
    at the next 512-byte block.
    """
    e = prefix(headrep)
    if data_size is None:
        data_size = float(len(data))

    body = bytearray(512)
    body[0:4] = version.encode('latin-1')
    body[4:8] = headrep.encode('latin-1')
    body[8:12] = datarep.encode('latin-1')
    body[32:48] = struct.pack(e + 'dd', data_start, data_size)
    body[48:52] = struct.pack(e + 'I', file_type)
    body[52:54] = fmt.encode('latin-1')
    body[56:64] = struct.pack(e + 'd', timecode)
    body[0x100:0x100 + 44] = struct.pack(e + 'ddiiddi', xstart, xdelta, xunits, subsize,
                                        ystart, ydelta, yunits)
    body += data

    if keywords:
        body += b'\x00' * (-len(body) % 512)
        body[24:32] = struct.pack(e + 'ii', len(body) // 512, len(keywords))
        body += keywords
    return bytes(body)


def _mat_element(type_code, payload, e, small=False):
    if small:
        word = (len(payload) << 16) | type_code
        return struct.pack(e + 'I', word) + payload + b'\x00' * (4 - len(payload))
    return struct.pack(e + 'II', type_code, len(payload)) + payload + b'\x00' * (-len(payload) % 8)


def matfile(real, rows, cols, type_code=9, type_char='d', imag=None, name='x',
            array_class=6, rep=HOST_MAT_REP, dims=None, flags=0,
            text='MATLAB 5.0 MAT-file, Platform: GLNXA64, Created on: Mon Jan  1 00:00:00 2024'):
    """
    Build a level 5 MAT-file holding one numeric matrix.

    Args:
        real: Values of the real part, column-major
        rows, cols: Array dimensions
        type_code, type_char: MAT data type code and struct character of the values
        imag: Values of the imaginary part, or None for a real array
        name: Array name; names of up to 4 characters use the small element format
        array_class: mxCLASS code stored in the array flags
        rep: Endian indicator
        dims: Dimensions stored in the file instead of (rows, cols)
        flags: Extra array flag bits (0x0400 global, 0x0200 logical)
        text: Descriptive header text
    """
    e = prefix(rep)
    flags |= array_class | (0x0800 if imag is not None else 0)
    if dims is None:
        dims = (rows, cols)

    content = _mat_element(6, struct.pack(e + 'II', flags, 0), e)
    content += _mat_element(5, struct.pack(f"{e}{len(dims)}i", *dims), e)
    name_bytes = name.encode('latin-1')
    content += _mat_element(1, name_bytes, e, small=len(name_bytes) <= 4)
    content += _mat_element(type_code, struct.pack(f"{e}{len(real)}{type_char}", *real), e)
    if imag is not None:
        content += _mat_element(type_code, struct.pack(f"{e}{len(imag)}{type_char}", *imag), e)

    header = text.encode('latin-1').ljust(116, b' ')
    header += b'\x00' * 8
    header += struct.pack(e + 'H', 0x0100)
    header += rep.encode('latin-1')
    return header + struct.pack(e + 'II', 14, len(content)) + content
