"""
sigfile.keywords - Bluefile extended header keyword records

The extended header is a sequence of variable length records:

    | Offset    | Size  | Type    | Description                            |
    |:----------|:------|:--------|:---------------------------------------|
    | 0         | 4     | int_4   | lkey: total record length              |
    | 4         | 2     | int_2   | lextra: control block, tag and padding |
    | 6         | 1     | int_1   | ltag: length of tag                    |
    | 7         | 1     | char    | format: storage type of the payload    |
    | 8         | ldata | varies  | payload, ldata = lkey - lextra         |
    | 8 + ldata | ltag  | char[]  | tag                                    |
    | ...       |       |         | padding up to lkey                     |

The next record starts lkey bytes after the current one.

License: MIT
"""

import logging
import struct
from typing import Any, Dict, List, NamedTuple, Union

from .formats import SCALAR_CODECS, struct_prefix
from .options import DEFAULT_OPTIONS

logger = logging.getLogger(__name__)

# Values of the ext_header_type option that select the mapping representation.
# An empty dict selects it too; anything else selects the list representation.
MAPPING_TYPES = frozenset(['dict', 'json', 'DICT', 'JSON', 'XMTable'])

# Size of the fixed part of each record
CONTROL_BLOCK_SIZE = 8


class Keyword(NamedTuple):
    """One extended header record of the list representation."""
    tag: str
    value: Any


def is_mapping_type(ext_header_type: Any) -> bool:
    """
    Tell whether an ext_header_type option selects the mapping representation.

    Args:
        ext_header_type: Option value; None means unspecified

    Returns:
        bool: True for 'dict', 'json', 'DICT', 'JSON', 'XMTable', an empty
              dict or None, False for every other value
    """
    if ext_header_type is None:
        return True
    if isinstance(ext_header_type, dict):
        return not ext_header_type
    return isinstance(ext_header_type, str) and ext_header_type in MAPPING_TYPES


def _decode_payload(buf, fmt: str, offset: int, length: int, little_endian: bool) -> Any:
    codec = SCALAR_CODECS[fmt]
    if codec.kind == 'text':
        return codec.decode_text(buf, offset, length)

    # Whole scalars only; a partial trailing chunk belongs to nothing
    values = codec.decode_many(buf, offset, length // codec.width, little_endian)
    if len(values) == 1:
        return values[0]
    return values


def read_keywords(buf, little_endian: bool) -> List[Keyword]:
    """
    Walk the keyword records of an extended header region.

    Records whose format has no scalar decoder are skipped with a warning.
    If a record length is not positive or runs past the end of the region,
    the walk stops with a warning and the records read so far are returned.

    Args:
        buf: The extended header region only
        little_endian: Byte order of the file header

    Returns:
        List[Keyword]: Records in file order, tags exactly as stored
    """
    region = memoryview(buf).cast('B')
    size = len(region)
    control = struct.Struct(struct_prefix(little_endian) + 'Ihbc')

    keywords = []
    pos = 0
    while pos < size:
        if pos + CONTROL_BLOCK_SIZE > size:
            logger.warning(f"Extended header truncated at byte {pos} of {size}")
            break

        lkey, lextra, ltag, fmt = control.unpack_from(region, pos)
        fmt = fmt.decode('latin-1')
        if lkey <= 0 or pos + lkey > size:
            logger.warning(f"Invalid keyword record length {lkey} at byte {pos} of {size}")
            break

        ldata = lkey - lextra
        idata = pos + CONTROL_BLOCK_SIZE
        itag = idata + ldata
        tag = bytes(region[itag:itag + max(ltag, 0)]).decode('latin-1')

        codec = SCALAR_CODECS.get(fmt)
        if ldata < 0 or CONTROL_BLOCK_SIZE + ldata > lkey:
            logger.warning(f"Keyword payload length {ldata} does not fit record of {lkey} bytes for tag {tag!r}")
        elif codec is None or codec.kind == 'bit':
            logger.warning(f"Unsupported keyword format {fmt!r} for tag {tag!r}")
        else:
            keywords.append(Keyword(tag, _decode_payload(region, fmt, idata, ldata, little_endian)))

        pos += lkey

    return keywords


def to_mapping(keywords: List[Keyword]) -> Dict[str, Any]:
    """
    Build the mapping representation of a keyword list.

    The first occurrence of a tag keeps its name; the n-th occurrence
    (n >= 2) is stored under the tag followed by n, e.g. B_TEST2.
    """
    seen = {}
    mapping = {}
    for tag, value in keywords:
        seen[tag] = seen.get(tag, 0) + 1
        if seen[tag] > 1:
            tag = f"{tag}{seen[tag]}"
        mapping[tag] = value
    return mapping


def unpack_keywords(buf, little_endian: bool,
                    ext_header_type: Any = DEFAULT_OPTIONS['ext_header_type']) -> Union[Dict[str, Any], List[Keyword]]:
    """
    Unpack an extended header region into a dict or a list of keywords.

    Args:
        buf: The extended header region only
        little_endian: Byte order of the file header
        ext_header_type: Representation option, see is_mapping_type()

    Returns:
        Dict[str, Any] for the mapping representation (duplicate tags
        renamed), otherwise List[Keyword] with every record verbatim
    """
    keywords = read_keywords(buf, little_endian)
    if is_mapping_type(ext_header_type):
        return to_mapping(keywords)
    return keywords
