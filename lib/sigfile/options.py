"""
sigfile.options - Reader options

License: MIT
"""

from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

# Defaults for every option a reader understands
DEFAULT_OPTIONS = MappingProxyType({
    # Extended header keywords as a dict ('dict', 'json', 'DICT', 'JSON',
    # 'XMTable' or {}) or as a list of Keyword(tag, value) ('list', ...)
    'ext_header_type': 'dict',
    # Seconds to wait for an HTTP source
    'timeout': 30.0,
})


def merge_options(options: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Merge caller options over DEFAULT_OPTIONS.

    Args:
        options: Option overrides, or None for the defaults

    Returns:
        Dict[str, Any]: A new dict holding every option

    Raises:
        ValueError: If options contains a name that is not a known option
    """
    merged = dict(DEFAULT_OPTIONS)
    if options:
        unknown = sorted(set(options) - set(DEFAULT_OPTIONS))
        if unknown:
            raise ValueError(f"Unsupported reader option(s): {', '.join(unknown)}")
        merged.update(options)
    return merged
