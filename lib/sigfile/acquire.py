"""
sigfile.acquire - Obtain the bytes of a file from disk, HTTP or memory

License: MIT
"""

import logging
import os
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import unquote, urlparse

import requests

from .errors import AcquisitionError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def is_url(source) -> bool:
    """Tell whether source is an http:// or https:// URL."""
    return isinstance(source, str) and urlparse(source).scheme in ('http', 'https')


def source_name(source) -> Optional[str]:
    """
    Return the file name of a path or URL source, or None for in-memory buffers.
    """
    if is_url(source):
        return PurePosixPath(unquote(urlparse(source).path)).name or None
    if isinstance(source, (str, os.PathLike)):
        return Path(source).name or None
    return None


def acquire(source, timeout: float = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None):
    """
    Read the complete contents of a source into memory.

    Args:
        source: Local path, http(s) URL, or an object exporting the buffer
                protocol (returned as is, without copying)
        timeout: Seconds to wait for an HTTP response
        session: Optional requests.Session for HTTP sources

    Returns:
        The bytes of the source (bytes, or the buffer object passed in)

    Raises:
        AcquisitionError: If the source cannot be read or is empty
    """
    if is_url(source):
        http = session if session is not None else requests
        try:
            response = http.get(source, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise AcquisitionError(source, str(e)) from e
        data = response.content
    elif isinstance(source, (str, os.PathLike)):
        try:
            data = Path(source).read_bytes()
        except OSError as e:
            raise AcquisitionError(source, str(e)) from e
    else:
        try:
            nbytes = memoryview(source).nbytes
        except TypeError as e:
            raise AcquisitionError(source, "not a path, URL or buffer") from e
        if not nbytes:
            raise AcquisitionError(source, "no data")
        return source

    if not data:
        raise AcquisitionError(source, "no data")

    logger.debug(f"Acquired {len(data)} bytes from {source}")
    return data
