"""
sigfile.reader - Acquire-then-decode orchestration shared by the format readers

Each format reader (BlueFileReader, MatFileReader) only has to know how to
decode a buffer that is already in memory. decode_from_source() takes care
of obtaining the bytes and of delivering exactly one outcome.

License: MIT
"""

import dataclasses
import logging
from concurrent.futures import Executor, Future
from typing import Any, Callable, Optional, Protocol

from .acquire import DEFAULT_TIMEOUT, acquire, source_name
from .errors import AcquisitionError

logger = logging.getLogger(__name__)


class FormatReader(Protocol):
    """Anything that can decode a complete file held in memory."""

    def decode(self, buf) -> Any:
        ...


def _acquire_and_decode(reader: FormatReader, source, timeout: float, session) -> Any:
    try:
        buf = acquire(source, timeout=timeout, session=session)
    except AcquisitionError as e:
        logger.error(f"Failed to acquire {source!r}: {e.reason}")
        return None

    try:
        hdr = reader.decode(buf)
    except Exception as e:
        logger.error(f"Failed to decode {source!r}: {e}")
        raise

    name = source_name(source)
    if name is not None:
        hdr = dataclasses.replace(hdr, file_name=name)
    return hdr


def _outcome(future: Future) -> Any:
    # None for anything but a successful decode
    if future.cancelled() or future.exception() is not None:
        return None
    return future.result()


def decode_from_source(reader: FormatReader, source,
                       on_complete: Optional[Callable[[Any], Any]] = None,
                       executor: Optional[Executor] = None,
                       timeout: float = DEFAULT_TIMEOUT,
                       session=None) -> Future:
    """
    Acquire the bytes of source and decode them with reader.

    Without an executor the work happens in the calling thread and the
    returned future is already done. With an executor it is submitted there.
    Either way the future completes exactly once.

    Args:
        reader: Format reader whose decode() turns bytes into a descriptor
        source: Local path, http(s) URL, or bytes-like object
        on_complete: Called exactly once with the descriptor, or with None if
                     acquisition or decoding failed
        executor: Optional executor for acquisition and decoding
        timeout: Seconds to wait for an HTTP source
        session: Optional requests.Session for HTTP sources

    Returns:
        Future: Resolves to the descriptor (with file_name set for path and
                URL sources), or to None if acquisition failed. A decoding
                error is set as the future's exception.
    """
    if executor is None:
        future = Future()
        future.set_running_or_notify_cancel()
        try:
            future.set_result(_acquire_and_decode(reader, source, timeout, session))
        except Exception as e:
            future.set_exception(e)
    else:
        future = executor.submit(_acquire_and_decode, reader, source, timeout, session)

    if on_complete is not None:
        future.add_done_callback(lambda f: on_complete(_outcome(f)))
    return future
