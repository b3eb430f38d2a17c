"""
sigfile.dataview - Zero-copy sample views over the data segment

License: MIT
"""

import sys
from typing import Union

import numpy as np

from .bitarray import BitArray
from .errors import MalformedHeaderError, UnsupportedEndiannessError, UnsupportedFormatError
from .formats import HOST_LITTLE_ENDIAN, FormatGeometry


def element_count(nbytes: int, geometry: FormatGeometry, ape: int = 1) -> int:
    """
    Number of logical elements in a data segment.

    Args:
        nbytes: Length of the data segment in bytes
        geometry: Resolved format geometry
        ape: Atoms per element (1 for one-dimensional data, subsize for 2-D)

    Returns:
        int: nbytes / bytes per scalar / (scalars per atom * atoms per element)

    Raises:
        MalformedHeaderError: If the segment is not a whole number of elements
    """
    if ape < 1:
        raise MalformedHeaderError(f"Atoms per element must be positive, got {ape}")

    nscalars = nbytes / geometry.bps
    per_element = geometry.spa * ape
    if nscalars != int(nscalars) or int(nscalars) % per_element:
        raise MalformedHeaderError(
            f"Data size of {nbytes} bytes is not a whole number of "
            f"{per_element * geometry.bps}-byte elements")
    return int(nscalars) // per_element


def check_endianness(geometry: FormatGeometry, little_endian: bool):
    """
    Reject multi-byte data whose byte order differs from the host.

    Raises:
        UnsupportedEndiannessError: If the scalar width is above one byte and
            the data byte order is not the host byte order
    """
    if geometry.bps > 1 and little_endian != HOST_LITTLE_ENDIAN:
        data_order = 'little' if little_endian else 'big'
        raise UnsupportedEndiannessError(
            f"Data is {data_order}-endian but the host is {sys.byteorder}-endian; "
            f"byte swapping of {geometry.codec.code!r} scalars is not supported")


def create_data_view(buf, offset: int, nbytes: int, geometry: FormatGeometry,
                     little_endian: bool, ape: int = 1) -> Union[np.ndarray, BitArray]:
    """
    Create a view of the data segment without copying it.

    Bit-packed data becomes a BitArray with nbytes * 8 bits, one per element,
    so only scalar atoms of one-dimensional data can be bit-packed. Every other
    storage type becomes a NumPy array over the original buffer whose first
    axis has one entry per element: shape (size,) for scalar atoms,
    (size, spa) for multi-scalar atoms, (size, ape) for 2-D rows of scalars
    and (size, ape, spa) for 2-D rows of multi-scalar atoms.

    Args:
        buf: Object exporting the buffer protocol holding the whole file
        offset: Byte offset of the data segment in buf
        nbytes: Length of the data segment in bytes
        geometry: Resolved format geometry
        little_endian: Byte order of the data
        ape: Atoms per element

    Returns:
        Union[np.ndarray, BitArray]: View with len(view) == element count

    Raises:
        MalformedHeaderError: If the segment lies outside buf or is not a
            whole number of elements
        UnsupportedFormatError: If bit-packed elements hold more than one bit
        UnsupportedEndiannessError: See check_endianness()
    """
    buflen = memoryview(buf).nbytes
    if offset < 0 or nbytes < 0 or offset + nbytes > buflen:
        raise MalformedHeaderError(
            f"Data segment [{offset}, {offset + nbytes}) outside buffer of {buflen} bytes")

    size = element_count(nbytes, geometry, ape)

    if geometry.codec.kind == 'bit':
        if geometry.spa * ape != 1:
            raise UnsupportedFormatError(
                f"Bit-packed elements of {geometry.spa * ape} bits are not supported, "
                f"only single bits (spa={geometry.spa}, ape={ape})")
        return BitArray(buf, offset, nbits=nbytes * 8)

    check_endianness(geometry, little_endian)

    dtype = geometry.codec.dtype(little_endian)
    nscalars = size * geometry.spa * ape
    if nscalars:
        view = np.frombuffer(buf, dtype=dtype, count=nscalars, offset=offset)
    else:
        view = np.empty(0, dtype=dtype)
        view.setflags(write=False)

    shape = [size]
    if ape > 1:
        shape.append(ape)
    if geometry.spa > 1:
        shape.append(geometry.spa)
    return view.reshape(shape)
