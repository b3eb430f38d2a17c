"""
sigfile.bitarray - Read-only view over bit-packed sample data

License: MIT
"""

from typing import Iterator, List, Optional, Union

import numpy as np

from .errors import IndexOutOfRangeError


class BitArray:
    """
    A read-only sequence of bits backed by a byte buffer.

    Bit 0 of the array is the most significant bit of the first byte, bit 7
    its least significant bit, bit 8 the most significant bit of the second
    byte and so on. The buffer is referenced through a memoryview and is
    never copied.

    Supports len(), iteration and indexing with integers (negative indices
    count from the end) and slices, so a BitArray can stand in wherever a
    NumPy sample view is indexed element by element.
    """

    def __init__(self, buf, offset: int = 0, nbits: Optional[int] = None):
        """
        Initialize a BitArray.

        Args:
            buf: Object exporting the buffer protocol
            offset: Byte offset of the first bit within buf
            nbits: Number of logical bits. Defaults to every bit from offset
                   to the end of buf.

        Raises:
            ValueError: If the bits do not fit into buf
        """
        view = memoryview(buf).cast('B')
        if offset < 0 or offset > len(view):
            raise ValueError(f"Offset {offset} outside buffer of {len(view)} bytes")
        if nbits is None:
            nbits = (len(view) - offset) * 8
        nbytes = (nbits + 7) // 8
        if nbits < 0 or offset + nbytes > len(view):
            raise ValueError(f"{nbits} bits at offset {offset} exceed buffer of {len(view)} bytes")

        self._bytes = view[offset:offset + nbytes]
        self._length = nbits

    def __len__(self) -> int:
        return self._length

    @property
    def nbytes(self) -> int:
        """Number of bytes backing the array, including padding in the final byte."""
        return len(self._bytes)

    def get(self, index: int) -> int:
        """
        Return the bit at `index` as 0 or 1.

        Raises:
            IndexOutOfRangeError: If index is not in [0, len(self))
        """
        if not 0 <= index < self._length:
            raise IndexOutOfRangeError(f"Bit index {index} out of range for BitArray of length {self._length}")
        return (self._bytes[index >> 3] >> (7 - (index & 7))) & 1

    # camelCase alias
    getBit = get

    def __getitem__(self, item: Union[int, slice]) -> Union[int, List[int]]:
        if isinstance(item, slice):
            return [self.get(i) for i in range(*item.indices(self._length))]
        if isinstance(item, (int, np.integer)):
            index = int(item)
            if index < 0:
                index += self._length
            return self.get(index)
        raise TypeError(f"BitArray indices must be integers or slices, got {type(item).__name__}")

    def __iter__(self) -> Iterator[int]:
        for i in range(self._length):
            yield self.get(i)

    def to_numpy(self) -> np.ndarray:
        """Unpack the bits into a new uint8 array of 0s and 1s."""
        return np.unpackbits(np.frombuffer(self._bytes, dtype=np.uint8), count=self._length)

    def __repr__(self):
        return f"BitArray(length={self._length})"
