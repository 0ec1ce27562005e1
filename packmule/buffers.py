import io
from io import SEEK_CUR, SEEK_END, SEEK_SET
from typing import BinaryIO, Iterator

from packmule.constants import COPY_CHUNK_SIZE
from packmule.errors import BoundsError, UnsupportedOperationError


def chunked_reader(source: BinaryIO, chunk_size: int = COPY_CHUNK_SIZE) -> Iterator[bytes]:
    """Yield chunks of up to chunk_size bytes from a stream until it is exhausted."""
    while True:
        data = source.read(chunk_size)
        if not data:
            break
        yield data


def copy_stream(source: BinaryIO, dest: BinaryIO, chunk_size: int = COPY_CHUNK_SIZE) -> int:
    """Copy everything remaining in source into dest. Returns the number of bytes copied."""
    copied = 0
    for data in chunked_reader(source, chunk_size):
        dest.write(data)
        copied += len(data)
    return copied


class SegmentStream(io.RawIOBase):
    """Read a chunk of an existing stream as if it were a discrete, finite one.

    The view covers ``count`` bytes starting at ``start`` in the source. Its
    position is derived from the position of the source, so every read moves the
    source too. Two views over the same source must not be read in an interleaved
    fashion.
    """

    def __init__(self, source: BinaryIO, start: int, count: int):
        super().__init__()
        if not source.seekable():
            raise ValueError("Source must be seekable")
        self._source = source
        self._start = start
        self._count = count
        self._source.seek(start, SEEK_SET)

    @property
    def size(self) -> int:
        return self._count

    def __len__(self) -> int:
        return self._count

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def writable(self) -> bool:
        return False

    def tell(self) -> int:
        return self._source.tell() - self._start

    def seek(self, offset: int, whence: int = SEEK_SET) -> int:
        """Move to a new position within the view.
        For SEEK_END the offset counts backwards from the end, so ``seek(0, SEEK_END)`` moves to the end.
        """
        if whence == SEEK_SET:
            position = offset
        elif whence == SEEK_CUR:
            position = self.tell() + offset
        elif whence == SEEK_END:
            position = self._count - offset
        else:
            raise ValueError(f"Invalid whence ({whence!r})")
        if position < 0 or position > self._count:
            raise BoundsError(f"Position {position} is outside of the segment [0, {self._count}]")
        self._source.seek(self._start + position, SEEK_SET)
        return position

    def readinto(self, b) -> int:
        remaining = self._count - self.tell()
        if remaining <= 0:
            return 0
        data = self._source.read(min(len(b), remaining))
        size = len(data)
        b[:size] = data
        return size

    def write(self, b):
        raise UnsupportedOperationError("Segment streams are read-only")

    def truncate(self, size=None):
        raise UnsupportedOperationError("Segment streams are read-only")


def read_up_to(source: BinaryIO, size: int = -1) -> bytes:
    """Read until size bytes have been read or the stream is exhausted.
    Unlike a single raw read this never returns early. A size of -1 reads everything."""
    if size < 0:
        return source.read()
    out = bytearray()
    while len(out) < size:
        data = source.read(size - len(out))
        if not data:
            break
        out += data
    return bytes(out)
