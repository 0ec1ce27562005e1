import io
import zlib
from logging import NullHandler, getLogger
from typing import BinaryIO

from packmule.buffers import chunked_reader
from packmule.constants import COPY_CHUNK_SIZE
from packmule.errors import FormatError

logger = getLogger(__name__)
logger.addHandler(NullHandler())


class DecompressStream(io.RawIOBase):
    """Inflate a zlib stream read from another stream, a chunk at a time.

    At most ``chunk_size`` bytes of output are produced per inflate call, so a
    small read never decompresses the whole entry.
    """

    def __init__(self, inner: BinaryIO, chunk_size: int = COPY_CHUNK_SIZE):
        super().__init__()
        self._inner = inner
        self.chunk_size = chunk_size
        self._decompressor = zlib.decompressobj()
        self._buffer = bytearray()
        self._eof = False

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        while not self._buffer and not self._eof:
            self._fill()
        size = min(len(b), len(self._buffer))
        b[:size] = self._buffer[:size]
        del self._buffer[:size]
        return size

    def _fill(self):
        if self._decompressor.eof:
            if self._decompressor.unused_data:
                logger.debug(f"Ignoring {len(self._decompressor.unused_data)} bytes after the end of the stream")
            self._eof = True
            return
        data = self._decompressor.unconsumed_tail
        if not data:
            data = self._inner.read(self.chunk_size)
            if not data:
                self._buffer += self._decompressor.flush()
                self._eof = True
                if not self._decompressor.eof:
                    raise FormatError("Compressed data ended before the end of the zlib stream")
                return
        try:
            self._buffer += self._decompressor.decompress(data, self.chunk_size)
        except zlib.error as e:
            raise FormatError(f"Error decompressing entry data: {e}") from e


class Compressor:
    """zlib compression, as used for entry data in a pack file."""

    def __init__(self, level: int = zlib.Z_DEFAULT_COMPRESSION, chunk_size: int = COPY_CHUNK_SIZE):
        self.level = level
        self.chunk_size = chunk_size

    def compress_stream(self, source: BinaryIO, dest: BinaryIO) -> int:
        """Compress everything remaining in source into dest.
        Returns the number of bytes consumed from source."""
        compressor = zlib.compressobj(self.level)
        consumed = 0
        for data in chunked_reader(source, self.chunk_size):
            consumed += len(data)
            if out := compressor.compress(data):
                dest.write(out)
        dest.write(compressor.flush())
        return consumed

    def open_decompressor(self, inner: BinaryIO) -> DecompressStream:
        return DecompressStream(inner, self.chunk_size)
