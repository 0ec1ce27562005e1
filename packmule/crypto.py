import io
from io import SEEK_SET

from packmule.constants import SEED_XOR
from packmule.errors import UnsupportedOperationError
from packmule.mt import MASK32, MersenneTwister


def derive_seed(seed: int) -> int:
    """Turn an entry seed into the seed for the keystream generator."""
    return ((seed << 7) ^ SEED_XOR) & MASK32


def xor_bytes(data: bytes, key: bytes) -> bytes:
    size = len(data)
    if size == 0:
        return b""
    return (int.from_bytes(data, "little") ^ int.from_bytes(key[:size], "little")).to_bytes(size, "little")


class PackCryptoStream(io.RawIOBase):
    """Apply the pack "encryption" to the data passing through another stream.

    Every byte is XOR'd with the low byte of the next word from a Mersenne Twister
    seeded from the entry seed. The same transform encrypts and decrypts, so a
    fresh stream with the same seed undoes what another one did.

    The keystream position is tied to the number of bytes that have gone through
    the stream, which is why seeking is not supported. Closing this stream leaves
    the wrapped stream open.
    """

    def __init__(self, inner, seed: int):
        super().__init__()
        self._inner = inner
        self.seed = seed
        self._mt = MersenneTwister(derive_seed(seed))
        self._processed = 0

    def readable(self) -> bool:
        return self._inner.readable()

    def writable(self) -> bool:
        return self._inner.writable()

    def seekable(self) -> bool:
        return False

    def readinto(self, b) -> int:
        data = self._inner.read(len(b))
        if not data:
            return 0
        size = len(data)
        b[:size] = xor_bytes(data, self._mt.keystream(size))
        self._processed += size
        return size

    def write(self, b) -> int:
        data = bytes(b)
        size = len(data)
        if size:
            self._inner.write(xor_bytes(data, self._mt.keystream(size)))
            self._processed += size
        return size

    def tell(self) -> int:
        """Number of bytes transformed so far."""
        return self._processed

    def seek(self, offset: int, whence: int = SEEK_SET) -> int:
        raise UnsupportedOperationError("Cannot seek within an encrypted stream")

    def truncate(self, size=None):
        raise UnsupportedOperationError("Cannot truncate an encrypted stream")

    def flush(self):
        if not self.closed and not self._inner.closed and self._inner.writable():
            self._inner.flush()
