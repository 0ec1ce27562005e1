from typing import Optional

from packmule.constants import DEFAULT_MT_SEED

N = 624
M = 397
MATRIX_A = 0x9908B0DF
UPPER_MASK = 0x80000000
LOWER_MASK = 0x7FFFFFFF
MASK32 = 0xFFFFFFFF

_MAG01 = (0, MATRIX_A)


def temper(y: int) -> int:
    y ^= y >> 11
    y ^= (y << 7) & 0x9D2C5680
    y ^= (y << 15) & 0xEFC60000
    y ^= y >> 18
    return y


class MersenneTwister:
    """MT19937 generator producing 32-bit words.

    Each instance owns its state. If a word is requested before ``init`` has been
    called the generator seeds itself with 5489, the reference default.
    """

    __slots__ = ("_mt", "_mti")

    def __init__(self, seed: Optional[int] = None):
        self._mt = [0] * N
        # N + 1 marks the state as not yet initialised.
        self._mti = N + 1
        if seed is not None:
            self.init(seed)

    def init(self, seed: int):
        mt = self._mt
        mt[0] = seed & MASK32
        for i in range(1, N):
            prev = mt[i - 1]
            mt[i] = (1812433253 * (prev ^ (prev >> 30)) + i) & MASK32
        self._mti = N

    def _twist(self):
        if self._mti == N + 1:
            self.init(DEFAULT_MT_SEED)
        mt = self._mt
        for kk in range(N - M):
            y = (mt[kk] & UPPER_MASK) | (mt[kk + 1] & LOWER_MASK)
            mt[kk] = mt[kk + M] ^ (y >> 1) ^ _MAG01[y & 0x1]
        for kk in range(N - M, N - 1):
            y = (mt[kk] & UPPER_MASK) | (mt[kk + 1] & LOWER_MASK)
            mt[kk] = mt[kk + (M - N)] ^ (y >> 1) ^ _MAG01[y & 0x1]
        y = (mt[N - 1] & UPPER_MASK) | (mt[0] & LOWER_MASK)
        mt[N - 1] = mt[M - 1] ^ (y >> 1) ^ _MAG01[y & 0x1]
        self._mti = 0

    def next(self) -> int:
        """Return the next word on [0, 0xFFFFFFFF]."""
        if self._mti >= N:
            self._twist()
        y = self._mt[self._mti]
        self._mti += 1
        return temper(y)

    def keystream(self, count: int) -> bytes:
        """Return the low byte of each of the next ``count`` words.
        This advances the generator exactly as ``count`` calls to ``next`` would."""
        out = bytearray()
        while len(out) < count:
            if self._mti >= N:
                self._twist()
            take = min(N - self._mti, count - len(out))
            start = self._mti
            out += bytes(temper(y) & 0xFF for y in self._mt[start : start + take])
            self._mti = start + take
        return bytes(out)

    def __iter__(self):
        return self

    def __next__(self) -> int:
        return self.next()
