import logging
from enum import Enum

from ..Exceptions import InvalidBackReferenceException

logger = logging.getLogger(__name__)


class BackReferencePolicy(Enum):
    WRAP = 0
    REJECT = 1


class RingDictionary:
    """Sliding window of recently produced bytes.

    The write cursor and every read index are taken modulo the window size,
    so the window can be any positive size, not only a power of two.
    """

    def __init__(self, size: int, fill_byte: int = 0, initial_cursor: int = 0, policy: BackReferencePolicy = BackReferencePolicy.WRAP):
        if size <= 0:
            raise ValueError(f"Dictionary size must be positive, got {size}")
        self.size = size
        self.policy = policy
        self._frame = bytearray([fill_byte & 0xFF]) * size
        self._cursor = initial_cursor % size
        self.wrapped = 0

    @property
    def cursor(self) -> int:
        return self._cursor

    def push(self, b: int) -> None:
        self._frame[self._cursor] = b
        self._cursor = (self._cursor + 1) % self.size

    def extend(self, data) -> None:
        for b in data:
            self.push(b)

    def read_at(self, offset_back: int) -> int:
        return self._frame[(self._cursor - offset_back) % self.size]

    def _check(self, offset: int, valid: bool) -> None:
        if valid:
            return
        if self.policy is BackReferencePolicy.REJECT:
            raise InvalidBackReferenceException(offset, self.size)
        if not self.wrapped:
            logger.debug("Back-reference %d wrapped into a 0x%X byte window", offset, self.size)
        self.wrapped += 1

    def copy_back(self, distance: int, length: int) -> bytes:
        self._check(distance, 0 < distance <= self.size)
        return self._replay((self._cursor - distance) % self.size, length)

    def copy_from(self, position: int, length: int) -> bytes:
        self._check(position, 0 <= position < self.size)
        return self._replay(position % self.size, length)

    def _replay(self, src: int, length: int) -> bytes:
        # source and destination may overlap; each byte is read after the previous one was written
        out = bytearray(length)
        frame = self._frame
        size = self.size
        dst = self._cursor
        for i in range(length):
            v = frame[src]
            frame[dst] = v
            out[i] = v
            src = (src + 1) % size
            dst = (dst + 1) % size
        self._cursor = dst
        return bytes(out)

    def snapshot(self) -> bytes:
        return bytes(self._frame)


__all__ = ["BackReferencePolicy", "RingDictionary"]
