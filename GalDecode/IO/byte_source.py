from io import SEEK_SET
from typing import BinaryIO, Optional, Union

BytesLike = Union[bytes, bytearray, memoryview]


class ByteSource:
    """Read-only cursor over a finite, in-memory byte range.

    Every decode call gets its own source, so several decodes can share the
    underlying buffer without synchronisation.
    """

    BLOCKSIZE = 0x10000

    def __init__(self, data: BytesLike, position: int = 0, length: Optional[int] = None):
        self._data = memoryview(data).cast("B") if not isinstance(data, bytes) else data
        end = len(self._data) if length is None else min(len(self._data), position + length)
        if position < 0 or position > end:
            raise ValueError(f"Position {position} is outside the source range")
        self._begin = position
        self._end = end
        self._pos = position

    @classmethod
    def from_stream(cls, stream: BinaryIO, position: Optional[int] = None, length: Optional[int] = None) -> "ByteSource":
        if position is not None:
            stream.seek(position, SEEK_SET)
        chunks = []
        remaining = length
        while remaining is None or remaining > 0:
            size = cls.BLOCKSIZE if remaining is None else min(cls.BLOCKSIZE, remaining)
            buf = stream.read(size)
            if not buf:
                break
            chunks.append(buf)
            if remaining is not None:
                remaining -= len(buf)
        return cls(b"".join(chunks))

    @classmethod
    def wrap(cls, value: Union["ByteSource", BytesLike, BinaryIO]) -> "ByteSource":
        if isinstance(value, ByteSource):
            return value
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(value)
        if hasattr(value, "read"):
            return cls.from_stream(value)
        raise TypeError(f"Cannot read bytes from {type(value).__name__}")

    def __len__(self) -> int:
        return self._end - self._begin

    @property
    def position(self) -> int:
        return self._pos - self._begin

    @property
    def remaining(self) -> int:
        return self._end - self._pos

    @property
    def exhausted(self) -> bool:
        return self._pos >= self._end

    def read_byte(self) -> Optional[int]:
        if self._pos >= self._end:
            return None
        b = self._data[self._pos]
        self._pos += 1
        return b

    def read(self, size: int = -1) -> bytes:
        if size < 0 or size > self._end - self._pos:
            size = self._end - self._pos
        chunk = bytes(self._data[self._pos : self._pos + size])
        self._pos += size
        return chunk

    def read_all(self) -> bytes:
        return self.read()


__all__ = ["ByteSource", "BytesLike"]
