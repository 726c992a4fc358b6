from enum import Enum
from typing import Optional

from .byte_source import ByteSource

MAX_FIELD_BITS = 32


class BitOrder(Enum):
    MSB = 0
    LSB = 1


class BitCursor:
    """Bit reader over a ByteSource.

    MSB-first reads bits from 0x80 down to 0x01 and assembles multi-bit fields
    most significant bit first (big-endian over whole bytes). LSB-first reads
    from 0x01 up and assembles least significant bit first (little-endian).
    """

    def __init__(self, source: ByteSource, order: BitOrder = BitOrder.MSB):
        self._source = source
        self.order = order
        self._cur_value = 0
        self._bit_count = 0

    @property
    def source(self) -> ByteSource:
        return self._source

    def _refill(self) -> bool:
        b = self._source.read_byte()
        if b is None:
            return False
        self._cur_value = b
        self._bit_count = 8
        return True

    def read_bit(self) -> Optional[int]:
        if self._bit_count == 0 and not self._refill():
            return None
        self._bit_count -= 1
        if self.order is BitOrder.MSB:
            return (self._cur_value >> self._bit_count) & 1
        bit = self._cur_value & 1
        self._cur_value >>= 1
        return bit

    def read_bits(self, need_bit: int) -> Optional[int]:
        if need_bit < 0 or need_bit > MAX_FIELD_BITS:
            raise ValueError(f"Cannot read a {need_bit}-bit field")
        result = 0
        if self.order is BitOrder.MSB:
            for _ in range(need_bit):
                bit = self.read_bit()
                if bit is None:
                    return None
                result = (result << 1) | bit
        else:
            for i in range(need_bit):
                bit = self.read_bit()
                if bit is None:
                    return None
                result |= bit << i
        return result

    def byte_aligned(self) -> bool:
        return self._bit_count == 0

    def align(self) -> None:
        self._bit_count = 0
        self._cur_value = 0

    def exhausted(self) -> bool:
        return self._bit_count == 0 and self._source.exhausted


__all__ = ["BitCursor", "BitOrder", "MAX_FIELD_BITS"]
