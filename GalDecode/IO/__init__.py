from .bit_cursor import MAX_FIELD_BITS, BitCursor, BitOrder
from .byte_source import ByteSource, BytesLike

__all__ = ["BitCursor", "BitOrder", "ByteSource", "BytesLike", "MAX_FIELD_BITS"]
