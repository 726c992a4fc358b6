from typing import Optional

from ..Exceptions import ConfigurationMismatchException
from ..IO import BitCursor, BitOrder
from .huffman import HuffmanDecoder
from .token_shape import BackReferenceRule, ControlKind, LiteralRule, RunFillRule, TokenShape
from .tokens import BackReference, Literal, RunFill, Token


class ControlDecoder:
    """Turns the bit stream into tokens.

    next_token returns None once the input runs out or an in-band end marker
    is read; end_marker_seen tells the two apart.
    """

    def __init__(self, symbols: Optional[HuffmanDecoder] = None):
        self._symbols = symbols
        self._control = 0
        self._control_left = 0
        self.end_marker_seen = False

    def _next_control_bit(self, bits: BitCursor, shape: TokenShape) -> Optional[int]:
        if self._control_left == 0:
            control = bits.read_bits(shape.control_width)
            if control is None:
                return None
            self._control = control
            self._control_left = shape.control_width
        self._control_left -= 1
        if shape.control_order is BitOrder.LSB:
            bit = self._control & 1
            self._control >>= 1
            return bit
        return (self._control >> self._control_left) & 1

    def _next_code(self, bits: BitCursor, shape: TokenShape) -> Optional[int]:
        if shape.control is ControlKind.WORD:
            return self._next_control_bit(bits, shape)
        if shape.control is ControlKind.INLINE:
            return bits.read_bits(shape.code_bits)
        return self._next_symbol(bits)

    def _next_symbol(self, bits: BitCursor) -> Optional[int]:
        if self._symbols is None:
            raise ConfigurationMismatchException("Token shape decodes Huffman symbols but no tree was configured")
        return self._symbols.decode_symbol(bits)

    def next_token(self, bits: BitCursor, shape: TokenShape) -> Optional[Token]:
        if self.end_marker_seen:
            return None
        code = self._next_code(bits, shape)
        if code is None:
            return None

        if shape.control is ControlKind.SYMBOL:
            if code < shape.literal_alphabet:
                return Literal(code)
            return self._symbol_reference(bits, shape, code)

        rule = shape.rule_for(code)
        if rule is None:
            raise ConfigurationMismatchException(f"No token rule for control code {code}")
        if isinstance(rule, LiteralRule):
            value = self._next_symbol(bits) if rule.huffman else bits.read_bits(rule.bits)
            return None if value is None else Literal(value)

        word = bits.read_bits(rule.code_bits)
        if word is None:
            return None
        if isinstance(rule, BackReferenceRule):
            return self._finish(rule.offset, rule.length, word, lambda offset, length: BackReference(offset, length, rule.absolute))
        if isinstance(rule, RunFillRule):
            return self._finish(rule.count, rule.value, word, lambda count, value: RunFill(value, count))
        raise ConfigurationMismatchException(f"Unsupported token rule {rule!r}")

    def _finish(self, first, second, word, make) -> Optional[Token]:
        raw_first = first.raw(word)
        raw_second = second.raw(word)
        if first.is_end(raw_first) or second.is_end(raw_second):
            self.end_marker_seen = True
            return None
        return make(first.finish(raw_first), second.finish(raw_second))

    def _symbol_reference(self, bits: BitCursor, shape: TokenShape, symbol: int) -> Optional[Token]:
        rule = shape.back_reference_rule()
        word = bits.read_bits(rule.code_bits)
        if word is None:
            return None
        raw_offset = rule.offset.raw(word)
        if rule.offset.is_end(raw_offset):
            self.end_marker_seen = True
            return None
        length = symbol - shape.literal_alphabet + rule.length.bias
        return BackReference(rule.offset.finish(raw_offset), length, rule.absolute)


__all__ = ["ControlDecoder"]
