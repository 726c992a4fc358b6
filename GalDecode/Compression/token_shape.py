from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from ..IO import MAX_FIELD_BITS, BitOrder


class ControlKind(Enum):
    WORD = 0
    INLINE = 1
    SYMBOL = 2


@dataclass(frozen=True)
class Field:
    """Integer packed into a code word as one or more (shift, width) slices.

    Slices are concatenated from the low end: the first slice supplies the
    least significant bits of the result.
    """

    pieces: Tuple[Tuple[int, int], ...]
    bias: int = 0
    zero_value: Optional[int] = None
    end_marker: Optional[int] = None

    @classmethod
    def bits(cls, shift: int, width: int, bias: int = 0, zero_value: Optional[int] = None, end_marker: Optional[int] = None) -> "Field":
        return cls(((shift, width),), bias, zero_value, end_marker)

    @property
    def width(self) -> int:
        return sum(width for _, width in self.pieces)

    @property
    def span(self) -> int:
        return max((shift + width for shift, width in self.pieces), default=0)

    def raw(self, code: int) -> int:
        value = 0
        pos = 0
        for shift, width in self.pieces:
            value |= ((code >> shift) & ((1 << width) - 1)) << pos
            pos += width
        return value

    def is_end(self, raw: int) -> bool:
        return self.end_marker is not None and raw == self.end_marker

    def finish(self, raw: int) -> int:
        if raw == 0 and self.zero_value is not None:
            raw = self.zero_value
        return raw + self.bias

    def extract(self, code: int) -> int:
        return self.finish(self.raw(code))


@dataclass(frozen=True)
class LiteralRule:
    code: int
    bits: int = 8
    huffman: bool = False


@dataclass(frozen=True)
class BackReferenceRule:
    code: int
    code_bits: int
    offset: Field
    length: Field
    absolute: bool = False


@dataclass(frozen=True)
class RunFillRule:
    code: int
    code_bits: int
    count: Field
    value: Field


Rule = Union[LiteralRule, BackReferenceRule, RunFillRule]


@dataclass(frozen=True)
class TokenShape:
    rules: Tuple[Rule, ...]
    control: ControlKind = ControlKind.WORD
    control_width: int = 8
    control_order: BitOrder = BitOrder.LSB
    code_bits: int = 1
    literal_alphabet: int = 256

    def rule_for(self, code: int) -> Optional[Rule]:
        for rule in self.rules:
            if rule.code == code:
                return rule
        return None

    def back_reference_rule(self) -> Optional[BackReferenceRule]:
        for rule in self.rules:
            if isinstance(rule, BackReferenceRule):
                return rule
        return None

    def uses_huffman(self) -> bool:
        return self.control is ControlKind.SYMBOL or any(isinstance(r, LiteralRule) and r.huffman for r in self.rules)

    def problems(self):
        if not self.rules:
            yield "token shape has no rules"
        if self.control is ControlKind.WORD and not 1 <= self.control_width <= MAX_FIELD_BITS:
            yield f"control word width {self.control_width} is not in 1..{MAX_FIELD_BITS}"
        if self.control is ControlKind.INLINE and not 1 <= self.code_bits <= MAX_FIELD_BITS:
            yield f"inline code width {self.code_bits} is not in 1..{MAX_FIELD_BITS}"
        if self.control is ControlKind.SYMBOL and self.back_reference_rule() is None:
            yield "symbol-classified shape needs a back-reference rule"
        for rule in self.rules:
            if isinstance(rule, LiteralRule):
                if not rule.huffman and not 1 <= rule.bits <= 8:
                    yield f"literal width {rule.bits} is not in 1..8"
                continue
            if not 0 <= rule.code_bits <= MAX_FIELD_BITS:
                yield f"code word width {rule.code_bits} is not in 0..{MAX_FIELD_BITS}"
            fields = (rule.offset, rule.length) if isinstance(rule, BackReferenceRule) else (rule.count, rule.value)
            for field in fields:
                if field.span > rule.code_bits:
                    yield f"field {field.pieces} reaches past a {rule.code_bits}-bit code word"


__all__ = [
    "BackReferenceRule",
    "ControlKind",
    "Field",
    "LiteralRule",
    "Rule",
    "RunFillRule",
    "TokenShape",
]
