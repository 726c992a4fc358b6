from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from ..Cipher import CipherKind, CipherOrder, KeyMaterial, StreamCipher
from ..Compression import BackReferencePolicy, Rule, TokenShape
from ..Exceptions import ConfigurationMismatchException
from ..IO import BitOrder


class Leniency(Enum):
    LENIENT = 0
    STRICT = 1


class HuffmanSource(Enum):
    NONE = 0
    FREQUENCY = 1
    SERIALIZED = 2


def _byte_list(value) -> bool:
    # anything else is left for the cipher to reject
    return isinstance(value, list) and all(isinstance(v, int) and not isinstance(v, bool) and 0 <= v <= 0xFF for v in value)


@dataclass(frozen=True)
class Configuration:
    """Everything one decode call needs, built fresh by the caller for each entry."""

    output_length: int
    bit_order: BitOrder = BitOrder.MSB
    dictionary_size: int = 0x1000
    initial_fill_byte: int = 0
    initial_cursor: int = 0
    token_shape: Optional[TokenShape] = None
    cipher_kind: Optional[CipherKind] = None
    key_material: Optional[KeyMaterial] = None
    cipher_order: CipherOrder = CipherOrder.BEFORE
    leniency: Leniency = Leniency.LENIENT
    backref_policy: BackReferencePolicy = BackReferencePolicy.WRAP
    frequency_table: Optional[Tuple[Optional[int], ...]] = None
    huffman_source: HuffmanSource = HuffmanSource.NONE
    huffman_delta: bool = False
    huffman_one_is_right: bool = True
    serialized_symbol_bits: int = 8

    def __post_init__(self):
        if isinstance(self.dictionary_size, int) and self.dictionary_size > 0:
            object.__setattr__(self, "initial_cursor", self.initial_cursor % self.dictionary_size)
        if self.frequency_table is not None and not isinstance(self.frequency_table, tuple):
            object.__setattr__(self, "frequency_table", tuple(self.frequency_table))
        if isinstance(self.key_material, (bytearray, memoryview)) or _byte_list(self.key_material):
            object.__setattr__(self, "key_material", bytes(self.key_material))

    @property
    def strict(self) -> bool:
        return self.leniency is Leniency.STRICT

    @property
    def control_width(self) -> int:
        return self.token_shape.control_width if self.token_shape is not None else 0

    @property
    def token_shapes(self) -> Tuple[Rule, ...]:
        return self.token_shape.rules if self.token_shape is not None else ()

    @property
    def huffman_alphabet(self) -> int:
        if self.huffman_source is HuffmanSource.FREQUENCY and self.frequency_table is not None:
            return len(self.frequency_table)
        return 1 << self.serialized_symbol_bits

    def replace(self, **changes) -> "Configuration":
        return replace(self, **changes)

    def problems(self):
        if not isinstance(self.output_length, int) or self.output_length < 0:
            yield f"output length {self.output_length!r} is not a non-negative integer"
        if self.token_shape is not None:
            if not isinstance(self.dictionary_size, int) or self.dictionary_size <= 0:
                yield f"dictionary size {self.dictionary_size!r} is not a positive integer"
            if not 0 <= self.initial_fill_byte <= 0xFF:
                yield f"fill byte {self.initial_fill_byte} is not a byte value"
            yield from self.token_shape.problems()
            if self.token_shape.uses_huffman() and self.huffman_source is HuffmanSource.NONE:
                yield "token shape decodes Huffman symbols but no Huffman source is configured"
        if self.huffman_source is HuffmanSource.FREQUENCY and self.frequency_table is None:
            yield "Huffman source is a frequency table but none was given"
        if self.huffman_source is HuffmanSource.SERIALIZED and not 1 <= self.serialized_symbol_bits <= 16:
            yield f"serialized symbol width {self.serialized_symbol_bits} is not in 1..16"
        if (self.cipher_kind is None) != (self.key_material is None):
            yield "cipher kind and key material must be given together"

    def validate(self) -> None:
        problems = list(self.problems())
        if problems:
            raise ConfigurationMismatchException("Invalid configuration: " + "; ".join(problems))
        if self.cipher_kind is not None:
            StreamCipher(self.cipher_kind, self.key_material)


__all__ = ["Configuration", "HuffmanSource", "Leniency"]
