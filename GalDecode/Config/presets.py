"""Configurations for the compression and cipher schemes seen in shipped titles.

Each function takes the per-entry metadata (sizes, keys) as arguments and
returns a fresh Configuration. Nothing here inspects the data itself.
"""

from typing import Callable, Dict, Optional, Sequence

from ..Cipher import (
    CipherKind,
    CipherOrder,
    Combine,
    FeedbackKey,
    FeedbackUpdate,
    KeystreamGenerator,
    KeystreamKey,
    RotateDirection,
    RotateKey,
)
from ..Compression import BackReferenceRule, ControlKind, Field, LiteralRule, TokenShape
from ..IO import BitOrder
from .configuration import Configuration, HuffmanSource, Leniency

LZSS_FRAME_SIZE = 0x1000
LZSS_FRAME_INIT_POS = 0xFEE

HLZS_DIC_SIZE = 0x1000
HLZS_MAX_LEN = 0x12

QUINTET_SEARCH_SIZE = 0x100
QUINTET_WINDOW_POS = 0xEF

# control byte read low bit first, 1 = literal,
# back-reference = lo, hi -> window position lo | (hi & 0xF0) << 4, length (hi & 0x0F) + 3
LZSS_SHAPE = TokenShape(
    rules=(
        LiteralRule(code=1),
        BackReferenceRule(code=0, code_bits=16, offset=Field(((0, 8), (12, 4))), length=Field.bits(8, 4, bias=3), absolute=True),
    ),
    control=ControlKind.WORD,
    control_width=8,
    control_order=BitOrder.LSB,
)

# per-token flag bit, 1 = literal, back-reference = 8-bit window position then 4-bit length + 2
QUINTET_SHAPE = TokenShape(
    rules=(
        LiteralRule(code=1),
        BackReferenceRule(code=0, code_bits=12, offset=Field.bits(4, 8), length=Field.bits(0, 4, bias=2), absolute=True),
    ),
    control=ControlKind.INLINE,
    code_bits=1,
)

# control byte read high bit first, 1 = back-reference, distance 0 means a full window
ZLC2_SHAPE = TokenShape(
    rules=(
        LiteralRule(code=0),
        BackReferenceRule(code=1, code_bits=16, offset=Field(((0, 8), (12, 4)), zero_value=0x1000), length=Field.bits(8, 4, bias=3)),
    ),
    control=ControlKind.WORD,
    control_width=8,
    control_order=BitOrder.MSB,
)


def lzss(output_length: int, frame_size: int = LZSS_FRAME_SIZE, frame_fill: int = 0, frame_init_pos: int = LZSS_FRAME_INIT_POS, leniency: Leniency = Leniency.LENIENT) -> Configuration:
    return Configuration(
        output_length=output_length,
        bit_order=BitOrder.LSB,
        dictionary_size=frame_size,
        initial_fill_byte=frame_fill,
        initial_cursor=frame_init_pos,
        token_shape=LZSS_SHAPE,
        leniency=leniency,
    )


def hlzs(output_length: int, leniency: Leniency = Leniency.LENIENT) -> Configuration:
    return lzss(output_length, HLZS_DIC_SIZE, 0x20, HLZS_DIC_SIZE - HLZS_MAX_LEN, leniency)


def quintet(output_length: int, leniency: Leniency = Leniency.LENIENT) -> Configuration:
    return Configuration(
        output_length=output_length,
        bit_order=BitOrder.MSB,
        dictionary_size=QUINTET_SEARCH_SIZE,
        initial_fill_byte=0x20,
        initial_cursor=QUINTET_WINDOW_POS,
        token_shape=QUINTET_SHAPE,
        leniency=leniency,
    )


def zlc2(output_length: int, leniency: Leniency = Leniency.LENIENT) -> Configuration:
    return Configuration(
        output_length=output_length,
        bit_order=BitOrder.LSB,
        dictionary_size=0x1000,
        token_shape=ZLC2_SHAPE,
        leniency=leniency,
    )


def nexas_huffman(output_length: int, leniency: Leniency = Leniency.LENIENT) -> Configuration:
    # the index block is stored bitwise inverted
    return Configuration(
        output_length=output_length,
        bit_order=BitOrder.MSB,
        huffman_source=HuffmanSource.SERIALIZED,
        cipher_kind=CipherKind.STATIC_TABLE,
        key_material=b"\xff",
        cipher_order=CipherOrder.BEFORE,
        leniency=leniency,
    )


def frequency_huffman(output_length: int, frequency_table: Sequence[Optional[int]], delta: bool = False, one_is_right: bool = True, leniency: Leniency = Leniency.LENIENT) -> Configuration:
    return Configuration(
        output_length=output_length,
        bit_order=BitOrder.MSB,
        huffman_source=HuffmanSource.FREQUENCY,
        frequency_table=tuple(frequency_table),
        huffman_delta=delta,
        huffman_one_is_right=one_is_right,
        leniency=leniency,
    )


def _cipher_only(output_length: int, kind: CipherKind, key_material, leniency: Leniency) -> Configuration:
    return Configuration(output_length=output_length, cipher_kind=kind, key_material=key_material, leniency=leniency)


def xor_table(output_length: int, table: bytes, leniency: Leniency = Leniency.LENIENT) -> Configuration:
    return _cipher_only(output_length, CipherKind.STATIC_TABLE, bytes(table), leniency)


def msvc_keystream(output_length: int, seed: int, leniency: Leniency = Leniency.LENIENT) -> Configuration:
    return _cipher_only(output_length, CipherKind.KEYSTREAM, KeystreamKey(seed, KeystreamGenerator.MSVC), leniency)


def bgi_keystream(output_length: int, seed: int, magic: int = 0, leniency: Leniency = Leniency.LENIENT) -> Configuration:
    key = KeystreamKey(seed, KeystreamGenerator.BGI, magic=magic, combine=Combine.SUB)
    return _cipher_only(output_length, CipherKind.KEYSTREAM, key, leniency)


def escude_keystream(output_length: int, seed: int, leniency: Leniency = Leniency.LENIENT) -> Configuration:
    key = KeystreamKey(seed, KeystreamGenerator.XORSHIFT, word_size=4)
    return _cipher_only(output_length, CipherKind.KEYSTREAM, key, leniency)


def omi_feedback(output_length: int, key: int, leniency: Leniency = Leniency.LENIENT) -> Configuration:
    material = FeedbackKey(key, FeedbackUpdate.AFFINE, Combine.SUB, rotate=1, multiplier=5, increment=-3)
    return _cipher_only(output_length, CipherKind.FEEDBACK, material, leniency)


def lazycrew_feedback(output_length: int, key: int, leniency: Leniency = Leniency.LENIENT) -> Configuration:
    material = FeedbackKey(key, FeedbackUpdate.SHIFT_XOR, Combine.XOR, key_bits=32)
    return _cipher_only(output_length, CipherKind.FEEDBACK, material, leniency)


def mrg_feedback(output_length: int, key: int, leniency: Leniency = Leniency.LENIENT) -> Configuration:
    material = FeedbackKey(key, FeedbackUpdate.COUNTDOWN, Combine.XOR, rotate=1, rotate_direction=RotateDirection.LEFT, key_bits=32)
    return _cipher_only(output_length, CipherKind.FEEDBACK, material, leniency)


def rotate(output_length: int, key: int, step: int = 0, direction: RotateDirection = RotateDirection.RIGHT, leniency: Leniency = Leniency.LENIENT) -> Configuration:
    return _cipher_only(output_length, CipherKind.ROTATE, RotateKey(key, step, direction), leniency)


PRESETS: Dict[str, Callable[..., Configuration]] = {
    "lzss": lzss,
    "hlzs": hlzs,
    "quintet": quintet,
    "zlc2": zlc2,
    "nexas_huffman": nexas_huffman,
    "frequency_huffman": frequency_huffman,
    "xor_table": xor_table,
    "msvc_keystream": msvc_keystream,
    "bgi_keystream": bgi_keystream,
    "escude_keystream": escude_keystream,
    "omi_feedback": omi_feedback,
    "lazycrew_feedback": lazycrew_feedback,
    "mrg_feedback": mrg_feedback,
    "rotate": rotate,
}

# presets that only decipher; their output length defaults to the input size
CIPHER_ONLY_PRESETS = {
    "xor_table",
    "msvc_keystream",
    "bgi_keystream",
    "escude_keystream",
    "omi_feedback",
    "lazycrew_feedback",
    "mrg_feedback",
    "rotate",
}

__all__ = ["CIPHER_ONLY_PRESETS", "PRESETS"] + sorted(PRESETS)
