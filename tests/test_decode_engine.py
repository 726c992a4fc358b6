import io
import logging

import pytest

from GalDecode import (
    ByteSource,
    Configuration,
    ConfigurationMismatchException,
    DecodeEngine,
    HuffmanSource,
    InvalidBackReferenceException,
    Leniency,
    UnexpectedEndOfInputException,
    decode,
)
from GalDecode.Cipher import CipherKind, CipherOrder
from GalDecode.Compression import BackReferencePolicy, BackReferenceRule, ControlKind, Field, HuffmanBuilder, LiteralRule, RunFillRule, TokenShape
from GalDecode.Config import presets
from GalDecode.IO import BitOrder

# control byte read high bit first, 1 = literal, 0 = one byte holding distance (high nibble) and length (low nibble)
NIBBLE_SHAPE = TokenShape(
    rules=(
        LiteralRule(code=1),
        BackReferenceRule(code=0, code_bits=8, offset=Field.bits(4, 4), length=Field.bits(0, 4)),
    ),
    control=ControlKind.WORD,
    control_width=8,
    control_order=BitOrder.MSB,
)

RUN_SHAPE = TokenShape(
    rules=(
        LiteralRule(code=0),
        RunFillRule(code=1, code_bits=12, count=Field.bits(8, 4, bias=1), value=Field.bits(0, 8)),
    ),
    control=ControlKind.INLINE,
    code_bits=2,
)

# A, B, back one byte for one byte, C. The textbook form of this case gives control
# 0b10100000 and offset 2, but those flags never read literal, literal, pair,
# literal in either bit order. Flags 1101 high bit first with distance 1 do.
ABBC = bytes([0b11010000, ord("A"), ord("B"), 0x11, ord("C")])
SIX_LITERALS = bytes([0xFF]) + b"abcdef"


def nibble_config(output_length: int, **changes) -> Configuration:
    return Configuration(output_length=output_length, dictionary_size=16, token_shape=NIBBLE_SHAPE).replace(**changes)


def test_literals_and_back_reference():
    assert decode(ABBC, nibble_config(4)) == b"ABBC"


def test_frequency_table_symbol(pack_bits):
    table = [5, 3, 1, 1] + [0] * 28
    code = HuffmanBuilder.codes(HuffmanBuilder.build(table))[0]
    assert decode(pack_bits(code), presets.frequency_huffman(1, table)) == b"\x00"


def test_run_fill(pack_bits):
    config = Configuration(output_length=5, token_shape=RUN_SHAPE)
    assert decode(pack_bits("01 0100 01011000"), config) == b"XXXXX"


def test_run_fill_feeds_the_window(pack_bits):
    shape = TokenShape(rules=RUN_SHAPE.rules + (BackReferenceRule(code=2, code_bits=8, offset=Field.bits(4, 4), length=Field.bits(0, 4)),), control=ControlKind.INLINE, code_bits=2)
    config = Configuration(output_length=5, dictionary_size=16, token_shape=shape)
    assert decode(pack_bits("01 0001 01011000" + "10 0010 0011"), config) == b"XXXXX"


def test_static_xor_table():
    assert decode(bytes([0x11, 0x21, 0x12]), presets.xor_table(3, b"\x10\x20")) == bytes([0x01, 0x01, 0x02])


def test_static_table_given_as_a_list():
    config = Configuration(output_length=3, cipher_kind=CipherKind.STATIC_TABLE, key_material=[0x10, 0x20])
    assert config.key_material == b"\x10\x20"
    assert decode(bytes([0x11, 0x21, 0x12]), config) == bytes([0x01, 0x01, 0x02])


def test_static_table_list_outside_byte_range():
    with pytest.raises(ConfigurationMismatchException):
        DecodeEngine(Configuration(output_length=1, cipher_kind=CipherKind.STATIC_TABLE, key_material=[0x100]))
    with pytest.raises(ConfigurationMismatchException):
        DecodeEngine(Configuration(output_length=1, cipher_kind=CipherKind.STATIC_TABLE, key_material=[-1]))


def test_truncated_input_is_partial_success(caplog):
    with caplog.at_level(logging.WARNING):
        out = decode(SIX_LITERALS, nibble_config(10))
    assert out == b"abcdef"
    assert "6 of 10" in caplog.text


def test_truncated_input_in_strict_mode():
    with pytest.raises(UnexpectedEndOfInputException) as excinfo:
        decode(SIX_LITERALS, nibble_config(10, leniency=Leniency.STRICT))
    assert (excinfo.value.produced, excinfo.value.expected) == (6, 10)


def test_deterministic():
    engine = DecodeEngine(nibble_config(4))
    assert engine.decode(ABBC) == engine.decode(ABBC) == decode(ABBC, nibble_config(4))


def test_output_never_exceeds_declared_length():
    assert decode(ABBC, nibble_config(3)) == b"ABB"
    assert decode(ABBC, nibble_config(0)) == b""


def test_strict_output_is_exact():
    assert len(decode(ABBC, nibble_config(4, leniency=Leniency.STRICT))) == 4


def test_chopped_stream_yields_prefix():
    full = presets.lzss(5)
    data = bytes([0x03, 0x41, 0x42, 0xEE, 0xF0])
    complete = decode(data, full)
    partial = decode(data[:-1], full)
    assert len(partial) <= len(complete)
    assert complete.startswith(partial)
    with pytest.raises(UnexpectedEndOfInputException):
        decode(data[:-1], full.replace(leniency=Leniency.STRICT))


def test_rejected_back_reference():
    data = bytes([0b10000000, ord("A"), 0x01])
    assert decode(data, nibble_config(2)) == b"A\x00"
    with pytest.raises(InvalidBackReferenceException):
        decode(data, nibble_config(2, backref_policy=BackReferencePolicy.REJECT))


def test_wrap_summary_is_logged_when_input_runs_out(caplog):
    data = bytes([0b10000000, ord("A"), 0x01])
    with caplog.at_level(logging.DEBUG):
        assert decode(data, nibble_config(5)) == b"A\x00"
    assert "1 back-references wrapped around the window" in caplog.text
    assert "input exhausted" in caplog.text


def test_cipher_after_unpacking():
    config = nibble_config(4, cipher_kind=CipherKind.STATIC_TABLE, key_material=b"\x01", cipher_order=CipherOrder.AFTER)
    assert decode(ABBC, config) == b"@CCB"


def test_cipher_before_unpacking():
    scrambled = bytes(b ^ 0x5A for b in ABBC)
    config = nibble_config(4, cipher_kind=CipherKind.STATIC_TABLE, key_material=b"\x5a")
    assert decode(scrambled, config) == b"ABBC"


def test_cipher_only_copies_input():
    assert decode(b"\x01\x02\x03\x04", presets.xor_table(2, b"\x01")) == b"\x00\x03"


def test_end_marker_stops_early(pack_bits):
    shape = TokenShape(
        rules=(
            LiteralRule(code=1),
            BackReferenceRule(code=0, code_bits=8, offset=Field.bits(4, 4, end_marker=0), length=Field.bits(0, 4)),
        ),
        control=ControlKind.INLINE,
    )
    data = pack_bits("1 01000001 0 00000000 1 01000010")
    config = Configuration(output_length=4, dictionary_size=16, token_shape=shape)
    assert decode(data, config) == b"A"
    with pytest.raises(UnexpectedEndOfInputException):
        decode(data, config.replace(leniency=Leniency.STRICT))


def test_huffman_literal_must_fit_in_a_byte(pack_bits):
    table = [1] * 300
    code = HuffmanBuilder.codes(HuffmanBuilder.build(table))[299]
    with pytest.raises(ConfigurationMismatchException):
        decode(pack_bits(code), presets.frequency_huffman(1, table))


def test_delta_huffman(pack_bits):
    config = presets.frequency_huffman(3, [1, 1, 1, 1], delta=True)
    assert decode(pack_bits("01 01 11"), config) == b"\x01\x02\x01"


def test_invalid_configuration_is_rejected_up_front():
    with pytest.raises(ConfigurationMismatchException):
        DecodeEngine(nibble_config(4, dictionary_size=0))
    with pytest.raises(ConfigurationMismatchException):
        DecodeEngine(Configuration(output_length=1, cipher_kind=CipherKind.KEYSTREAM))
    with pytest.raises(ConfigurationMismatchException):
        DecodeEngine(Configuration(output_length=1, huffman_source=HuffmanSource.FREQUENCY))


def test_accepts_streams_and_sources():
    assert decode(io.BytesIO(ABBC), nibble_config(4)) == b"ABBC"
    assert decode(ByteSource(b"junk" + ABBC, position=4), nibble_config(4)) == b"ABBC"


def test_control_width_is_exposed():
    assert nibble_config(1).control_width == 8
    assert nibble_config(1).token_shapes == NIBBLE_SHAPE.rules
