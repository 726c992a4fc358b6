import json

import pytest

from GalDecode import ConfigurationMismatchException, Leniency, configuration_from_dict, decode, load_configuration
from GalDecode.Cipher import CipherKind, KeystreamGenerator, KeystreamKey, RotateDirection
from GalDecode.Compression import BackReferenceRule, ControlKind
from GalDecode.IO import BitOrder

NIBBLE = {
    "output_length": 4,
    "dictionary_size": 16,
    "bit_order": "msb",
    "token_shape": {
        "control": "word",
        "control_width": 8,
        "control_order": "MSB",
        "rules": [
            {"kind": "literal", "code": 1},
            {
                "kind": "backref",
                "code": 0,
                "code_bits": 8,
                "offset": {"shift": 4, "width": 4},
                "length": {"pieces": [[0, 4]]},
            },
        ],
    },
}


def test_preset_with_hex_length():
    config = configuration_from_dict({"preset": "lzss", "output_length": "0x10"})
    assert config.output_length == 0x10
    assert config.dictionary_size == 0x1000
    assert config.initial_cursor == 0xFEE
    assert config.bit_order is BitOrder.LSB


def test_preset_overrides():
    config = configuration_from_dict({"preset": "lzss", "output_length": 5, "initial_fill_byte": 32, "leniency": "Strict"})
    assert config.initial_fill_byte == 32
    assert config.leniency is Leniency.STRICT


def test_custom_token_shape():
    config = configuration_from_dict(NIBBLE)
    assert config.token_shape.control is ControlKind.WORD
    assert isinstance(config.token_shape.rules[1], BackReferenceRule)
    assert decode(bytes([0b11010000, 0x41, 0x42, 0x11, 0x43]), config) == b"ABBC"


def test_static_table_from_hex():
    config = configuration_from_dict({"output_length": 3, "cipher_kind": "static_table", "key_material": "1020"})
    assert decode(bytes([0x11, 0x21, 0x12]), config) == bytes([0x01, 0x01, 0x02])


def test_keystream_key_object():
    config = configuration_from_dict({"output_length": 8, "cipher_kind": "keystream", "key_material": {"seed": "0x1234", "generator": "xorshift", "word_size": 4}})
    assert config.key_material == KeystreamKey(0x1234, KeystreamGenerator.XORSHIFT, word_size=4)


def test_scalar_key_material():
    config = configuration_from_dict({"output_length": 1, "cipher_kind": "rotate", "key_material": 3})
    assert config.key_material.key == 3


def test_preset_args():
    config = configuration_from_dict({"preset": "xor_table", "output_length": 3, "preset_args": {"table": "1020"}})
    assert config.cipher_kind is CipherKind.STATIC_TABLE
    assert config.key_material == b"\x10\x20"
    rotated = configuration_from_dict({"preset": "rotate", "output_length": 1, "preset_args": {"key": "1", "direction": "left"}})
    assert rotated.key_material.direction is RotateDirection.LEFT


def test_frequency_table_preset_args():
    config = configuration_from_dict({"preset": "frequency_huffman", "output_length": 2, "preset_args": {"frequency_table": [3, 1, None], "delta": True}})
    assert config.frequency_table == (3, 1, None)
    assert config.huffman_delta


def test_output_length_fallback():
    assert configuration_from_dict({"preset": "zlc2"}, output_length=9).output_length == 9
    assert configuration_from_dict({"preset": "zlc2", "output_length": 4}, output_length=9).output_length == 4


@pytest.mark.parametrize(
    "data, key",
    [
        ({"output_length": 1, "window": 4}, "window"),
        ({"output_length": 1, "bit_order": "middle"}, "bit_order"),
        ({"output_length": "many"}, "output_length"),
        ({"dictionary_size": 16}, "output_length"),
        ({"preset": "lzw", "output_length": 1}, "preset"),
        ({"output_length": 1, "key_material": "00"}, "key_material"),
        ({"output_length": 1, "cipher_kind": "static_table", "key_material": "zz"}, "key_material"),
        ({"preset": "lzss", "output_length": 1, "preset_args": {"window": 1}}, "preset_args"),
        ({"output_length": 1, "token_shape": {"rules": [{"kind": "huffman", "code": 0}]}}, "rule.kind"),
    ],
)
def test_errors_name_the_key(data, key):
    with pytest.raises(ConfigurationMismatchException) as excinfo:
        configuration_from_dict(data)
    assert key in excinfo.value.message


def _backref(**changes):
    rule = {"kind": "backref", "code": 0, "code_bits": 8, "offset": {"shift": 4, "width": 4}, "length": {"width": 4}}
    rule.update(changes)
    return {"output_length": 4, "token_shape": {"rules": [rule]}}


@pytest.mark.parametrize(
    "data, key",
    [
        ({"output_length": 4, "token_shape": {"rules": [{"kind": "literal"}]}}, "rule.code"),
        (_backref(code_bits=None), "rule.code_bits"),
        (_backref(offset=None), "rule.offset"),
        (_backref(length=None), "rule.length"),
        (_backref(offset={"shift": 4}), "rule.offset.width"),
        (_backref(length={"pieces": [[1]]}), "rule.length.pieces"),
        (_backref(length=[0, 4]), "rule.length"),
        ({"output_length": 4, "token_shape": 5}, "token_shape"),
        ({"output_length": 4, "token_shape": {"rules": 5}}, "token_shape.rules"),
        ({"output_length": 4, "token_shape": {"rules": ["literal"]}}, "rule"),
        ({"output_length": 1, "cipher_kind": "keystream", "key_material": {"generator": "msvc"}}, "key_material.seed"),
        ({"output_length": 1, "cipher_kind": "rotate", "key_material": {"step": 1}}, "key_material.key"),
        ({"output_length": 1, "cipher_kind": "feedback", "key_material": {"update": "affine"}}, "key_material.key"),
        ({"output_length": 1, "frequency_table": 5}, "frequency_table"),
        ({"preset": ["lzss"], "output_length": 1}, "preset"),
        ({"preset": "lzss", "output_length": 1, "preset_args": [1]}, "preset_args"),
    ],
)
def test_missing_or_malformed_entries(data, key):
    with pytest.raises(ConfigurationMismatchException) as excinfo:
        configuration_from_dict(data)
    assert key in excinfo.value.message


def test_top_level_must_be_an_object():
    with pytest.raises(ConfigurationMismatchException):
        configuration_from_dict([1, 2])


def test_load_configuration(tmp_path):
    path = tmp_path / "nibble.json"
    path.write_text(json.dumps(NIBBLE), encoding="utf-8")
    config = load_configuration(path)
    assert config == configuration_from_dict(NIBBLE)


def test_load_configuration_bad_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationMismatchException):
        load_configuration(path)
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigurationMismatchException):
        load_configuration(path)


def test_load_configuration_missing_file(tmp_path):
    with pytest.raises(ConfigurationMismatchException) as excinfo:
        load_configuration(tmp_path / "absent.json")
    assert "absent.json" in excinfo.value.message
