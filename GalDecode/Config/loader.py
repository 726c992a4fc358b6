import json
from dataclasses import fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Type, Union

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
from ..Compression import BackReferencePolicy, BackReferenceRule, ControlKind, Field, LiteralRule, RunFillRule, TokenShape
from ..Exceptions import ConfigurationMismatchException
from ..IO import BitOrder
from .configuration import Configuration, HuffmanSource, Leniency
from .presets import PRESETS

_ENUM_FIELDS: Dict[str, Type[Enum]] = {
    "bit_order": BitOrder,
    "cipher_kind": CipherKind,
    "cipher_order": CipherOrder,
    "leniency": Leniency,
    "backref_policy": BackReferencePolicy,
    "huffman_source": HuffmanSource,
}

_INT_FIELDS = {"output_length", "dictionary_size", "initial_fill_byte", "initial_cursor", "serialized_symbol_bits"}
_BOOL_FIELDS = {"huffman_delta", "huffman_one_is_right"}


def parse_int(value: Union[int, str], key: str = "value") -> int:
    if isinstance(value, bool):
        raise ConfigurationMismatchException(f"{key}: expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError:
            pass
    raise ConfigurationMismatchException(f"{key}: expected an integer, got {value!r}")


def parse_enum(enum_type: Type[Enum], value: Any, key: str) -> Enum:
    if isinstance(value, enum_type):
        return value
    if isinstance(value, str):
        name = value.strip().upper()
        if name in enum_type.__members__:
            return enum_type[name]
    choices = ", ".join(m.lower() for m in enum_type.__members__)
    raise ConfigurationMismatchException(f"{key}: {value!r} is not one of {choices}")


def _object(value: Any, key: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigurationMismatchException(f"{key}: expected an object, got {type(value).__name__}")
    return value


def _list(value: Any, key: str) -> list:
    if not isinstance(value, list):
        raise ConfigurationMismatchException(f"{key}: expected a list, got {type(value).__name__}")
    return value


def _require(data: Dict[str, Any], name: str, key: str) -> Any:
    if data.get(name) is None:
        raise ConfigurationMismatchException(f"{key}: missing")
    return data[name]


def parse_field(data: Any, key: str) -> Field:
    data = _object(data, key)
    if "pieces" in data:
        pieces = []
        for piece in _list(data["pieces"], f"{key}.pieces"):
            if not isinstance(piece, list) or len(piece) != 2:
                raise ConfigurationMismatchException(f"{key}.pieces: {piece!r} is not a [shift, width] pair")
            pieces.append((parse_int(piece[0], f"{key}.pieces"), parse_int(piece[1], f"{key}.pieces")))
        pieces = tuple(pieces)
    else:
        pieces = ((parse_int(data.get("shift", 0), f"{key}.shift"), parse_int(_require(data, "width", f"{key}.width"), f"{key}.width")),)
    optional = {name: parse_int(data[name], f"{key}.{name}") for name in ("zero_value", "end_marker") if data.get(name) is not None}
    return Field(pieces, bias=parse_int(data.get("bias", 0), f"{key}.bias"), **optional)


def parse_rule(data: Any):
    data = _object(data, "rule")
    kind = str(data.get("kind", "")).lower()
    code = parse_int(_require(data, "code", "rule.code"), "rule.code")
    if kind == "literal":
        return LiteralRule(code, parse_int(data.get("bits", 8), "rule.bits"), bool(data.get("huffman", False)))
    if kind in ("backref", "back_reference"):
        return BackReferenceRule(
            code,
            parse_int(_require(data, "code_bits", "rule.code_bits"), "rule.code_bits"),
            parse_field(_require(data, "offset", "rule.offset"), "rule.offset"),
            parse_field(_require(data, "length", "rule.length"), "rule.length"),
            bool(data.get("absolute", False)),
        )
    if kind in ("runfill", "run_fill"):
        return RunFillRule(
            code,
            parse_int(_require(data, "code_bits", "rule.code_bits"), "rule.code_bits"),
            parse_field(_require(data, "count", "rule.count"), "rule.count"),
            parse_field(_require(data, "value", "rule.value"), "rule.value"),
        )
    raise ConfigurationMismatchException(f"rule.kind: unknown token rule kind {data.get('kind')!r}")


def parse_token_shape(data: Any) -> TokenShape:
    data = _object(data, "token_shape")
    return TokenShape(
        rules=tuple(parse_rule(rule) for rule in _list(data.get("rules", []), "token_shape.rules")),
        control=parse_enum(ControlKind, data.get("control", "word"), "token_shape.control"),
        control_width=parse_int(data.get("control_width", 8), "token_shape.control_width"),
        control_order=parse_enum(BitOrder, data.get("control_order", "lsb"), "token_shape.control_order"),
        code_bits=parse_int(data.get("code_bits", 1), "token_shape.code_bits"),
        literal_alphabet=parse_int(data.get("literal_alphabet", 256), "token_shape.literal_alphabet"),
    )


def parse_key_material(kind: CipherKind, value: Any):
    if kind is CipherKind.STATIC_TABLE:
        if isinstance(value, str):
            try:
                return bytes.fromhex(value)
            except ValueError as e:
                raise ConfigurationMismatchException(f"key_material: {e}") from e
        if isinstance(value, list):
            return bytes(parse_int(v, "key_material") & 0xFF for v in value)
        raise ConfigurationMismatchException("key_material: static table must be a hex string or a list of bytes")

    if not isinstance(value, dict):
        value = {"seed" if kind is CipherKind.KEYSTREAM else "key": value}
    if kind is CipherKind.KEYSTREAM:
        return KeystreamKey(
            seed=parse_int(_require(value, "seed", "key_material.seed"), "key_material.seed"),
            generator=parse_enum(KeystreamGenerator, value.get("generator", "msvc"), "key_material.generator"),
            magic=parse_int(value.get("magic", 0), "key_material.magic"),
            combine=parse_enum(Combine, value.get("combine", "xor"), "key_material.combine"),
            word_size=parse_int(value.get("word_size", 1), "key_material.word_size"),
            multiplier=parse_int(value.get("multiplier", 0x343FD), "key_material.multiplier"),
            increment=parse_int(value.get("increment", 0x269EC3), "key_material.increment"),
        )
    if kind is CipherKind.ROTATE:
        return RotateKey(
            key=parse_int(_require(value, "key", "key_material.key"), "key_material.key"),
            step=parse_int(value.get("step", 0), "key_material.step"),
            direction=parse_enum(RotateDirection, value.get("direction", "right"), "key_material.direction"),
        )
    length = value.get("length")
    return FeedbackKey(
        key=parse_int(_require(value, "key", "key_material.key"), "key_material.key"),
        update=parse_enum(FeedbackUpdate, value.get("update", "add_plain"), "key_material.update"),
        combine=parse_enum(Combine, value.get("combine", "sub"), "key_material.combine"),
        rotate=parse_int(value.get("rotate", 0), "key_material.rotate"),
        rotate_direction=parse_enum(RotateDirection, value.get("rotate_direction", "right"), "key_material.rotate_direction"),
        multiplier=parse_int(value.get("multiplier", 1), "key_material.multiplier"),
        increment=parse_int(value.get("increment", 0), "key_material.increment"),
        key_bits=parse_int(value.get("key_bits", 8), "key_material.key_bits"),
        length=None if length is None else parse_int(length, "key_material.length"),
    )


def _preset_args(data: Dict[str, Any]) -> Dict[str, Any]:
    args = dict(data)
    for key, value in args.items():
        if not isinstance(value, str):
            continue
        if key == "table":
            try:
                args[key] = bytes.fromhex(value)
            except ValueError as e:
                raise ConfigurationMismatchException(f"preset_args.table: {e}") from e
        elif key == "direction":
            args[key] = parse_enum(RotateDirection, value, "preset_args.direction")
        elif key == "leniency":
            args[key] = parse_enum(Leniency, value, "preset_args.leniency")
        else:
            args[key] = parse_int(value, f"preset_args.{key}")
    return args


def configuration_from_dict(data: Dict[str, Any], output_length: Optional[int] = None) -> Configuration:
    data = dict(_object(data, "configuration"))
    known = {f.name for f in fields(Configuration)}
    changes: Dict[str, Any] = {}

    if output_length is not None and "output_length" not in data:
        data["output_length"] = output_length

    for key, value in data.items():
        if key in ("preset", "preset_args", "key_material", "token_shape"):
            continue
        if key not in known:
            raise ConfigurationMismatchException(f"{key}: unknown configuration key")
        if key in _ENUM_FIELDS:
            changes[key] = None if value is None else parse_enum(_ENUM_FIELDS[key], value, key)
        elif key in _INT_FIELDS:
            changes[key] = parse_int(value, key)
        elif key in _BOOL_FIELDS:
            changes[key] = bool(value)
        elif key == "frequency_table":
            changes[key] = None if value is None else tuple(None if v is None else parse_int(v, key) for v in _list(value, key))

    if "token_shape" in data:
        changes["token_shape"] = None if data["token_shape"] is None else parse_token_shape(data["token_shape"])

    if "preset" in data:
        name = data["preset"]
        if not isinstance(name, str) or name not in PRESETS:
            raise ConfigurationMismatchException(f"preset: unknown preset {name!r}")
        if "output_length" not in changes:
            raise ConfigurationMismatchException("output_length: required by every preset")
        preset_args = _preset_args(_object(data.get("preset_args", {}), "preset_args"))
        try:
            config = PRESETS[name](changes.pop("output_length"), **preset_args)
        except (TypeError, ValueError) as e:
            raise ConfigurationMismatchException(f"preset_args: {e}") from e
    else:
        if "output_length" not in changes:
            raise ConfigurationMismatchException("output_length: missing")
        config = Configuration(output_length=changes.pop("output_length"))

    if "key_material" in data:
        kind = changes.get("cipher_kind", config.cipher_kind)
        if kind is None:
            raise ConfigurationMismatchException("key_material: given without a cipher_kind")
        changes["key_material"] = parse_key_material(kind, data["key_material"])

    return config.replace(**changes) if changes else config


def load_configuration(path: Union[str, Path], output_length: Optional[int] = None) -> Configuration:
    try:
        with open(path, encoding="utf-8") as fp:
            data = json.load(fp)
    except json.JSONDecodeError as e:
        raise ConfigurationMismatchException(f"{path}: {e}") from e
    except OSError as e:
        raise ConfigurationMismatchException(f"{path}: {e.strerror}") from e
    if not isinstance(data, dict):
        raise ConfigurationMismatchException(f"{path}: top level must be an object")
    return configuration_from_dict(data, output_length)


__all__ = ["configuration_from_dict", "load_configuration", "parse_int", "parse_key_material", "parse_token_shape"]
