from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Sequence, Union

import numpy as np

from ..Exceptions import ConfigurationMismatchException
from .keystream import MASK32, KeystreamGenerator, create_generator


class CipherKind(Enum):
    STATIC_TABLE = 0
    KEYSTREAM = 1
    ROTATE = 2
    FEEDBACK = 3


class CipherOrder(Enum):
    BEFORE = 0
    AFTER = 1


class Combine(Enum):
    XOR = 0
    SUB = 1


class RotateDirection(Enum):
    RIGHT = 0
    LEFT = 1


class FeedbackUpdate(Enum):
    ADD_PLAIN = 0
    XOR_PLAIN = 1
    AFFINE = 2
    SHIFT_XOR = 3
    COUNTDOWN = 4


@dataclass(frozen=True)
class KeystreamKey:
    seed: int
    generator: KeystreamGenerator = KeystreamGenerator.MSVC
    magic: int = 0
    combine: Combine = Combine.XOR
    word_size: int = 1
    multiplier: int = 0x343FD
    increment: int = 0x269EC3


@dataclass(frozen=True)
class RotateKey:
    key: int
    step: int = 0
    direction: RotateDirection = RotateDirection.RIGHT


@dataclass(frozen=True)
class FeedbackKey:
    key: int
    update: FeedbackUpdate = FeedbackUpdate.ADD_PLAIN
    combine: Combine = Combine.SUB
    rotate: int = 0
    rotate_direction: RotateDirection = RotateDirection.RIGHT
    multiplier: int = 1
    increment: int = 0
    key_bits: int = 8
    # COUNTDOWN starts from this length, or from the first buffer's length when unset
    length: Optional[int] = None


KeyMaterial = Union[bytes, KeystreamKey, RotateKey, FeedbackKey]


@dataclass
class CipherState:
    key: int = 0
    rotation: int = 0
    history: int = 0
    position: int = 0
    remaining: Optional[int] = None
    generator: Any = field(default=None, repr=False)


def rotate_byte_right(b: int, shift: int) -> int:
    shift &= 7
    return ((b >> shift) | (b << (8 - shift))) & 0xFF


def rotate_byte_left(b: int, shift: int) -> int:
    shift &= 7
    return ((b << shift) | (b >> (8 - shift))) & 0xFF


_KEY_TYPES = {
    CipherKind.KEYSTREAM: KeystreamKey,
    CipherKind.ROTATE: RotateKey,
    CipherKind.FEEDBACK: FeedbackKey,
}


def _check_key(kind: CipherKind, key_material) -> KeyMaterial:
    if kind is CipherKind.STATIC_TABLE:
        if isinstance(key_material, (bytes, bytearray, memoryview)):
            table = bytes(key_material)
        elif isinstance(key_material, Sequence) and not isinstance(key_material, str):
            if any(not isinstance(v, int) or not 0 <= v <= 0xFF for v in key_material):
                raise ConfigurationMismatchException("Static cipher table must hold byte values")
            table = bytes(key_material)
        else:
            raise ConfigurationMismatchException(f"Static cipher table must be bytes, got {type(key_material).__name__}")
        if not table:
            raise ConfigurationMismatchException("Static cipher table is empty")
        return table

    expected = _KEY_TYPES[kind]
    if not isinstance(key_material, expected):
        raise ConfigurationMismatchException(f"{kind.name} cipher needs {expected.__name__} key material, got {type(key_material).__name__}")
    if isinstance(key_material, KeystreamKey) and key_material.word_size not in (1, 4):
        raise ConfigurationMismatchException(f"Keystream word size must be 1 or 4, got {key_material.word_size}")
    if isinstance(key_material, FeedbackKey) and key_material.key_bits not in (8, 32):
        raise ConfigurationMismatchException(f"Feedback key width must be 8 or 32 bits, got {key_material.key_bits}")
    return key_material


class StreamCipher:
    """Keyed byte transform with its own evolving state.

    One instance serves one decode call. Feeding a buffer in several chunks
    gives the same result as feeding it at once, except that word keystreams
    need every chunk but the last to be a whole number of words: each call
    leaves its own partial tail word untouched.
    """

    def __init__(self, kind: CipherKind, key_material):
        self.kind = kind
        self.key_material = _check_key(kind, key_material)
        self.state = self._initial_state()

    @classmethod
    def new(cls, kind: CipherKind, key_material) -> "StreamCipher":
        return cls(kind, key_material)

    def _initial_state(self) -> CipherState:
        key = self.key_material
        if isinstance(key, KeystreamKey):
            return CipherState(key=key.seed, generator=create_generator(key.generator, key.seed, key.magic, key.multiplier, key.increment))
        if isinstance(key, RotateKey):
            return CipherState(key=key.key, rotation=key.key & 7)
        if isinstance(key, FeedbackKey):
            mask = 0xFF if key.key_bits == 8 else MASK32
            return CipherState(key=key.key & mask, rotation=key.rotate, remaining=key.length)
        return CipherState()

    @property
    def self_inverse(self) -> bool:
        if self.kind is CipherKind.STATIC_TABLE:
            return True
        if self.kind is CipherKind.KEYSTREAM:
            return self.key_material.combine is Combine.XOR
        if self.kind is CipherKind.ROTATE:
            # rotating a byte by 0 or 4 undoes itself
            return self.key_material.step % 4 == 0 and self.key_material.key % 4 == 0
        return False

    def inverse(self) -> "StreamCipher":
        if self.kind is CipherKind.ROTATE:
            key = self.key_material
            direction = RotateDirection.LEFT if key.direction is RotateDirection.RIGHT else RotateDirection.RIGHT
            return StreamCipher(self.kind, RotateKey(key.key, key.step, direction))
        if self.self_inverse:
            return StreamCipher(self.kind, self.key_material)
        raise ConfigurationMismatchException(f"{self.kind.name} cipher with {self.key_material!r} has no inverse transform")

    def transform(self, buffer) -> bytearray:
        if not isinstance(buffer, bytearray):
            buffer = bytearray(buffer)
        if not buffer:
            return buffer
        if self.kind is CipherKind.STATIC_TABLE:
            self._xor_table(buffer)
        elif self.kind is CipherKind.KEYSTREAM:
            self._keystream(buffer)
        elif self.kind is CipherKind.ROTATE:
            self._rotate(buffer)
        else:
            self._feedback(buffer)
        self.state.position += len(buffer)
        return buffer

    def _xor_table(self, buffer: bytearray) -> None:
        data = np.frombuffer(buffer, dtype=np.uint8)
        table = np.frombuffer(self.key_material, dtype=np.uint8)
        index = (np.arange(len(data), dtype=np.int64) + self.state.position) % len(table)
        data ^= table[index]

    def _rotate(self, buffer: bytearray) -> None:
        key = self.key_material
        data = np.frombuffer(buffer, dtype=np.uint8)
        positions = np.arange(len(data), dtype=np.int64) + self.state.position
        shift = ((key.key + key.step * positions) & 7).astype(np.uint16)
        wide = data.astype(np.uint16)
        if key.direction is RotateDirection.RIGHT:
            rotated = (wide >> shift) | (wide << (8 - shift))
        else:
            rotated = (wide << shift) | (wide >> (8 - shift))
        data[:] = (rotated & 0xFF).astype(np.uint8)
        self.state.rotation = int(shift[-1])

    def _keystream(self, buffer: bytearray) -> None:
        key = self.key_material
        generator = self.state.generator
        if key.word_size == 4:
            for off in range(0, len(buffer) - 3, 4):
                word = int.from_bytes(buffer[off : off + 4], "little")
                k = generator.next_word()
                word = (word - k) & MASK32 if key.combine is Combine.SUB else word ^ k
                buffer[off : off + 4] = word.to_bytes(4, "little")
                self.state.key = k
            return
        for i in range(len(buffer)):
            k = generator.next_word() & 0xFF
            if key.combine is Combine.SUB:
                buffer[i] = (buffer[i] - k) & 0xFF
            else:
                buffer[i] ^= k
            self.state.key = k

    def _feedback(self, buffer: bytearray) -> None:
        key = self.key_material
        state = self.state
        mask = 0xFF if key.key_bits == 8 else MASK32
        if state.remaining is None:
            state.remaining = len(buffer)
        rotate = rotate_byte_right if key.rotate_direction is RotateDirection.RIGHT else rotate_byte_left
        for i in range(len(buffer)):
            v = rotate(buffer[i], key.rotate) if key.rotate else buffer[i]
            if key.combine is Combine.SUB:
                plain = (v - state.key) & 0xFF
            else:
                plain = v ^ (state.key & 0xFF)
            buffer[i] = plain

            if key.update is FeedbackUpdate.ADD_PLAIN:
                state.key = (state.key + plain) & mask
            elif key.update is FeedbackUpdate.XOR_PLAIN:
                state.key = (state.key ^ plain) & mask
            elif key.update is FeedbackUpdate.AFFINE:
                state.key = (key.multiplier * state.key + key.increment) & mask
            elif key.update is FeedbackUpdate.SHIFT_XOR:
                state.key = (plain ^ ((state.key << 9) | ((state.key >> 23) & 0x1F0))) & mask
            else:
                state.key = (state.key + state.remaining) & mask
                state.remaining -= 1
            state.history = plain


__all__ = [
    "CipherKind",
    "CipherOrder",
    "CipherState",
    "Combine",
    "FeedbackKey",
    "FeedbackUpdate",
    "KeyMaterial",
    "KeystreamKey",
    "RotateDirection",
    "RotateKey",
    "StreamCipher",
    "rotate_byte_left",
    "rotate_byte_right",
]
