from enum import Enum

MASK32 = 0xFFFFFFFF


def u32(x: int) -> int:
    return x & MASK32


class KeystreamGenerator(Enum):
    MSVC = 0
    BGI = 1
    XORSHIFT = 2


class MsvcRandom:
    """MSVC rand(): 32-bit LCG, bits 16..30 of the state are the output."""

    def __init__(self, seed: int, multiplier: int = 0x343FD, increment: int = 0x269EC3):
        self._state = u32(seed)
        self._multiplier = multiplier
        self._increment = increment

    def next_word(self) -> int:
        self._state = u32(self._state * self._multiplier + self._increment)
        return (self._state >> 16) & 0x7FFF


class BgiRandom:
    def __init__(self, seed: int, magic: int):
        self._key = u32(seed)
        self._magic = (magic & 0xFFFF) << 16

    def next_word(self) -> int:
        v0 = 20021 * (self._key & 0xFFFF)
        v1 = self._magic | (self._key >> 16)
        v1 = u32(v1 * 20021 + self._key * 346)
        v1 = (v1 + (v0 >> 16)) & 0xFFFF
        self._key = u32((v1 << 16) + (v0 & 0xFFFF) + 1)
        return v1


class XorShiftRandom:
    def __init__(self, seed: int):
        self._seed = u32(seed)

    def next_word(self) -> int:
        s = u32(self._seed ^ 0x65AC9365)
        s = u32(s ^ u32(((s >> 1) ^ s) >> 3) ^ u32((u32(s << 1) ^ s) << 3))
        self._seed = s
        return s


def create_generator(kind: KeystreamGenerator, seed: int, magic: int = 0, multiplier: int = 0x343FD, increment: int = 0x269EC3):
    if kind is KeystreamGenerator.MSVC:
        return MsvcRandom(seed, multiplier, increment)
    if kind is KeystreamGenerator.BGI:
        return BgiRandom(seed, magic)
    if kind is KeystreamGenerator.XORSHIFT:
        return XorShiftRandom(seed)
    raise ValueError(f"Unknown keystream generator {kind}")


__all__ = ["BgiRandom", "KeystreamGenerator", "MASK32", "MsvcRandom", "XorShiftRandom", "create_generator", "u32"]
