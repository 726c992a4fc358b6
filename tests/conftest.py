import pytest


def _pack_bits(bits: str) -> bytes:
    """Packs a string of '0'/'1' most significant bit first, zero padded."""
    bits = bits.replace(" ", "")
    bits += "0" * (-len(bits) % 8)
    return bytes(int(bits[i : i + 8], 2) for i in range(0, len(bits), 8))


@pytest.fixture
def pack_bits():
    return _pack_bits
