from .keystream import BgiRandom, KeystreamGenerator, MsvcRandom, XorShiftRandom, create_generator
from .stream_cipher import (
    CipherKind,
    CipherOrder,
    CipherState,
    Combine,
    FeedbackKey,
    FeedbackUpdate,
    KeyMaterial,
    KeystreamKey,
    RotateDirection,
    RotateKey,
    StreamCipher,
    rotate_byte_left,
    rotate_byte_right,
)

__all__ = [
    "BgiRandom",
    "CipherKind",
    "CipherOrder",
    "CipherState",
    "Combine",
    "FeedbackKey",
    "FeedbackUpdate",
    "KeyMaterial",
    "KeystreamGenerator",
    "KeystreamKey",
    "MsvcRandom",
    "RotateDirection",
    "RotateKey",
    "StreamCipher",
    "XorShiftRandom",
    "create_generator",
    "rotate_byte_left",
    "rotate_byte_right",
]
