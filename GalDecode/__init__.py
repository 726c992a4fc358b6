from .Config import Configuration, HuffmanSource, Leniency, PRESETS, configuration_from_dict, load_configuration
from .decode_engine import DecodeEngine, StopReason, decode
from .Exceptions import (
    ConfigurationMismatchException,
    DecodeException,
    InvalidBackReferenceException,
    MalformedFrequencyTableException,
    UnexpectedEndOfInputException,
)
from .IO import BitCursor, BitOrder, ByteSource

__version__ = "0.1.0"

__all__ = [
    "BitCursor",
    "BitOrder",
    "ByteSource",
    "Configuration",
    "ConfigurationMismatchException",
    "DecodeEngine",
    "DecodeException",
    "HuffmanSource",
    "InvalidBackReferenceException",
    "Leniency",
    "MalformedFrequencyTableException",
    "PRESETS",
    "StopReason",
    "UnexpectedEndOfInputException",
    "configuration_from_dict",
    "decode",
    "load_configuration",
]
