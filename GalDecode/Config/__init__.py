from .configuration import Configuration, HuffmanSource, Leniency
from .loader import configuration_from_dict, load_configuration
from .presets import CIPHER_ONLY_PRESETS, PRESETS

__all__ = [
    "CIPHER_ONLY_PRESETS",
    "Configuration",
    "HuffmanSource",
    "Leniency",
    "PRESETS",
    "configuration_from_dict",
    "load_configuration",
]
