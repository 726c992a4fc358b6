from .control_decoder import ControlDecoder
from .huffman import FrequencyTable, HuffmanBuilder, HuffmanDecoder, HuffmanNode
from .ring_dictionary import BackReferencePolicy, RingDictionary
from .token_shape import BackReferenceRule, ControlKind, Field, LiteralRule, Rule, RunFillRule, TokenShape
from .tokens import BackReference, Literal, RunFill, Token

__all__ = [
    "BackReference",
    "BackReferencePolicy",
    "BackReferenceRule",
    "ControlDecoder",
    "ControlKind",
    "Field",
    "FrequencyTable",
    "HuffmanBuilder",
    "HuffmanDecoder",
    "HuffmanNode",
    "Literal",
    "LiteralRule",
    "RingDictionary",
    "Rule",
    "RunFill",
    "RunFillRule",
    "Token",
    "TokenShape",
]
