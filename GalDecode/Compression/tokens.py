from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Literal:
    value: int


@dataclass(frozen=True)
class BackReference:
    offset: int
    length: int
    # offset is a window position instead of a distance behind the cursor
    absolute: bool = False


@dataclass(frozen=True)
class RunFill:
    value: int
    count: int


Token = Union[Literal, BackReference, RunFill]

__all__ = ["BackReference", "Literal", "RunFill", "Token"]
