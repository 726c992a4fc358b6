class DecodeException(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnexpectedEndOfInputException(DecodeException):
    def __init__(self, produced: int, expected: int):
        message = f"Input ran out after {produced} of {expected} bytes were produced!"
        super().__init__(message)
        self.produced = produced
        self.expected = expected


class InvalidBackReferenceException(DecodeException):
    def __init__(self, offset: int, dictionary_size: int):
        message = f"Back-reference {offset} is outside the dictionary window! (size 0x{dictionary_size:X})"
        super().__init__(message)
        self.offset = offset
        self.dictionary_size = dictionary_size


class ConfigurationMismatchException(DecodeException):
    def __init__(self, message: str):
        super().__init__(message)


class MalformedFrequencyTableException(DecodeException):
    def __init__(self, message: str):
        super().__init__(f"Unable to build a Huffman tree. {message}")


__all__ = [
    "DecodeException",
    "UnexpectedEndOfInputException",
    "InvalidBackReferenceException",
    "ConfigurationMismatchException",
    "MalformedFrequencyTableException",
]
