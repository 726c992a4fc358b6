import logging
from enum import Enum
from typing import Optional, Tuple, Union

from .Cipher import CipherOrder, StreamCipher
from .Compression import BackReference, ControlDecoder, HuffmanBuilder, HuffmanDecoder, Literal, RingDictionary
from .Config import Configuration, HuffmanSource
from .Exceptions import ConfigurationMismatchException, DecodeException, UnexpectedEndOfInputException
from .IO import BitCursor, ByteSource

logger = logging.getLogger(__name__)


class StopReason(Enum):
    COMPLETE = "output full"
    EXHAUSTED = "input exhausted"
    END_MARKER = "end marker"


class DecodeEngine:
    """Runs one Configuration over one byte range.

    The engine holds no state between calls. The ring dictionary, the cipher
    state and any Huffman tree are created inside decode() and dropped when
    it returns, so one engine may serve several threads at once.
    """

    def __init__(self, config: Configuration):
        config.validate()
        self.config = config

    def decode(self, source) -> bytes:
        source = ByteSource.wrap(source)
        try:
            return self._decode(source)
        except (IndexError, ValueError, EOFError) as e:
            raise DecodeException(f"Malformed input: {e}") from e

    def _decode(self, source: ByteSource) -> bytes:
        config = self.config
        logger.debug(
            "Decoding %d bytes into %d (shape=%s, huffman=%s, cipher=%s/%s)",
            len(source),
            config.output_length,
            "yes" if config.token_shape is not None else "no",
            config.huffman_source.name,
            config.cipher_kind.name if config.cipher_kind is not None else "none",
            config.cipher_order.name,
        )

        cipher = StreamCipher(config.cipher_kind, config.key_material) if config.cipher_kind is not None else None
        if cipher is not None and config.cipher_order is CipherOrder.BEFORE:
            source = ByteSource(cipher.transform(source.read_all()))

        if config.token_shape is not None:
            out, reason = self._unpack_tokens(source)
        elif config.huffman_source is not HuffmanSource.NONE:
            out, reason = self._unpack_symbols(source)
        else:
            out = bytearray(source.read(config.output_length))
            reason = StopReason.COMPLETE if len(out) == config.output_length else StopReason.EXHAUSTED

        self._check_stop(out, reason)

        if cipher is not None and config.cipher_order is CipherOrder.AFTER:
            cipher.transform(out)
        return bytes(out)

    def _check_stop(self, out: bytearray, reason: StopReason) -> None:
        expected = self.config.output_length
        logger.debug("Stopped on %s after %d of %d bytes", reason.value, len(out), expected)
        if reason is StopReason.COMPLETE:
            return
        if self.config.strict:
            raise UnexpectedEndOfInputException(len(out), expected)
        logger.warning("Input ended on %s after %d of %d bytes", reason.value, len(out), expected)

    def _symbol_decoder(self, bits: BitCursor) -> Optional[HuffmanDecoder]:
        config = self.config
        if config.huffman_source is HuffmanSource.FREQUENCY:
            root = HuffmanBuilder.build(config.frequency_table)
        elif config.huffman_source is HuffmanSource.SERIALIZED:
            root = HuffmanBuilder.read_serialized(bits, config.serialized_symbol_bits)
            if root is None:
                return None
        else:
            raise ConfigurationMismatchException("Huffman symbols requested but no Huffman source is configured")

        leaves, internal = HuffmanBuilder.count_nodes(root)
        logger.debug("Huffman tree ready: %d leaves, %d internal nodes", leaves, internal)
        delta_alphabet = config.huffman_alphabet if config.huffman_delta else None
        return HuffmanDecoder(root, config.huffman_one_is_right, delta_alphabet)

    def _unpack_symbols(self, source: ByteSource) -> Tuple[bytearray, StopReason]:
        bits = BitCursor(source, self.config.bit_order)
        out = bytearray()
        decoder = self._symbol_decoder(bits)
        if decoder is None:
            return out, StopReason.EXHAUSTED

        while len(out) < self.config.output_length:
            symbol = decoder.decode_symbol(bits)
            if symbol is None:
                return out, StopReason.EXHAUSTED
            out.append(_byte_value(symbol))
        return out, StopReason.COMPLETE

    def _unpack_tokens(self, source: ByteSource) -> Tuple[bytearray, StopReason]:
        config = self.config
        shape = config.token_shape
        bits = BitCursor(source, config.bit_order)
        ring = RingDictionary(config.dictionary_size, config.initial_fill_byte, config.initial_cursor, config.backref_policy)
        out = bytearray()

        symbols = None
        if shape.uses_huffman():
            symbols = self._symbol_decoder(bits)
            if symbols is None:
                return out, StopReason.EXHAUSTED
        controls = ControlDecoder(symbols)

        reason = self._replay_tokens(bits, controls, ring, out)
        if ring.wrapped:
            logger.debug("%d back-references wrapped around the window", ring.wrapped)
        return out, reason

    def _replay_tokens(self, bits: BitCursor, controls: ControlDecoder, ring: RingDictionary, out: bytearray) -> StopReason:
        shape = self.config.token_shape
        limit = self.config.output_length
        while len(out) < limit:
            token = controls.next_token(bits, shape)
            if token is None:
                return StopReason.END_MARKER if controls.end_marker_seen else StopReason.EXHAUSTED

            room = limit - len(out)
            if isinstance(token, Literal):
                value = _byte_value(token.value)
                ring.push(value)
                out.append(value)
            elif isinstance(token, BackReference):
                length = max(0, min(token.length, room))
                if token.absolute:
                    out += ring.copy_from(token.offset, length)
                else:
                    out += ring.copy_back(token.offset, length)
            else:
                run = bytes([token.value & 0xFF]) * max(0, min(token.count, room))
                ring.extend(run)
                out += run
        return StopReason.COMPLETE


def _byte_value(symbol: int) -> int:
    if not 0 <= symbol <= 0xFF:
        raise ConfigurationMismatchException(f"Decoded literal {symbol} does not fit in a byte")
    return symbol


def decode(source: Union[ByteSource, bytes, bytearray, memoryview], config: Configuration) -> bytes:
    return DecodeEngine(config).decode(source)


__all__ = ["DecodeEngine", "StopReason", "decode"]
