from typing import Dict, List, Optional, Sequence

from ..Exceptions import ConfigurationMismatchException, MalformedFrequencyTableException
from ..IO import BitCursor

FrequencyTable = Sequence[Optional[int]]


class HuffmanNode:
    def __init__(self, symbol: Optional[int] = None, frequency: int = 0, left_node: "Optional[HuffmanNode]" = None, right_node: "Optional[HuffmanNode]" = None):
        self.symbol = symbol
        self.frequency = frequency
        self.left_node = left_node
        self.right_node = right_node

    @property
    def is_leaf(self) -> bool:
        return self.left_node is None and self.right_node is None

    def __repr__(self) -> str:
        if self.is_leaf:
            return f"HuffmanNode(symbol={self.symbol}, frequency={self.frequency})"
        return f"HuffmanNode(frequency={self.frequency})"


def _first_minimum(candidates: List[HuffmanNode]) -> int:
    best = 0
    for i in range(1, len(candidates)):
        if candidates[i].frequency < candidates[best].frequency:
            best = i
    return best


class HuffmanBuilder:
    """Builds decode trees the way the original encoders do.

    Pairing always takes the first minimum in list order and appends the
    merged node to the end of the list. Replacing this with a heap changes
    tie-breaks and produces trees the encoders never emitted.
    """

    @staticmethod
    def build(freq: FrequencyTable) -> HuffmanNode:
        if len(freq) == 0:
            raise ConfigurationMismatchException("Frequency table has no symbols, a Huffman tree would have zero leaves")

        candidates: List[HuffmanNode] = []
        for symbol, frequency in enumerate(freq):
            frequency = 0 if frequency is None else int(frequency)
            if frequency < 0:
                raise MalformedFrequencyTableException(f"Symbol {symbol} has a negative frequency ({frequency}).")
            candidates.append(HuffmanNode(symbol, frequency))

        if not any(node.frequency for node in candidates):
            raise MalformedFrequencyTableException("Every frequency is zero.")

        while len(candidates) > 1:
            left_node = candidates.pop(_first_minimum(candidates))
            right_node = candidates.pop(_first_minimum(candidates))
            candidates.append(HuffmanNode(None, left_node.frequency + right_node.frequency, left_node, right_node))

        return candidates[0]

    @staticmethod
    def read_serialized(bits: BitCursor, symbol_bits: int = 8) -> Optional[HuffmanNode]:
        """Reads a pre-order tree: 1 opens an internal node, 0 is a leaf followed by its symbol."""
        max_leaves = 1 << symbol_bits
        leaves = 0
        node_stack = []

        root = HuffmanNode()
        node_stack.append(root)
        cur_node = root

        while node_stack:
            flag = bits.read_bit()
            if flag is None:
                return None
            if flag:
                node_stack.append(cur_node)
                if cur_node.left_node is None:
                    cur_node.left_node = HuffmanNode()
                    cur_node = cur_node.left_node
                else:
                    cur_node.right_node = HuffmanNode()
                    cur_node = cur_node.right_node
            else:
                symbol = bits.read_bits(symbol_bits)
                if symbol is None:
                    return None
                cur_node.symbol = symbol
                leaves += 1
                if leaves > max_leaves:
                    raise MalformedFrequencyTableException(f"Serialized tree has more than {max_leaves} leaves.")

                cur_node = node_stack.pop()
                # a lone leaf at the root carries its symbol and gets no children
                if cur_node.right_node is None and cur_node.symbol is None:
                    cur_node.right_node = HuffmanNode()
                    cur_node = cur_node.right_node
        return root

    @staticmethod
    def count_nodes(root: HuffmanNode):
        leaves = internal = 0
        pending = [root]
        while pending:
            node = pending.pop()
            if node.is_leaf:
                leaves += 1
                continue
            internal += 1
            pending.extend(n for n in (node.left_node, node.right_node) if n is not None)
        return leaves, internal

    @staticmethod
    def codes(root: HuffmanNode, one_is_right: bool = True) -> Dict[int, str]:
        left_bit, right_bit = ("0", "1") if one_is_right else ("1", "0")
        result: Dict[int, str] = {}
        pending = [(root, "")]
        while pending:
            node, prefix = pending.pop()
            if node.is_leaf:
                result[node.symbol] = prefix
                continue
            if node.left_node is not None:
                pending.append((node.left_node, prefix + left_bit))
            if node.right_node is not None:
                pending.append((node.right_node, prefix + right_bit))
        return result


class HuffmanDecoder:
    def __init__(self, root: HuffmanNode, one_is_right: bool = True, delta_alphabet: Optional[int] = None):
        self._root = root
        self.one_is_right = one_is_right
        self.delta_alphabet = delta_alphabet
        self._previous = 0

    @property
    def root(self) -> HuffmanNode:
        return self._root

    def decode_symbol(self, bits: BitCursor) -> Optional[int]:
        cur_node = self._root
        while not cur_node.is_leaf:
            bit = bits.read_bit()
            if bit is None:
                return None
            if (bit == 1) == self.one_is_right:
                cur_node = cur_node.right_node
            else:
                cur_node = cur_node.left_node
            if cur_node is None:
                raise MalformedFrequencyTableException("Bit sequence leads to a missing branch.")

        symbol = cur_node.symbol
        if self.delta_alphabet:
            symbol = (self._previous + symbol) % self.delta_alphabet
            self._previous = symbol
        return symbol


__all__ = ["FrequencyTable", "HuffmanBuilder", "HuffmanDecoder", "HuffmanNode"]
