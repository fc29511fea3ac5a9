"""
Delta arrays and the FlexDelta integer codec.

An oplist is turned into a delta array: each op becomes one non-negative
integer relative to the previous op, so runs of equal or close codepoints
cost little. Each delta is then written as a FlexDelta token, a self
delimiting base-36 number of 2 to 6 symbols whose length is given by its
leading symbol.

    length  values           leading symbols
    2       0 .. 431         a .. l
    3       432 .. 7775      m .. r
    4       7776 .. 279935   s .. x
    5       .. 10077695      y, z, 0 .. 3
    6       .. 362797055     4 .. 9
"""
from typing import List, Tuple

from bitsy_errors import DecodeError, fault

FLEX_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
FLEX_MAX = 362797055
EMPTY_MARKER = "aa"
MAX_SCALAR = 0x10FFFF

_symbol_value = {ch: i for i, ch in enumerate(FLEX_ALPHABET)}

# (token length, first leading symbol index, smallest value of the class)
_length_classes = (
    (2, 0, 0),
    (3, 12, 432),
    (4, 18, 7776),
    (5, 24, 279936),
    (6, 30, 10077696),
)


def _class_for_value(value: int) -> Tuple[int, int, int]:
    for length_class in reversed(_length_classes):
        if value >= length_class[2]:
            return length_class
    fault("_class_for_value", f"negative value {value}")


def _class_for_symbol(index: int) -> Tuple[int, int, int]:
    for length_class in reversed(_length_classes):
        if index >= length_class[1]:
            return length_class
    fault("_class_for_symbol", f"negative index {index}")


def _symbol_index(ch: str) -> int:
    index = _symbol_value.get(ch.lower())
    if index is None:
        raise DecodeError(f"Invalid FlexDelta symbol {ch!r}")
    return index


def encode_flex(value: int) -> str:
    """
    Encodes an integer in [0, 362797055] as a FlexDelta token.

    :raises ValueError: if the value is out of range
    """
    if not 0 <= value <= FLEX_MAX:
        raise ValueError(f"Value {value} out of FlexDelta range")
    length, base, _ = _class_for_value(value)
    scale = 36 ** (length - 1)
    lead, rest = divmod(value, scale)
    digits = []
    for _ in range(length - 1):
        rest, digit = divmod(rest, 36)
        digits.append(FLEX_ALPHABET[digit])
    return FLEX_ALPHABET[base + lead] + "".join(reversed(digits))


def token_length(lead: str) -> int:
    return _class_for_symbol(_symbol_index(lead))[0]


def decode_flex(token: str) -> int:
    """
    Decodes one FlexDelta token (case-insensitive).

    :raises DecodeError: invalid symbol, wrong length or overlong encoding
    """
    if not token:
        raise DecodeError("Empty FlexDelta token")
    lead = _symbol_index(token[0])
    length, base, lower_bound = _class_for_symbol(lead)
    if len(token) != length:
        raise DecodeError(f"FlexDelta token {token!r} should have {length} symbols")
    value = lead - base
    for ch in token[1:]:
        value = value * 36 + _symbol_index(ch)
    if value < lower_bound:
        raise DecodeError(f"Overlong FlexDelta token {token!r}")
    return value


def split_flex(text: str) -> List[str]:
    tokens = []
    i = 0
    while i < len(text):
        length = token_length(text[i])
        if i + length > len(text):
            raise DecodeError(f"Truncated FlexDelta token {text[i:]!r}")
        tokens.append(text[i:i + length])
        i += length
    return tokens


def encode_deltas(deltas: List[int]) -> str:
    if not deltas:
        return EMPTY_MARKER
    return "".join(encode_flex(delta) for delta in deltas)


def decode_deltas(text: str) -> List[int]:
    if not text:
        raise DecodeError("Missing delta suffix")
    if text.lower() == EMPTY_MARKER:
        return []
    return [decode_flex(token) for token in split_flex(text)]


def oplist_to_deltas(oplist: List[Tuple[int, int]], invariant_length: int) -> List[int]:
    """
    Re-encodes an oplist as a delta array.

    Each op ``(p, n)`` is numbered within the space of all (position, codepoint)
    pairs for the current string length ``ls``, as ``n * (ls + 1) + p``, and
    stored relative to the previous op.
    """
    last_position, last_codepoint, length = 0, 1, invariant_length
    deltas = []
    for position, codepoint in oplist:
        if not 0 <= position <= length:
            fault("oplist_to_deltas", f"position {position} outside 0..{length}")
        delta = (codepoint - last_codepoint) * (length + 1) - last_position + position
        if delta < 0:
            fault("oplist_to_deltas", "oplist is not sorted")
        deltas.append(delta)
        last_position, last_codepoint, length = position, codepoint, length + 1
    return deltas


def deltas_to_oplist(deltas: List[int], invariant_length: int) -> List[Tuple[int, int]]:
    last_position, last_codepoint, length = 0, 1, invariant_length
    oplist = []
    for delta in deltas:
        total = last_position + delta
        step, position = divmod(total, length + 1)
        codepoint = last_codepoint + step
        if codepoint > MAX_SCALAR:
            raise DecodeError("Delta decodes beyond U+10FFFF")
        oplist.append((position, codepoint))
        last_position, last_codepoint, length = position, codepoint, length + 1
    return oplist
