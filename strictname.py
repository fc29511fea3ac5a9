from typing import Optional

from bitsy_errors import fault

LENGTH_LIMIT = 255

DEVICE_STEMS = frozenset({"aux", "con", "nul", "prn", "com#", "lpt#"})

SURROGATE_MIN = 0xD800
SURROGATE_MAX = 0xDFFF
HIGH_SURROGATE_MAX = 0xDBFF
LOW_SURROGATE_MIN = 0xDC00

_invariant = frozenset("abcdefghijklmnopqrstuvwxyz"
                       "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
                       "0123456789-_.")


def is_invariant(ch: str) -> bool:
    """ASCII letter, digit, hyphen, underscore or dot."""
    return ch in _invariant


def is_ascii_letter(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def is_almost_strict(name: str) -> bool:
    """
    Checks every StrictName rule except the reserved device stems.

    :param name: string to check
    :return: True for StrictNames and for names that are StrictNames apart from a device stem
    """
    if name in (".", ".."):
        return True

    if not 1 <= len(name) <= LENGTH_LIMIT:
        return False

    last = len(name) - 1
    for i, ch in enumerate(name):
        if ch not in _invariant:
            return False
        if i == 0 and ch == ".":
            return False
        if i == last and ch in "-.":
            return False
        if ch == "-" and ((i > 0 and name[i - 1] == ".") or (i < last and name[i + 1] == ".")):
            return False
        if ch == "." and i < last and name[i + 1] == ".":
            return False

    return True


def device_stem(name: str) -> Optional[str]:
    """
    Returns the reserved device stem (``aux``, ``com#``, ...) the name starts with, or None.

    The stem is the part before the first dot; a four character stem ending in a
    digit is compared with the digit replaced by ``#``.
    """
    candidate = name.split(".", 1)[0]
    if len(candidate) == 4:
        if not "0" <= candidate[3] <= "9":
            return None
        candidate = candidate[:3] + "#"
    elif len(candidate) != 3:
        return None

    candidate = candidate.lower()
    return candidate if candidate in DEVICE_STEMS else None


def is_strict_name(name: str) -> bool:
    return is_almost_strict(name) and device_stem(name) is None


def utf16_length(text: str) -> int:
    """Length in UTF-16 code units; scalars above U+FFFF take two units."""
    return sum(2 if ord(ch) > 0xFFFF else 1 for ch in text)


def _is_high(code: int) -> bool:
    return SURROGATE_MIN <= code <= HIGH_SURROGATE_MAX


def _is_low(code: int) -> bool:
    return LOW_SURROGATE_MIN <= code <= SURROGATE_MAX


def find_unpaired_surrogate(text: str) -> int:
    """
    Finds a surrogate half that is not part of a high+low pair.

    :return: index of the offending codepoint, -1 if all surrogates are paired
    """
    i = 0
    while i < len(text):
        code = ord(text[i])
        if _is_high(code):
            if i + 1 >= len(text) or not _is_low(ord(text[i + 1])):
                return i
            i += 2
            continue
        if _is_low(code):
            return i
        i += 1
    return -1


def join_surrogates(text: str) -> str:
    """Joins well-formed surrogate pairs into the scalar values they stand for."""
    if not any(SURROGATE_MIN <= ord(ch) <= SURROGATE_MAX for ch in text):
        return text
    return text.encode("utf-16-le", "surrogatepass").decode("utf-16-le")


def count_codepoints(text: str) -> int:
    """
    Counts Unicode scalar values; a high surrogate directly followed by a low
    surrogate counts once. The text must already be validated, an unpaired
    surrogate here is a fault.
    """
    count = 0
    i = 0
    while i < len(text):
        code = ord(text[i])
        if _is_high(code):
            if i + 1 >= len(text) or not _is_low(ord(text[i + 1])):
                fault("count_codepoints", f"unpaired high surrogate at {i}")
            i += 1
        elif _is_low(code):
            fault("count_codepoints", f"unpaired low surrogate at {i}")
        count += 1
        i += 1
    return count
