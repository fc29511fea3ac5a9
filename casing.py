"""
Casing and dot separators as control codes.

Encoded names are lowercase and may only keep dots that form a valid
extension tail, so before splitting a name into its invariant string the
general encoder replaces ASCII case changes and misplaced dots with control
codes. Control codes are ASCII controls, which can never occur in an encoder
input, so the insertion map picks them up as ordinary removed codepoints.
"""
import logging
from typing import List, Optional

from bitsy_errors import DecodeError
from strictname import is_ascii_letter, is_strict_name

logger = logging.getLogger(__name__)

INVERT_CODE = "\x02"     # next letter only has the other case
SHIFT_CODE = "\x03"      # switch case state
SEPARATOR_CODE = "\x04"  # dot

CONTROL_CODES = frozenset((INVERT_CODE, SHIFT_CODE, SEPARATOR_CODE))


def find_dot_limit(name: str) -> int:
    """
    Index of the leftmost dot from which the rest of the name can stay literal.

    A dot qualifies when ``"a" + name[dot:]`` is a StrictName. A qualifying
    dot at index 0 would leave the invariant string starting with a dot, so
    the limit is moved to 1.

    :return: index of the first literal dot, or ``len(name)`` if there is none
    """
    limit = len(name)
    for i in range(len(name) - 1, -1, -1):
        if name[i] == "." and is_strict_name("a" + name[i:]):
            limit = i
    return 1 if limit == 0 else limit


def _next_letter_case(name: str) -> List[Optional[bool]]:
    # for each index: is the next ASCII letter after it uppercase (None if no letter follows)
    result: List[Optional[bool]] = [None] * len(name)
    following = None
    for i in range(len(name) - 1, -1, -1):
        result[i] = following
        if is_ascii_letter(name[i]):
            following = name[i].isupper()
    return result


def apply_controls(name: str) -> str:
    limit = find_dot_limit(name)
    following = _next_letter_case(name)
    upper = False
    out = []
    for i, ch in enumerate(name):
        if ch == "." and i < limit:
            out.append(SEPARATOR_CODE)
        elif is_ascii_letter(ch):
            if ch.isupper() != upper:
                if following[i] == ch.isupper():
                    out.append(SHIFT_CODE)
                    upper = not upper
                else:
                    out.append(INVERT_CODE)
            out.append(ch.lower())
        else:
            out.append(ch)
    logger.debug(f"dot limit {limit}, {len(out) - len(name)} control codes added")
    return "".join(out)


def strip_controls(text: str) -> str:
    """
    Inverse of :func:`apply_controls`.

    :raises DecodeError: if an invert code is not directly followed by a letter
    """
    upper = False
    invert = False
    out = []
    for i, ch in enumerate(text):
        if ch == SEPARATOR_CODE:
            out.append(".")
        elif ch == SHIFT_CODE:
            upper = not upper
        elif ch == INVERT_CODE:
            if i + 1 >= len(text) or not is_ascii_letter(text[i + 1]):
                raise DecodeError("Invalid placement of case invert code")
            invert = True
        elif is_ascii_letter(ch):
            out.append(ch.upper() if upper != invert else ch.lower())
            invert = False
        else:
            out.append(ch)
    return "".join(out)
