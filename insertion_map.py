"""
Insertion maps and oplists.

An insertion map describes a string as a sequence of runs of invariant
characters (negative entries, ``-k`` for ``k`` characters) and literal
codepoints that are not invariant (positive entries). Removing the literal
codepoints leaves the *invariant string*.

An oplist describes the same thing as insert instructions ``(position, codepoint)``
that, replayed in order on the invariant string, rebuild the original. Ops are
ordered by codepoint and then by position, which keeps the deltas computed in
:mod:`flexdelta` small and non-negative.
"""
from typing import List, Tuple

from bitsy_errors import DecodeError, fault
from strictname import SURROGATE_MAX, SURROGATE_MIN, is_invariant

Op = Tuple[int, int]


def derive_insertions(text: str) -> List[int]:
    imap: List[int] = []
    run = 0
    for ch in text:
        if is_invariant(ch):
            run += 1
            continue
        if run:
            imap.append(-run)
            run = 0
        imap.append(ord(ch))
    if run:
        imap.append(-run)
    return imap


def derive_invariant(text: str, imap: List[int]) -> str:
    """
    Builds the invariant string of ``text`` by copying the runs of ``imap``.

    :param text: the string the map was derived from
    :param imap: its insertion map
    :return: ``text`` with every codepoint of a positive entry removed
    """
    parts = []
    i = 0
    for entry in imap:
        if entry == 0:
            fault("derive_invariant", "zero entry in insertion map")
        if entry > 0:
            if i >= len(text) or ord(text[i]) != entry:
                fault("derive_invariant", f"insertion {entry} does not match text at {i}")
            i += 1
            continue
        run = text[i:i - entry]
        if len(run) != -entry or not all(is_invariant(ch) for ch in run):
            fault("derive_invariant", f"bad invariant run at {i}")
        parts.append(run)
        i -= entry
    if i != len(text):
        fault("derive_invariant", "insertion map does not cover the text")
    return "".join(parts)


def reconstruct(invariant: str, imap: List[int]) -> str:
    """
    Inverse of :func:`derive_invariant`: re-inserts the literal codepoints.

    Raises DecodeError for a surrogate codepoint, which can never be a
    legitimate insertion.
    """
    parts = []
    i = 0
    for entry in imap:
        if entry > 0:
            if SURROGATE_MIN <= entry <= SURROGATE_MAX:
                raise DecodeError(f"Encoded insertion U+{entry:04X} is a surrogate")
            parts.append(chr(entry))
            continue
        if entry == 0 or i - entry > len(invariant):
            fault("reconstruct", f"insertion map overruns invariant string at {i}")
        parts.append(invariant[i:i - entry])
        i -= entry
    if i != len(invariant):
        fault("reconstruct", "insertion map does not cover the invariant string")
    return "".join(parts)


def imap_to_oplist(imap: List[int]) -> List[Op]:
    """
    Converts an insertion map to an oplist.

    Codepoints are resolved smallest first; each occurrence (left to right)
    is inserted at the count of already resolved characters to its left.
    """
    resolved = [entry < 0 for entry in imap]
    oplist: List[Op] = []
    while True:
        pending = [entry for entry, done in zip(imap, resolved) if not done]
        if not pending:
            break
        value = min(pending)
        position = 0
        for i, entry in enumerate(imap):
            if entry < 0:
                position -= entry
            elif resolved[i]:
                position += 1
            elif entry == value:
                oplist.append((position, value))
                resolved[i] = True
                position += 1
    return oplist


def oplist_to_imap(oplist: List[Op], invariant_length: int) -> List[int]:
    imap: List[int] = [-invariant_length] if invariant_length else []
    for position, codepoint in oplist:
        base = 0
        for i, entry in enumerate(imap):
            if base == position:
                imap.insert(i, codepoint)
                break
            size = -entry if entry < 0 else 1
            if entry < 0 and base < position < base + size:
                imap[i:i + 1] = [-(position - base), codepoint, -(base + size - position)]
                break
            base += size
        else:
            if base != position:
                fault("oplist_to_imap", f"position {position} past end {base}")
            imap.append(codepoint)
    return imap
