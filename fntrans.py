"""
Bitsy file name transcoding.

:func:`encode` turns any valid Unicode file name into a StrictName (ASCII
letters, digits, ``-``, ``_`` and ``.``, no reserved device names, at most 255
characters) and :func:`decode` gives the original name back.

Names are encoded by the cheapest of four strategies:

* names that already are lowercase StrictNames are kept as they are,
* StrictNames starting with one of the reserved prefixes get escaped,
* lowercase names colliding with a device name get escaped,
* everything else goes through the general encoding, which separates the
  invariant characters from the rest and appends the removed codepoints
  as a compact delta suffix after an ``xz--`` prefix.
"""
import logging
import unicodedata
from enum import Enum
from typing import Tuple

from bitsy_errors import DecodeError, EncodeError
from casing import apply_controls, strip_controls
from flexdelta import decode_deltas, deltas_to_oplist, encode_deltas, oplist_to_deltas
from insertion_map import derive_insertions, derive_invariant, imap_to_oplist, oplist_to_imap, reconstruct
from strictname import (LENGTH_LIMIT, count_codepoints, device_stem, find_unpaired_surrogate, is_almost_strict,
                        is_strict_name, join_surrogates, utf16_length)

logger = logging.getLogger(__name__)

PREFIX_ENCODE = "xz--"
PREFIX_ESCAPE = "xq--"

SUFFIX_KEEP = "-q"     # escaped name starts with xq--
SUFFIX_RESTORE = "-z"  # escaped name starts with xz--
SUFFIX_REMOVE = "-x"   # escaped device name, drop the prefix


class NameStrategy(Enum):
    PASS_THROUGH = 0
    PREFIX_ESCAPE = 1
    DEVICE_ESCAPE = 2
    GENERAL = 3


def check_original(text: str) -> str:
    """
    Validates an encoder input.

    Surrogate halves forming a well-formed pair are joined into one codepoint.

    :param text: candidate file name
    :return: the validated name
    :raises EncodeError: empty or too long input, ASCII control codes, slashes,
        backslashes or unpaired surrogates
    """
    if not isinstance(text, str):
        raise EncodeError("Wrong input type")
    if not text:
        raise EncodeError("Input may not be empty")
    if utf16_length(text) > LENGTH_LIMIT:
        raise EncodeError("Input is too long", too_long=True)

    for ch in text:
        code = ord(ch)
        if code <= 0x1F or code == 0x7F:
            raise EncodeError("Input contains ASCII control codes")
        if ch == "/":
            raise EncodeError("Input contains forward slashes")
        if ch == "\\":
            raise EncodeError("Input contains backslashes")

    if find_unpaired_surrogate(text) >= 0:
        raise EncodeError("Input contains improper surrogates")
    return join_surrogates(text)


def select_strategy(text: str) -> NameStrategy:
    """Picks the encoding strategy for a validated name."""
    has_upper = any("A" <= ch <= "Z" for ch in text)
    has_prefix = text[:4] in (PREFIX_ENCODE, PREFIX_ESCAPE)
    already_strict = is_strict_name(text)
    almost_strict = already_strict or is_almost_strict(text)

    if already_strict and not has_upper:
        return NameStrategy.PREFIX_ESCAPE if has_prefix else NameStrategy.PASS_THROUGH
    if almost_strict and not has_upper and not has_prefix:
        return NameStrategy.DEVICE_ESCAPE
    return NameStrategy.GENERAL


def _insert_before_dot(name: str, insert: str) -> str:
    px = name.find(".")
    if px < 0:
        return name + insert
    return name[:px] + insert + name[px:]


def _encode_general(text: str) -> str:
    text = unicodedata.normalize("NFC", text)
    if not text:
        raise EncodeError("Input normalized to empty")
    if count_codepoints(text) > LENGTH_LIMIT or utf16_length(text) > LENGTH_LIMIT:
        raise EncodeError("Input normalization too long", too_long=True)

    controlled = apply_controls(text)
    imap = derive_insertions(controlled)
    invariant = derive_invariant(controlled, imap)
    oplist = imap_to_oplist(imap)
    deltas = oplist_to_deltas(oplist, len(invariant))
    try:
        suffix = encode_deltas(deltas)
    except ValueError as e:
        raise EncodeError("Encoded name would be too long", too_long=True) from e

    logger.debug(f"general encoding: invariant {invariant!r}, {len(oplist)} insertions, "
                 f"delta suffix {suffix!r}")
    return PREFIX_ENCODE + _insert_before_dot(invariant, "-" + suffix)


def encode_with_strategy(original: str) -> Tuple[NameStrategy, str]:
    """
    Encodes a file name and reports which strategy was used.

    :param original: the name to encode
    :return: (strategy, encoded StrictName)
    :raises EncodeError: if the name cannot be encoded
    """
    text = check_original(original)
    strategy = select_strategy(text)

    if strategy is NameStrategy.PASS_THROUGH:
        name = text
    elif strategy is NameStrategy.PREFIX_ESCAPE:
        name = _insert_before_dot(PREFIX_ESCAPE + text[4:], "-" + text[1])
    elif strategy is NameStrategy.DEVICE_ESCAPE:
        name = _insert_before_dot(PREFIX_ESCAPE + text, SUFFIX_REMOVE)
    else:
        name = _encode_general(text)

    if len(name) > LENGTH_LIMIT:
        raise EncodeError("Encoded name would be too long", too_long=True)
    if not is_strict_name(name):
        raise EncodeError(f"Encoding produced an invalid name {name!r}")

    logger.debug(f"{strategy.name}: {text!r} -> {name!r}")
    return strategy, name


def encode(original: str) -> str:
    """Encodes a file name to a StrictName, raises EncodeError on failure."""
    return encode_with_strategy(original)[1]


def _decode_escape(name: str) -> Tuple[NameStrategy, str]:
    px = name.find(".")
    label_end = px if px >= 0 else len(name)
    if label_end < len(PREFIX_ESCAPE) + 2:
        raise DecodeError("Escaped name is missing its suffix")

    suffix = name[label_end - 2:label_end]
    stripped = name[:label_end - 2] + name[label_end:]
    if suffix == SUFFIX_KEEP:
        strategy, result = NameStrategy.PREFIX_ESCAPE, stripped
    elif suffix == SUFFIX_RESTORE:
        strategy, result = NameStrategy.PREFIX_ESCAPE, PREFIX_ENCODE + stripped[4:]
    elif suffix == SUFFIX_REMOVE:
        strategy, result = NameStrategy.DEVICE_ESCAPE, stripped[4:]
    else:
        raise DecodeError(f"Invalid escape suffix {suffix!r}")

    if not is_almost_strict(result):
        raise DecodeError(f"Escaped name decodes to invalid name {result!r}")
    if strategy is NameStrategy.DEVICE_ESCAPE and device_stem(result) is None:
        raise DecodeError(f"Device escape of non-device name {result!r}")
    return strategy, result


def _decode_general(name: str) -> str:
    body = name[len(PREFIX_ENCODE):]
    px = body.find(".")
    label_end = px if px >= 0 else len(body)
    hyphen = body.rfind("-", 0, label_end)
    if hyphen >= 0:
        delta_text = body[hyphen + 1:label_end]
        invariant = body[:hyphen] + body[label_end:]
    else:
        delta_text = body[:label_end]
        invariant = body[label_end:]

    deltas = decode_deltas(delta_text)
    oplist = deltas_to_oplist(deltas, len(invariant))
    imap = oplist_to_imap(oplist, len(invariant))
    text = strip_controls(reconstruct(invariant, imap))
    text = unicodedata.normalize("NFC", text)

    try:
        return check_original(text)
    except EncodeError as e:
        raise DecodeError(f"Decoded name is invalid: {e.message}") from e


def decode_with_strategy(name: str) -> Tuple[NameStrategy, str]:
    """
    Decodes a Bitsy name and reports which strategy produced it.

    The prefix is matched case-insensitively; encoded names are always
    lowercase, but may have had their case changed by the storage.
    A name without a Bitsy prefix is returned as it is.

    :param name: encoded name
    :return: (strategy, original name)
    :raises DecodeError: if the name is not a valid Bitsy name
    """
    if not isinstance(name, str):
        raise DecodeError("Wrong input type")
    if not is_strict_name(name):
        raise DecodeError("Input is not a StrictName")

    prefix = name[:4].lower()
    if prefix == PREFIX_ESCAPE:
        strategy, result = _decode_escape(name.lower())
    elif prefix == PREFIX_ENCODE:
        strategy, result = NameStrategy.GENERAL, _decode_general(name.lower())
    else:
        strategy, result = NameStrategy.PASS_THROUGH, name

    logger.debug(f"{strategy.name}: {name!r} -> {result!r}")
    return strategy, result


def decode(name: str) -> str:
    """Decodes a Bitsy name to the original string, raises DecodeError on failure."""
    return decode_with_strategy(name)[1]
