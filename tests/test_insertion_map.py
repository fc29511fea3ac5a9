"""Tests for insertion_map module."""
import pytest

from bitsy_errors import BitsyFault, DecodeError
from insertion_map import (derive_insertions, derive_invariant, imap_to_oplist, oplist_to_imap,
                           reconstruct)

SAMPLES = [
    "",
    "plain.txt",
    "caf\u00e9.txt",
    "b\u00e9a\u00e0c",
    "\u00e9\u00e9\u00e9",
    "\x02hello\x02world",
    "\u65e5\u672c\u8a9e.txt",
    "x \U0001F600 y \U0001F600",
    " leading and trailing ",
]


class TestSplitter:
    def test_derive_insertions(self) -> None:
        assert derive_insertions("caf\u00e9.txt") == [-3, 233, -4]
        assert derive_insertions("") == []
        assert derive_insertions("\u00e9") == [233]
        assert derive_insertions("abc") == [-3]
        assert derive_insertions("a  b") == [-1, 32, 32, -1]

    def test_derive_invariant(self) -> None:
        assert derive_invariant("caf\u00e9.txt", [-3, 233, -4]) == "caf.txt"
        assert derive_invariant("\u00e9", [233]) == ""

    def test_map_magnitudes_cover_text(self) -> None:
        for text in SAMPLES:
            imap = derive_insertions(text)
            assert 0 not in imap
            assert sum(-e for e in imap if e < 0) + sum(1 for e in imap if e > 0) == len(text)

    def test_reconstruct(self) -> None:
        assert reconstruct("caf.txt", [-3, 233, -4]) == "caf\u00e9.txt"
        assert reconstruct("", [0x1F600]) == "\U0001F600"

    def test_reconstruct_inverts_split(self) -> None:
        for text in SAMPLES:
            imap = derive_insertions(text)
            assert reconstruct(derive_invariant(text, imap), imap) == text

    @pytest.mark.parametrize("code", [0xD800, 0xDBFF, 0xDC00, 0xDFFF])
    def test_reconstruct_rejects_surrogates(self, code: int) -> None:
        with pytest.raises(DecodeError):
            reconstruct("ab", [-1, code, -1])

    def test_mismatched_map_is_fault(self) -> None:
        with pytest.raises(BitsyFault):
            derive_invariant("abc", [-2])
        with pytest.raises(BitsyFault):
            derive_invariant("a\u00e9", [-2])
        with pytest.raises(BitsyFault):
            reconstruct("abc", [-4])


class TestOplist:
    def test_smallest_codepoint_first(self) -> None:
        # b e-acute a a-grave c -> "bac", à (224) is inserted before é (233)
        imap = derive_insertions("b\u00e9a\u00e0c")
        assert imap == [-1, 233, -1, 224, -1]
        assert imap_to_oplist(imap) == [(2, 224), (1, 233)]

    def test_repeated_codepoint(self) -> None:
        assert imap_to_oplist([2, -5, 2, -5]) == [(0, 2), (6, 2)]
        assert imap_to_oplist([233, 233, 233]) == [(0, 233), (1, 233), (2, 233)]

    def test_no_insertions(self) -> None:
        assert imap_to_oplist([-4]) == []
        assert imap_to_oplist([]) == []

    def test_sorted(self) -> None:
        for text in SAMPLES:
            oplist = imap_to_oplist(derive_insertions(text))
            assert oplist == sorted(oplist, key=lambda op: (op[1], op[0]))

    def test_replay_on_invariant(self) -> None:
        for text in SAMPLES:
            imap = derive_insertions(text)
            chars = list(derive_invariant(text, imap))
            for position, codepoint in imap_to_oplist(imap):
                chars.insert(position, chr(codepoint))
            assert "".join(chars) == text

    def test_oplist_to_imap(self) -> None:
        assert oplist_to_imap([(2, 224), (1, 233)], 3) == [-1, 233, -1, 224, -1]
        assert oplist_to_imap([], 0) == []
        assert oplist_to_imap([], 5) == [-5]
        assert oplist_to_imap([(0, 4), (1, 4)], 0) == [4, 4]

    def test_inverse(self) -> None:
        for text in SAMPLES:
            imap = derive_insertions(text)
            invariant = derive_invariant(text, imap)
            assert oplist_to_imap(imap_to_oplist(imap), len(invariant)) == imap

    def test_position_past_end_is_fault(self) -> None:
        with pytest.raises(BitsyFault):
            oplist_to_imap([(5, 2)], 3)
