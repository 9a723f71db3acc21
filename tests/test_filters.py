from __future__ import annotations

import unittest

from boxflight.solver import (
    MoveSequence,
    edit_distance_at_most,
    filter_near_duplicates,
    is_one_edit_apart,
)


def _seqs(*moves: str) -> list[MoveSequence]:
    return [MoveSequence.from_moves(m) for m in moves]


class TestEditDistance(unittest.TestCase):
    def test_one_edit_apart(self) -> None:
        self.assertTrue(is_one_edit_apart("dd", "ddd"))
        self.assertTrue(is_one_edit_apart("dwd", "dd"))
        self.assertTrue(is_one_edit_apart("abc", "abd"))
        self.assertFalse(is_one_edit_apart("ab", "ab"))
        self.assertFalse(is_one_edit_apart("abc", "a"))
        self.assertFalse(is_one_edit_apart("abcd", "abdc"))

    def test_banded_distance(self) -> None:
        self.assertTrue(edit_distance_at_most("dddd", "dwdd", 1))
        self.assertTrue(edit_distance_at_most("dddd", "dwdw", 2))
        self.assertFalse(edit_distance_at_most("dddd", "wwww", 2))
        self.assertFalse(edit_distance_at_most("d", "dddd", 2))
        self.assertTrue(edit_distance_at_most("", "dd", 2))
        self.assertTrue(edit_distance_at_most("dsds", "dsds", 0))


class TestNearDuplicateFilter(unittest.TestCase):
    def test_keeps_shortest_representatives(self) -> None:
        kept = filter_near_duplicates(_seqs("ddw", "dddddaaa", "wwww", "dd"))
        self.assertEqual([e.moves for e in kept], ["dd", "wwww", "dddddaaa"])

    def test_equal_length_ties_keep_first_in_order(self) -> None:
        kept = filter_near_duplicates(_seqs("dwd", "dsd"))
        self.assertEqual([e.moves for e in kept], ["dsd"])

    def test_far_apart_lengths_are_both_kept(self) -> None:
        kept = filter_near_duplicates(_seqs("s", "ddas"))
        self.assertEqual([e.moves for e in kept], ["s", "ddas"])

    def test_zero_edits_only_drops_duplicates(self) -> None:
        kept = filter_near_duplicates(_seqs("dd", "dd", "ddd"), max_edits=0)
        self.assertEqual([e.moves for e in kept], ["dd", "ddd"])

    def test_idempotent(self) -> None:
        entries = _seqs("sdwdsdd", "sdwdsd", "dsdwdsdd", "ddasdddd", "aaaa", "aaa")
        once = filter_near_duplicates(entries)
        self.assertEqual(filter_near_duplicates(once), once)

    def test_no_kept_pair_is_near(self) -> None:
        entries = _seqs("dwsa", "dwsaa", "wsad", "sssssss", "ssss", "dwdwdw")
        kept = filter_near_duplicates(entries)
        for i, a in enumerate(kept):
            for b in kept[i + 1 :]:
                self.assertFalse(edit_distance_at_most(a.moves, b.moves, 2))


if __name__ == "__main__":
    unittest.main()
