from __future__ import annotations

import unittest

from boxflight.core import make_player, transition
from boxflight.core.entities import PLAYER
from boxflight.level_loader import parse_ascii_level
from boxflight.solver import FingerprintTable, fingerprint
from boxflight.solver.fingerprint import ride_bucket


def _level(*rows: str):
    return parse_ascii_level("\n".join(rows))


class TestFingerprint(unittest.TestCase):
    def test_equal_states_share_a_fingerprint(self) -> None:
        table = FingerprintTable(3, 6, seed=1)
        a = _level("######", "#@$ E#", "######")
        b = _level("######", "#@$ E#", "######")
        self.assertEqual(table.fingerprint(a), table.fingerprint(b))

    def test_entity_order_does_not_matter(self) -> None:
        table = FingerprintTable(3, 7, seed=1)
        state = _level("#######", "#@$H7E#", "#######")
        shuffled = state.with_entities(list(reversed(state.entities)))
        self.assertEqual(table.fingerprint(state), table.fingerprint(shuffled))

    def test_moves_change_the_fingerprint(self) -> None:
        table = FingerprintTable(3, 6, seed=1)
        state = _level("######", "#@  E#", "######")
        moved = transition(state, (1, 0)).new_state
        self.assertNotEqual(table.fingerprint(state), table.fingerprint(moved))

    def test_tile_changes_are_distinguished(self) -> None:
        table = FingerprintTable(3, 6, seed=1)
        intact = _level("######", "#@ *E#", "######")
        broken = _level("######", "#@  E#", "######")
        self.assertNotEqual(table.fingerprint(intact), table.fingerprint(broken))

    def test_ride_direction_is_distinguished(self) -> None:
        table = FingerprintTable(3, 5, seed=1)
        state = _level("#####", "# H #", "#####")
        riding = [e for e in state.entities if e.type != PLAYER]

        def with_entry(entry_dir):
            return state.with_entities(
                [*riding, make_player(2, 1, mode="inbox", entry_dir=entry_dir)]
            )

        hashes = {
            table.fingerprint(with_entry(entry))
            for entry in [(1, 0), (-1, 0), (0, -1), (0, 1), (0, 0)]
        }
        self.assertEqual(len(hashes), 5)

    def test_tri_orientation_is_distinguished(self) -> None:
        table = FingerprintTable(3, 5, seed=1)
        ne = _level("#####", "#@7 #", "#####")
        nw = _level("#####", "#@F #", "#####")
        self.assertNotEqual(table.fingerprint(ne), table.fingerprint(nw))

    def test_seeded_tables_are_reproducible(self) -> None:
        state = _level("######", "#@$ E#", "######")
        first = FingerprintTable(3, 6, seed=7).fingerprint(state)
        second = FingerprintTable(3, 6, seed=7).fingerprint(state)
        self.assertEqual(first, second)
        self.assertLess(first, 2**64)

    def test_size_mismatch_is_rejected(self) -> None:
        table = FingerprintTable(4, 4, seed=1)
        with self.assertRaises(ValueError):
            table.fingerprint(_level("######", "#@$ E#", "######"))
        with self.assertRaises(ValueError):
            FingerprintTable(0, 3)

    def test_module_helper_builds_its_own_table(self) -> None:
        state = _level("####", "#@E#", "####")
        self.assertIsInstance(fingerprint(state), int)

    def test_ride_buckets(self) -> None:
        self.assertEqual(ride_bucket((1, 0)), "r")
        self.assertEqual(ride_bucket((-1, 0)), "l")
        self.assertEqual(ride_bucket((0, -1)), "u")
        self.assertEqual(ride_bucket((0, 1)), "d")
        self.assertEqual(ride_bucket((0, 0)), "z")
        self.assertEqual(ride_bucket(None), "z")


if __name__ == "__main__":
    unittest.main()
