import unittest


def _entries(*pairs):
    from turnbot.kernel.scanner import FileEntry

    return [FileEntry(name=n, size=s) for n, s in pairs]


class TestTrackerDebounce(unittest.TestCase):
    def test_new_file_is_ineligible_until_window_elapses(self) -> None:
        from turnbot.kernel.tracker import FileTracker

        t = FileTracker(debounce_ms=30000)
        snap = _entries(("pbem1_turn1_bob.se1", 100))

        self.assertEqual(t.observe(snap, now_ms=0), [])
        rec = t.get("pbem1_turn1_bob.se1")
        self.assertIsNotNone(rec)
        assert rec is not None
        self.assertFalse(rec.stabilized)
        self.assertEqual(rec.last_size, 100)

        self.assertEqual(t.observe(snap, now_ms=29999), [])
        self.assertEqual(t.observe(snap, now_ms=30000), ["pbem1_turn1_bob.se1"])
        self.assertTrue(t.get("pbem1_turn1_bob.se1").stabilized)

    def test_stabilized_file_is_returned_only_once(self) -> None:
        from turnbot.kernel.tracker import FileTracker

        t = FileTracker(debounce_ms=1000)
        snap = _entries(("a.se1", 1))
        t.observe(snap, now_ms=0)
        self.assertEqual(t.observe(snap, now_ms=1000), ["a.se1"])
        self.assertEqual(t.observe(snap, now_ms=2000), [])
        self.assertEqual(t.observe(snap, now_ms=999999), [])

    def test_size_change_restarts_window(self) -> None:
        from turnbot.kernel.tracker import FileTracker

        t = FileTracker(debounce_ms=30000)
        name = "pbem1_turn2_carol.se1"
        t.observe(_entries((name, 10)), now_ms=0)
        # Shrinks, then grows, before the first window is over.
        self.assertEqual(t.observe(_entries((name, 5)), now_ms=20000), [])
        self.assertEqual(t.get(name).first_seen_ms, 20000)
        self.assertEqual(t.observe(_entries((name, 8)), now_ms=25000), [])
        self.assertEqual(t.get(name).first_seen_ms, 25000)

        # The first window (t=30000) must not count anymore.
        self.assertEqual(t.observe(_entries((name, 8)), now_ms=30000), [])
        self.assertEqual(t.observe(_entries((name, 8)), now_ms=54999), [])
        self.assertEqual(t.observe(_entries((name, 8)), now_ms=55000), [name])

    def test_size_change_after_window_still_resets(self) -> None:
        from turnbot.kernel.tracker import FileTracker

        t = FileTracker(debounce_ms=1000)
        t.observe(_entries(("x.se1", 1)), now_ms=0)
        self.assertEqual(t.observe(_entries(("x.se1", 2)), now_ms=5000), [])
        self.assertEqual(t.observe(_entries(("x.se1", 2)), now_ms=5999), [])
        self.assertEqual(t.observe(_entries(("x.se1", 2)), now_ms=6000), ["x.se1"])

    def test_seeded_files_are_never_new(self) -> None:
        from turnbot.kernel.tracker import FileTracker

        t = FileTracker(debounce_ms=0)
        t.seed(_entries(("PBEM1_turn3_Bob.se1", 50)), now_ms=0)
        self.assertEqual(len(t), 1)
        # Same file, different case in a later listing.
        self.assertEqual(t.observe(_entries(("pbem1_turn3_bob.se1", 50)), now_ms=10), [])
        self.assertEqual(t.observe(_entries(("pbem1_turn3_bob.se1", 99)), now_ms=20), [])

    def test_deleted_file_is_forgotten_and_recreation_is_new(self) -> None:
        from turnbot.kernel.tracker import FileTracker

        t = FileTracker(debounce_ms=100)
        snap = _entries(("a.se1", 1))
        t.observe(snap, now_ms=0)
        self.assertEqual(t.observe(snap, now_ms=100), ["a.se1"])

        self.assertEqual(t.observe([], now_ms=200), [])
        self.assertNotIn("a.se1", t)
        self.assertEqual(len(t), 0)

        self.assertEqual(t.observe(snap, now_ms=300), [])
        self.assertFalse(t.get("a.se1").stabilized)
        self.assertEqual(t.observe(snap, now_ms=399), [])
        self.assertEqual(t.observe(snap, now_ms=400), ["a.se1"])

    def test_only_missing_files_are_removed(self) -> None:
        from turnbot.kernel.tracker import FileTracker

        t = FileTracker(debounce_ms=100)
        t.seed(_entries(("keep.se1", 1), ("gone.se1", 2)), now_ms=0)
        t.observe(_entries(("keep.se1", 1)), now_ms=10)
        self.assertIn("keep.se1", t)
        self.assertNotIn("gone.se1", t)

    def test_zero_debounce_still_needs_a_second_observation(self) -> None:
        from turnbot.kernel.tracker import FileTracker

        t = FileTracker(debounce_ms=0)
        snap = _entries(("a.se1", 1))
        self.assertEqual(t.observe(snap, now_ms=0), [])
        self.assertEqual(t.observe(snap, now_ms=0), ["a.se1"])


if __name__ == "__main__":
    unittest.main()
