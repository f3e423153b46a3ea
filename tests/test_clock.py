import unittest

from mathdrill.util.clock import FakeClock, PausableTimer


class PausableTimerTests(unittest.TestCase):
    def test_elapsed_excludes_pauses(self) -> None:
        t = PausableTimer.started(10.0)
        t = t.paused(12.0)
        self.assertTrue(t.is_paused)
        self.assertEqual(t.elapsed(50.0), 2.0)
        t = t.resumed(20.0)
        self.assertEqual(t.accumulated_pause, 8.0)
        self.assertEqual(t.elapsed(25.0), 7.0)
        self.assertEqual(t.elapsed_ms(25.5), 7500)

    def test_pause_and_resume_are_idempotent(self) -> None:
        t = PausableTimer.started(0.0).paused(1.0)
        self.assertIs(t.paused(5.0), t)
        running = t.resumed(3.0)
        self.assertIs(running.resumed(4.0), running)

    def test_fake_clock(self) -> None:
        c = FakeClock(5.0)
        c.advance(1.5)
        self.assertEqual(c.time(), 6.5)
        with self.assertRaises(ValueError):
            c.advance(-1)


if __name__ == "__main__":
    unittest.main()
