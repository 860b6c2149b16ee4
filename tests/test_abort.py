import unittest


class TestAbortSignal(unittest.TestCase):
    def test_listeners_fire_once_in_order(self) -> None:
        from uniclaw.util.abort import AbortController

        calls = []
        c = AbortController()
        c.signal.add_listener(lambda: calls.append("a"))
        c.signal.add_listener(lambda: calls.append("b"))
        self.assertFalse(c.signal.aborted)

        c.abort()
        c.abort()
        self.assertTrue(c.signal.aborted)
        self.assertEqual(calls, ["a", "b"])

    def test_late_listener_runs_immediately(self) -> None:
        from uniclaw.util.abort import AbortController

        calls = []
        c = AbortController()
        c.abort()
        c.signal.add_listener(lambda: calls.append("late"))
        self.assertEqual(calls, ["late"])

    def test_removed_listener_does_not_run(self) -> None:
        from uniclaw.util.abort import AbortController

        calls = []

        def cb() -> None:
            calls.append("x")

        c = AbortController()
        c.signal.add_listener(cb)
        c.signal.remove_listener(cb)
        c.signal.remove_listener(cb)
        c.abort()
        self.assertEqual(calls, [])

    def test_failing_listener_does_not_block_others(self) -> None:
        from uniclaw.util.abort import AbortController

        calls = []

        def boom() -> None:
            raise RuntimeError("boom")

        c = AbortController()
        c.signal.add_listener(boom)
        c.signal.add_listener(lambda: calls.append("ok"))
        with self.assertLogs("uniclaw.abort", level="ERROR"):
            c.abort()
        self.assertEqual(calls, ["ok"])


if __name__ == "__main__":
    unittest.main()
