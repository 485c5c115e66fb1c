import sys
import os
import asyncio
import unittest

# Add project root to path
sys.path.append(os.getcwd())

from actionbot.platforms.twitter.request_queue import RequestQueue


class TestRequestQueue(unittest.IsolatedAsyncioTestCase):
    async def test_fifo_one_at_a_time(self):
        queue = RequestQueue()
        events = []
        running = 0
        max_running = 0

        def make(name, delay):
            async def request():
                nonlocal running, max_running
                running += 1
                max_running = max(max_running, running)
                events.append(f"{name}:start")
                await asyncio.sleep(delay)
                events.append(f"{name}:end")
                running -= 1
                return name
            return request

        f1 = queue.add(make("t1", 0.01))
        f2 = queue.add(make("t2", 0.05))
        f3 = queue.add(make("t3", 0))

        results = await asyncio.gather(f1, f2, f3)

        self.assertEqual(results, ["t1", "t2", "t3"])
        self.assertEqual(events, ["t1:start", "t1:end", "t2:start", "t2:end", "t3:start", "t3:end"])
        self.assertEqual(max_running, 1)
        self.assertFalse(queue.processing)

    async def test_failure_isolated_to_its_future(self):
        queue = RequestQueue()

        async def ok():
            return "ok"

        async def boom():
            raise ValueError("boom")

        first = queue.add(boom)
        second = queue.add(ok)

        with self.assertRaises(ValueError):
            await first
        self.assertEqual(await second, "ok")

    async def test_no_retry(self):
        queue = RequestQueue()
        calls = 0

        async def flaky():
            nonlocal calls
            calls += 1
            raise RuntimeError("down")

        with self.assertRaises(RuntimeError):
            await queue.add(flaky)
        self.assertEqual(calls, 1)

    async def test_restarts_after_drain(self):
        queue = RequestQueue()

        async def value():
            return 1

        self.assertEqual(await queue.add(value), 1)
        await asyncio.sleep(0)
        self.assertEqual(await queue.add(value), 1)

    async def test_close_cancels_pending(self):
        queue = RequestQueue()
        started = asyncio.Event()

        async def slow():
            started.set()
            await asyncio.sleep(10)

        async def never():
            return "never"

        running = queue.add(slow)
        pending = queue.add(never)
        await started.wait()

        await queue.close()

        self.assertTrue(running.cancelled())
        self.assertTrue(pending.cancelled())
        self.assertEqual(len(queue), 0)


if __name__ == '__main__':
    unittest.main()
