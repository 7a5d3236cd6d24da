"""Test the Throttler."""
import threading
import time
from unittest import TestCase
import wiki_client as wc

class TestThrottler(TestCase):
    """Test ordering, delays and cancellation."""
    def test_first_is_immediate(self):
        """Assert the first item does not wait."""
        throttler = wc.Throttler(throttle_time=5)
        start = time.monotonic()
        with throttler.queue_work('A'):
            pass
        self.assertLess(time.monotonic() - start, 1)
    def test_negative_time(self):
        """Assert a negative throttle_time is rejected."""
        with self.assertRaises(ValueError):
            wc.Throttler(throttle_time=-1)
        throttler = wc.Throttler()
        self.assertEqual(throttler.throttle_time, 5)
        with self.assertRaises(ValueError):
            throttler.throttle_time = -0.5
    def test_ordering(self):
        """Assert B starts at least throttle_time after A completes."""
        throttler = wc.Throttler(throttle_time=0.2)
        item_a = throttler.queue_work('A')
        started = {}
        def run_b():
            with throttler.queue_work('B'):
                started['B'] = time.monotonic()
        thread = threading.Thread(target=run_b)
        thread.start()
        time.sleep(0.3)
        self.assertNotIn('B', started)
        self.assertEqual(throttler.queued_work_count, 1)
        completed = time.monotonic()
        item_a.complete()
        thread.join(5)
        self.assertGreaterEqual(started['B'] - completed, 0.2)
    def test_cancel_isolation(self):
        """Assert canceling B does not hold up C."""
        throttler = wc.Throttler(throttle_time=0.05)
        item_a = throttler.queue_work('A')
        token = wc.CancellationToken()
        results = {}
        def run_b():
            try:
                throttler.queue_work('B', cancellation=token)
            except wc.OperationCanceled:
                results['B'] = 'canceled'
        def run_c():
            with throttler.queue_work('C'):
                results['C'] = time.monotonic()
        thread_b = threading.Thread(target=run_b)
        thread_b.start()
        time.sleep(0.05)
        thread_c = threading.Thread(target=run_c)
        thread_c.start()
        time.sleep(0.05)
        token.cancel()
        thread_b.join(5)
        self.assertEqual(results['B'], 'canceled')
        self.assertNotIn('C', results)
        completed = time.monotonic()
        item_a.complete()
        thread_c.join(5)
        self.assertIn('C', results)
        self.assertGreaterEqual(results['C'] - completed, 0.05)
    def test_cancel_before_start(self):
        """Assert a canceled token stops the wait at once."""
        throttler = wc.Throttler(throttle_time=10)
        throttler.queue_work('A')
        token = wc.CancellationToken()
        token.cancel()
        with self.assertRaises(wc.OperationCanceled):
            throttler.queue_work('B', cancellation=token)
    def test_completion(self):
        """Assert completion() waits for everything queued so far."""
        throttler = wc.Throttler(throttle_time=0)
        self.assertTrue(throttler.completion().done())
        item = throttler.queue_work('A')
        completion = throttler.completion()
        self.assertFalse(completion.done())
        item.complete()
        self.assertTrue(completion.done())
    def test_complete_twice(self):
        """Assert completing an item twice is harmless."""
        throttler = wc.Throttler(throttle_time=0)
        item = throttler.queue_work('A')
        item.complete()
        item.complete()
        self.assertTrue(throttler.completion().done())
