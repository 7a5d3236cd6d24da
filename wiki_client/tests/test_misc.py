"""Test parameters, cancellation and the small classes."""
import threading
from concurrent.futures import Future
from datetime import datetime, timedelta, timezone
from unittest import TestCase
import wiki_client as wc
from wiki_client.misc import wait_for
from wiki_client.params import wire_value

class TestParams(TestCase):
    """Test QueryParams and wire conversion."""
    def test_wire_values(self):
        """Assert values convert the way the API expects."""
        self.assertIsNone(wire_value(None))
        self.assertIsNone(wire_value(False))
        self.assertEqual(wire_value(True), '')
        self.assertEqual(wire_value(10), '10')
        self.assertEqual(wire_value(['a', 'b', 3]), 'a|b|3')
        self.assertEqual(wire_value({'b', 'a'}), 'a|b')
        self.assertEqual(wire_value(datetime(2020, 1, 2, 3, 4, 5)),
                         '2020-01-02T03:04:05Z')
        eastern = timezone(timedelta(hours=2))
        self.assertEqual(
            wire_value(datetime(2020, 1, 2, 3, 4, 5, tzinfo=eastern)),
            '2020-01-02T01:04:05Z'
        )
    def test_query_params(self):
        """Assert QueryParams keeps order and drops omitted values."""
        params = wc.QueryParams(action='query').set('list', 'allpages')
        params.merge({'apfrom': None, 'aplimit': 5})
        self.assertEqual(list(params.to_wire().items()),
                         [('action', 'query'), ('list', 'allpages'),
                          ('aplimit', '5')])
        self.assertIsInstance(params.copy(), wc.QueryParams)
    def test_site_token(self):
        """Assert SiteTokens compare by kind."""
        self.assertEqual(wc.SiteToken(), wc.SiteToken('csrf'))
        self.assertNotEqual(wc.SiteToken('patrol'), wc.SiteToken())

class TestCancellation(TestCase):
    """Test CancellationToken and wait_for."""
    def test_cancel(self):
        """Assert cancel() flips the token once and runs callbacks."""
        token = wc.CancellationToken()
        called = []
        with token.register(lambda: called.append(1)):
            token.raise_if_cancelled()
            token.cancel()
            token.cancel()
        self.assertTrue(token.cancelled)
        self.assertEqual(called, [1])
        with self.assertRaises(wc.OperationCanceled):
            token.raise_if_cancelled()
    def test_register_after_cancel(self):
        """Assert registering on a canceled token calls back at once."""
        token = wc.CancellationToken()
        token.cancel()
        called = []
        with token.register(lambda: called.append(1)):
            self.assertEqual(called, [1])
    def test_sleep(self):
        """Assert sleeping is cut short by cancellation."""
        token = wc.CancellationToken()
        threading.Timer(0.05, token.cancel).start()
        with self.assertRaises(wc.OperationCanceled):
            token.sleep(10)
    def test_wait_for(self):
        """Assert wait_for returns results and stops on cancellation."""
        future = Future()
        future.set_result(5)
        self.assertEqual(wait_for(future, wc.CancellationToken()), 5)
        pending = Future()
        token = wc.CancellationToken()
        threading.Timer(0.05, token.cancel).start()
        with self.assertRaises(wc.OperationCanceled):
            wait_for(pending, token)
        self.assertFalse(pending.done())

class TestGenericData(TestCase):
    """Test GenericData."""
    def test_info(self):
        """Assert info holds everything but the site."""
        data = wc.GenericData(None, user='X', expiry='infinity')
        self.assertEqual(data.info, {'user': 'X', 'expiry': 'infinity'})
        self.assertEqual(data, wc.GenericData(None, user='X',
                                              expiry='infinity'))
