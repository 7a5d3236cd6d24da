"""Test various aspects of the WikiSite."""
import threading
from unittest import TestCase
import wiki_client as wc
from fakes import API, FakeClient, make_site, site_handler

def tokens_handler(url, params):
    """Hand out csrf tokens numbered by how many were asked for."""
    if params.get('meta') != 'tokens':
        return None
    tokens_handler.count += 1
    return {'query': {'tokens': {
        kind + 'token': '{}{}+\\'.format(kind, tokens_handler.count)
        for kind in params['type'].split('|')
    }}}
tokens_handler.count = 0

class TestWikiSite(TestCase):
    """Test the WikiSite class."""
    def setUp(self):
        tokens_handler.count = 0

    def test_init(self):
        """Assert site and account info are loaded on creation."""
        site = make_site(version='1.31.0-wmf.5', rights=('read', 'edit'))
        self.assertEqual(site.site_info.sitename, 'Test Wiki')
        self.assertEqual(site.site_info.version, (1, 31))
        self.assertEqual(site.site_info.version.suffix, 'wmf.5')
        self.assertTrue(site.account_info.is_anonymous)
        self.assertTrue(site.account_info.has_right('edit'))
        self.assertFalse(site.account_info.has_right('apihighlimits'))
        self.assertEqual(site.script_url, 'https://wiki.test/w/index.php')
    def test_no_initialize(self):
        """Assert initialize=False makes no requests."""
        client = FakeClient()
        site = wc.WikiSite(client, API, initialize=False)
        self.assertEqual(client.requests, [])
        self.assertEqual(site.script_url, 'https://wiki.test/w/index.php')
    def test_request_format(self):
        """Assert format=json is always sent."""
        site = make_site()
        for _, params, _ in site.client.requests:
            self.assertEqual(params['format'], 'json')
    def test_site_token(self):
        """Assert SiteToken placeholders are filled in and POSTed."""
        sent = []
        def handler(url, params):
            if params.get('action') == 'purge':
                sent.append(params)
                return {'purge': []}
            return None
        site = make_site(handler, tokens_handler)
        site.request(action='purge', titles='A', token=wc.SiteToken())
        self.assertEqual(sent[0]['token'], 'csrf1+\\')
        self.assertTrue(site.client.requests[-1][2])
    def test_bad_token_retry(self):
        """Assert a bad token is cleared and the request retried once."""
        sent = []
        def handler(url, params):
            if params.get('action') == 'purge':
                sent.append(params['token'])
                if len(sent) == 1:
                    return {'error': {'code': 'badtoken',
                                      'info': 'Invalid CSRF token.'}}
                return {'purge': []}
            return None
        site = make_site(handler, tokens_handler)
        with self.assertLogs('wiki_client.site', 'WARNING'):
            site.request(action='purge', titles='A', token=wc.SiteToken())
        self.assertEqual(sent, ['csrf1+\\', 'csrf2+\\'])
    def test_bad_token_twice(self):
        """Assert a second bad token is raised."""
        def handler(url, params):
            if params.get('action') == 'purge':
                return {'error': {'code': 'badtoken', 'info': 'Invalid'}}
            return None
        site = make_site(handler, tokens_handler)
        with self.assertRaises(wc.BadTokenError):
            site.request(action='purge', titles='A', token=wc.SiteToken())
    def test_equality(self):
        """Assert sites on the same endpoint are equal."""
        self.assertEqual(make_site(), make_site())
        self.assertEqual(len({make_site(), make_site()}), 1)

class TestLogin(TestCase):
    """Test logging in and out."""
    def setUp(self):
        tokens_handler.count = 0

    def login_handler(self, results):
        """Answer action=login with ``results`` in turn."""
        results = list(results)
        def handler(url, params):
            if params.get('action') == 'login':
                return {'login': results.pop(0)}
            return None
        return handler

    def test_login(self):
        """Assert a login uses a fresh login token and reloads the user."""
        client = FakeClient(
            self.login_handler([{'result': 'Success', 'lgusername': 'Bot'}]),
            tokens_handler,
        )
        client.handlers.append(site_handler(version='1.35.0'))
        site = wc.WikiSite(client, API)
        site.get_token('csrf')
        client.handlers[-1] = site_handler(version='1.35.0', name='Bot',
                                           groups=('*', 'user', 'bot'))
        with self.assertLogs('wiki_client.site', 'INFO'):
            site.login('Bot@test', 'secret')
        login = client.calls(action='login')[0]
        self.assertEqual(login['lgtoken'], 'login2+\\')
        self.assertEqual(login['lgname'], 'Bot@test')
        self.assertTrue(site.account_info.is_bot)
        self.assertFalse(site.account_info.is_anonymous)
        # the cache was cleared, so this is a new fetch
        self.assertEqual(site.get_token('csrf'), 'csrf3+\\')
    def test_login_need_token(self):
        """Assert old wikis get their token from NeedToken."""
        client = FakeClient(self.login_handler([
            {'result': 'NeedToken', 'token': 'abc'},
            {'result': 'Success'},
        ]))
        client.handlers.append(site_handler(version='1.23.0'))
        site = wc.WikiSite(client, API)
        site.login('Bot', 'secret')
        logins = client.calls(action='login')
        self.assertEqual(len(logins), 2)
        self.assertNotIn('lgtoken', logins[0])
        self.assertEqual(logins[1]['lgtoken'], 'abc')
    def test_login_failed(self):
        """Assert a failed login raises a WikiError for its result."""
        client = FakeClient(self.login_handler([
            {'result': 'Failed', 'reason': 'Incorrect password'},
        ]), tokens_handler)
        client.handlers.append(site_handler())
        site = wc.WikiSite(client, API)
        with self.assertRaises(wc.WikiError.Failed) as ctx:
            site.login('Bot', 'wrong')
        self.assertIn('Incorrect password', str(ctx.exception))
    def test_login_validation(self):
        """Assert empty credentials are rejected."""
        site = make_site()
        with self.assertRaises(ValueError):
            site.login('', 'secret')
        with self.assertRaises(ValueError):
            site.login('Bot', '')
    def test_concurrent_login(self):
        """Assert logging in while logging in is an error."""
        gate = threading.Event()
        entered = threading.Event()
        def handler(url, params):
            if params.get('action') == 'login':
                entered.set()
                gate.wait(5)
                return {'login': {'result': 'Success'}}
            return None
        client = FakeClient(handler)
        client.handlers.append(site_handler(version='1.23.0'))
        site = wc.WikiSite(client, API)
        thread = threading.Thread(target=site.login, args=('A', 'b'))
        thread.start()
        entered.wait(5)
        try:
            with self.assertRaises(RuntimeError):
                site.logout()
        finally:
            gate.set()
            thread.join(5)
    def test_logout(self):
        """Assert logout sends a csrf token on new wikis."""
        def handler(url, params):
            if params.get('action') == 'logout':
                return {}
            return None
        site = make_site(handler, tokens_handler, version='1.35.0')
        site.logout()
        logout = site.client.calls(action='logout')[0]
        self.assertEqual(logout['token'], 'csrf1+\\')

class TestVersion(TestCase):
    """Test MediaWikiVersion."""
    def test_parse(self):
        """Assert versions parse and compare numerically."""
        version = wc.MediaWikiVersion.parse('MediaWiki 1.9.3')
        self.assertLess(version, (1, 10))
        self.assertGreater(wc.MediaWikiVersion.parse('1.24.0'), version)
        self.assertEqual(wc.MediaWikiVersion.parse('1.24'), (1, 24, 0))
        self.assertEqual(str(wc.MediaWikiVersion.parse('1.31.0-wmf.5')),
                         '1.31.0-wmf.5')
    def test_invalid(self):
        """Assert garbage is not a version."""
        with self.assertRaises(ValueError):
            wc.MediaWikiVersion.parse('MediaWiki')
