"""Test the Page, Revision and RecentChange classes."""
from unittest import TestCase
import wiki_client as wc
from fakes import make_site, query_handler

def read_handler(content='Hello', timestamp='2020-01-01T00:00:00Z'):
    """Answer content reads."""
    def handler(url, params):
        if params.get('prop') == 'revisions' and \
               'content' in params.get('rvprop', ''):
            return {'query': {'pages': {'1': {
                'pageid': 1, 'title': 'A', 'revisions': [{
                    'timestamp': timestamp,
                    'slots': {'main': {'contentmodel': 'wikitext',
                                       '*': content}},
                }],
            }}}}
        return None
    return handler

def latest_handler(timestamp):
    """Answer the newest-revision check before an edit."""
    def handler(url, params):
        if params.get('prop') == 'revisions' and params.get('rvlimit') == '1':
            return {'query': {'pages': {'1': {
                'pageid': 1, 'title': 'A',
                'revisions': [{'revid': 9, 'timestamp': timestamp}],
            }}}}
        return None
    return handler

def edit_handler(sent):
    """Accept edits, recording their parameters."""
    def handler(url, params):
        if params.get('action') == 'edit':
            sent.append(params)
            return {'edit': {'result': 'Success', 'newrevid': 10}}
        if params.get('meta') == 'tokens':
            return {'query': {'tokens': {'csrftoken': 'tok+\\'}}}
        return None
    return handler

class TestPage(TestCase):
    """Test the Page class."""
    def test_read(self):
        """Assert read returns the main slot content."""
        site = make_site(read_handler('Hello'))
        page = site.page('A')
        self.assertEqual(page.read(), 'Hello')
        self.assertEqual(page.content, 'Hello')
    def test_read_missing(self):
        """Assert reading a missing page raises WikiError.notfound."""
        site = make_site(query_handler(
            [{'query': {'pages': {'-1': {'title': 'A', 'missing': ''}}}}],
            prop='revisions'
        ))
        page = site.page('A')
        with self.assertRaises(wc.WikiError.notfound):
            page.read()
        self.assertFalse(page)
    def test_edit(self):
        """Assert edit sends a csrf token through the throttler."""
        sent = []
        site = make_site(read_handler(),
                         latest_handler('2020-01-01T00:00:00Z'),
                         edit_handler(sent))
        site.modification_throttler.throttle_time = 0
        page = site.page('A')
        page.read()
        result = page.edit('Bye', 'testing')
        self.assertEqual(result['newrevid'], 10)
        self.assertEqual(sent[0]['token'], 'tok+\\')
        self.assertEqual(sent[0]['text'], 'Bye')
        self.assertEqual(sent[0]['bot'], '')
        self.assertTrue(site.modification_throttler.completion().done())
    def test_edit_conflict(self):
        """Assert a newer revision since the read is an EditConflict."""
        sent = []
        site = make_site(read_handler(timestamp='2020-01-01T00:00:00Z'),
                         latest_handler('2020-01-02T00:00:00Z'),
                         edit_handler(sent))
        page = site.page('A')
        page.read()
        with self.assertRaises(wc.EditConflict):
            page.edit('Bye', 'testing')
        self.assertEqual(sent, [])
        sent_ok = []
        site.client.add(edit_handler(sent_ok))
        site.modification_throttler.throttle_time = 0
        page.edit('Bye', 'testing', erroronconflict=False)
        self.assertEqual(len(sent_ok), 1)
    def test_render(self):
        """Assert render parses index.php's HTML."""
        def handler(url, params):
            if params.get('action') == 'render':
                self.assertEqual(url, 'https://wiki.test/w/index.php')
                return '<div class="mw-parser-output"><p>Hi</p></div>'
            return None
        site = make_site(handler)
        soup = site.page('A').render()
        self.assertEqual(soup.find('p').get_text(), 'Hi')
    def test_categories(self):
        """Assert categories() yields category Pages."""
        site = make_site(query_handler([{'query': {'pages': {'1': {
            'pageid': 1, 'title': 'A', 'categories': [
                {'ns': 14, 'title': 'Category:X'},
                {'ns': 14, 'title': 'Category:Y'},
            ]}}}}], prop='categories'))
        titles = [cat.title for cat in site.page('A').categories()]
        self.assertEqual(titles, ['Category:X', 'Category:Y'])
    def test_categorymembers(self):
        """Assert categorymembers() lists the category."""
        site = make_site(query_handler([{'query': {'categorymembers': [
            {'ns': 0, 'title': 'B'}
        ]}}], list='categorymembers'))
        members = list(site.category('Foo').categorymembers())
        self.assertEqual(members, [wc.Page(site, title='B')])
        sent = site.client.calls(list='categorymembers')[0]
        self.assertEqual(sent['cmtitle'], 'Category:Foo')
    def test_equality(self):
        """Assert pages compare by title."""
        site = make_site()
        self.assertEqual(site.page('A'), wc.Page(site, title='A'))
        page = site.page('A')
        self.assertIs(site.page(page), page)

class TestRecentChange(TestCase):
    """Test the RecentChange class."""
    def test_patrol(self):
        """Assert patrol uses a patrol token."""
        sent = []
        def handler(url, params):
            if params.get('meta') == 'tokens':
                return {'query': {'tokens': {'patroltoken': 'p+\\'}}}
            if params.get('action') == 'patrol':
                sent.append(params)
                return {'patrol': {'rcid': 5}}
            return None
        site = make_site(handler)
        change = wc.RecentChange(site, rcid=5, title='A')
        change.patrol()
        self.assertEqual(sent[0]['token'], 'p+\\')
        self.assertEqual(sent[0]['rcid'], '5')
        self.assertEqual(change.info, {'rcid': 5, 'title': 'A'})
