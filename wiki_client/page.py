"""
This submodule contains the Page, Revision and RecentChange objects.
"""
# pylint: disable=method-hidden
import calendar
import time

from . import lists as _lists
from .client import HtmlParser
from .excs import WikiError, EditConflict
from .misc import _CachedAttribute
from .params import SiteToken
from .query import PagedQuery

__all__ = [
    'Page',
    'Revision',
    'RecentChange',
]

def _parse_timestamp(timestamp):
    return calendar.timegm(time.strptime(timestamp, '%Y-%m-%dT%H:%M:%SZ'))

def _revision_content(data):
    """Get the content of a revision node, with or without slots."""
    if 'slots' in data:
        data = data['slots']['main']
    return data.get('*', data.get('content'))

class Page(object):
    """The class for a page on a wiki.

    Must be initialized with a WikiSite instance.

    Pages with the "missing" attribute set evaluate to False.
    """
    def __init__(self, site, title=None, **data):
        """Initialize a page with its site and title.

        Any other keywords (e.g. from query results) are set as
        attributes.
        """
        self.site = site
        self.title = title
        self.__dict__.update(data)

    def __bool__(self):
        """Return whether the page exists - i.e., doesn't have the
        "missing" attribute.
        """
        return not hasattr(self, 'missing')

    def __repr__(self):
        """Represent a page instance."""
        return "<Page {name}>".format(name=self.title)

    def __eq__(self, other):
        """Check if two pages are the same."""
        if not isinstance(other, Page):
            return NotImplemented
        return self.title == other.title

    def __hash__(self):
        """Page.__hash__() <==> hash(Page)"""
        return hash(self.title)

    __str__ = __repr__

    def info(self):
        """Query information about the page."""
        data = self.site.request(
            action='query', titles=self.title, prop='info',
            inprop=['protection', 'talkid', 'url', 'displaytitle']
        )
        page_data = tuple(data['query']['pages'].values())[0]
        page_data.pop('title', None) #don't override the title
        self.__dict__.update(page_data)
        return page_data

    _lasttimestamp = float('inf')

    def read(self):
        """Retrieve the page's content."""
        data = self.site.request(
            action='query', titles=self.title, prop='revisions',
            rvprop=['content', 'timestamp'], rvlimit=1, rvslots='main'
        )
        page_data = tuple(data['query']['pages'].values())[0]
        if 'missing' in page_data or not page_data.get('revisions'):
            self.missing = ''
            raise WikiError.notfound('notfound', 'The page does not exist.')
        revision = page_data['revisions'][0]
        self._lasttimestamp = _parse_timestamp(revision['timestamp'])
        self.content = _revision_content(revision)
        return self.content

    @_CachedAttribute
    def content(self):
        """This property replaces itself when contents are fetched.
        To update this property, use ``read``. Always prefer the ``read``
        method over using the property.
        """
        return self.read()

    def edit(self, content, summary, erroronconflict=True,
             cancellation=None, **evil):
        """Edit the page with the content ``content``.

        The edit waits its turn in the site's modification throttler.
        Raises EditConflict if someone else edited the page since it
        was last read, unless ``erroronconflict`` is False.
        """
        if erroronconflict:
            latest = next(iter(self.revisions(pagination_size=1)), None)
            if latest is not None and \
                   _parse_timestamp(latest.timestamp) > self._lasttimestamp:
                raise EditConflict('The last fetch was before '
                                   'the most recent revision.')
        params = {
            'action': 'edit',
            'title': self.title,
            'token': SiteToken('csrf'),
            'text': content,
            'summary': summary,
            'bot': True,
        }
        params.update(evil)
        throttler = self.site.modification_throttler
        with throttler.queue_work('edit ' + self.title, cancellation):
            result = self.site.request(_post=True,
                                       _cancellation=cancellation, **params)
        result = result['edit']
        if result.get('result') != 'Success':
            raise WikiError.editfailed(
                'editfailed', 'edit result: {}'.format(result.get('result'))
            )
        self._lasttimestamp = float('inf')
        return result

    def render(self, cancellation=None):
        """Return the rendered HTML of the page as a BeautifulSoup."""
        return self.site.client.invoke(
            self.site.script_url, {'action': 'render', 'title': self.title},
            parser=HtmlParser(), cancellation=cancellation
        )

    def _query(self, module, pagination_size, cancellation):
        return PagedQuery(self.site, module, pagination_size,
                          cancellation=cancellation)

    def categories(self, pagination_size=None, cancellation=None, **evil):
        """Generate the categories this page is in, as Pages."""
        return self._query(_lists.PageCategoriesList(self, **evil),
                           pagination_size, cancellation)

    def links(self, pagination_size=None, cancellation=None, **evil):
        """Generate the pages this page links to."""
        return self._query(_lists.PageLinksList(self, **evil),
                           pagination_size, cancellation)

    def revisions(self, pagination_size=None, cancellation=None, **evil):
        """Generate the revisions of this page, newest first."""
        return self._query(_lists.PageRevisionsList(self, **evil),
                           pagination_size, cancellation)

    def backlinks(self, pagination_size=None, cancellation=None, **evil):
        """Generate the pages linking to this page."""
        return self._query(_lists.BacklinksList(title=self.title, **evil),
                           pagination_size, cancellation)

    def transclusions(self, pagination_size=None, cancellation=None,
                      **evil):
        """Generate the pages transcluding this page."""
        return self._query(
            _lists.TransclusionsList(title=self.title, **evil),
            pagination_size, cancellation
        )

    def categorymembers(self, pagination_size=None, cancellation=None,
                        **evil):
        """Generate the members of this category."""
        return self._query(
            _lists.CategoryMembersList(title=self.title, **evil),
            pagination_size, cancellation
        )

class Revision(object):
    """The class for a revision of a page."""
    def __init__(self, site, page=None, **data):
        """Initialize a revision with its site and page.

        ``page`` may be a Page or a title; if it is not given, the
        ``title`` in ``data`` is used.
        """
        self.site = site
        if page is None:
            page = data.pop('title', None)
        if not isinstance(page, Page):
            page = Page(site, title=page)
        self.page = page
        self.revid = None
        self.__dict__.update(data)

    def __repr__(self):
        """Represent a revision of a page."""
        return "<Revision {revid} of page {name}>".format(
            revid=self.revid, name=self.page.title
        )

    __str__ = __repr__

    def __eq__(self, other):
        """Check if two revisions are the same."""
        if not isinstance(other, Revision):
            return NotImplemented
        return self.revid == other.revid

    def __hash__(self):
        """Revision.__hash__() <==> hash(Revision)"""
        return hash(self.revid)

    def read(self):
        """Retrieve the content of this revision."""
        data = self.site.request(action='query', prop='revisions',
                                 revids=self.revid, rvprop='content',
                                 rvslots='main')
        page_data = list(data['query']['pages'].values())[0]
        return _revision_content(page_data['revisions'][0])

class RecentChange(object):
    """A recent change. Used *specifically* for WikiSite.recentchanges."""
    def __init__(self, site, **change):
        """Initialize a recent change."""
        self.site = site
        self.rcid = None
        self.__dict__.update(change)

    def __repr__(self):
        """Represent a recent change."""
        return "<Recent change id {rc}>".format(rc=self.rcid)

    __str__ = __repr__

    def __eq__(self, other):
        """Check if two changes are the same."""
        if not isinstance(other, RecentChange):
            return NotImplemented
        return self.rcid == other.rcid

    def __hash__(self):
        """RecentChange.__hash__() <==> hash(RecentChange)"""
        return hash(self.rcid)

    def patrol(self, cancellation=None):
        """Patrol this recent change."""
        return self.site.request(_post=True, _cancellation=cancellation,
                                 action='patrol', rcid=self.rcid,
                                 token=SiteToken('patrol'))

    @property
    def info(self):
        """Return a dict of information about this recent change."""
        info = self.__dict__.copy()
        del info['site']
        return info
