"""
See the WikiSite docstrings.
"""
#pylint: disable=too-many-public-methods
import logging
import threading
from urllib.parse import urlsplit

from . import lists as _lists
from . import page as _page
from .client import WikiClient
from .excs import BadTokenError, UnexpectedDataError, WikiError
from .misc import MediaWikiVersion, sleep
from .params import QueryParams, SiteToken
from .query import LOOP_FAIL, PagedQuery
from .throttle import Throttler
from .tokens import TokensManager

__all__ = ['SiteInfo', 'AccountInfo', 'WikiSite']

LOGGER = logging.getLogger(__name__)

class SiteInfo(object): #pylint: disable=too-few-public-methods
    """General information about a wiki, from ``meta=siteinfo``."""
    def __init__(self, **general):
        """Initialize from the ``general`` node."""
        self.sitename = None
        self.server = None
        self.scriptpath = ''
        self.articlepath = None
        self.mainpage = None
        self.generator = None
        self.__dict__.update(general)
        self.version = MediaWikiVersion.parse(self.generator)

    def __repr__(self):
        """Represent a SiteInfo."""
        return '<SiteInfo {} ({})>'.format(self.sitename, self.version)

    __str__ = __repr__

class AccountInfo(object):
    """The account the site is being used with, from ``meta=userinfo``."""
    def __init__(self, **userinfo):
        """Initialize from the ``userinfo`` node."""
        self.id = 0 #pylint: disable=invalid-name
        self.name = None
        self.groups = []
        self.rights = []
        self.__dict__.update(userinfo)

    def __repr__(self):
        """Represent an AccountInfo."""
        return '<AccountInfo {} ({})>'.format(self.name, self.id)

    __str__ = __repr__

    @property
    def is_anonymous(self):
        """True if not logged in."""
        return 'anon' in self.__dict__

    @property
    def is_user(self):
        """True if in the ``user`` group."""
        return 'user' in self.groups

    @property
    def is_bot(self):
        """True if in the ``bot`` group."""
        return 'bot' in self.groups

    @property
    def is_blocked(self):
        """True if the account is blocked."""
        return 'blockid' in self.__dict__

    def has_right(self, right):
        """Check whether the account has the user right ``right``."""
        return right in self.rights

    def in_group(self, group):
        """Check whether the account is in the user group ``group``."""
        return group in self.groups

class WikiSite(object):
    """A MediaWiki site. Contains most API modules as methods.

    ``client`` is the WikiClient to send requests through.
    ``api_endpoint`` is the URL of api.php.
    If ``username`` and ``password`` are given, log in first.
    ``pagination_size`` is the default number of items per request
    for paginated queries.
    """
    def __init__(self, client, api_endpoint, username=None, password=None,
                 pagination_size=10, initialize=True):
        """Initialize the site, fetching site and account information
        unless ``initialize`` is False.
        """
        if client is None:
            client = WikiClient()
        if pagination_size < 1:
            raise ValueError('pagination_size must be at least 1')
        self.client = client
        self.api_endpoint = api_endpoint
        self.pagination_size = pagination_size
        self.site_info = None
        self.account_info = None
        self.tokens = TokensManager(
            self, max(1, (client.timeout or 10) + client.retry_delay)
            * max(1, client.max_retries)
        )
        self.modification_throttler = Throttler()
        self._login_lock = threading.Lock()
        if initialize:
            if username is not None:
                self.login(username, password)
            self.refresh_site_info()
            if self.account_info is None:
                self.refresh_account_info()

    def __repr__(self):
        """Represent a WikiSite."""
        name = self.site_info.sitename if self.site_info else None
        return '<{} {} at {}>'.format(type(self).__name__, name,
                                      self.api_endpoint)

    __str__ = __repr__

    def __eq__(self, other):
        """Check if two WikiSites are equal."""
        if not isinstance(other, WikiSite):
            return NotImplemented
        return self.api_endpoint == other.api_endpoint

    def __hash__(self):
        """WikiSite.__hash__() <==> hash(WikiSite)"""
        return hash(self.api_endpoint)

    @property
    def script_url(self):
        """The URL of index.php."""
        if self.site_info is None:
            return self.api_endpoint.rsplit('/', 1)[0] + '/index.php'
        server = self.site_info.server or ''
        if server.startswith('//'):
            server = urlsplit(self.api_endpoint).scheme + ':' + server
        return '{}{}/index.php'.format(server, self.site_info.scriptpath)

    def request(self, _post=False, _cancellation=None, files=None,
                **params):
        """Send a request to api.php and return the JSON response.

        Any SiteToken values are replaced with a token of that type,
        and the request is POSTed. If the API says the token is bad, it
        is fetched again and the request retried once.
        """
        params = QueryParams(params)
        params['format'] = 'json'
        token_keys = [key for key, value in params.items()
                      if isinstance(value, SiteToken)]
        if not token_keys:
            return self.client.invoke(self.api_endpoint, params, post=_post,
                                      files=files,
                                      cancellation=_cancellation)
        try:
            return self._request_with_tokens(params, token_keys, files,
                                             _cancellation)
        except BadTokenError:
            LOGGER.warning('Bad token on %r; fetching it again.', self)
            for key in token_keys:
                self.tokens.clear_cache(params[key].kind)
            return self._request_with_tokens(params, token_keys, files,
                                             _cancellation)

    def _request_with_tokens(self, params, token_keys, files, cancellation):
        kinds = [params[key].kind for key in token_keys]
        tokens = self.tokens.get_tokens(kinds, cancellation=cancellation)
        resolved = params.copy()
        for key in token_keys:
            resolved[key] = tokens[params[key].kind]
        return self.client.invoke(self.api_endpoint, resolved, post=True,
                                  files=files, cancellation=cancellation)

    def post_request(self, **params):
        """Same as request(), except with POST."""
        return self.request(_post=True, **params)

    def get_token(self, kind='csrf', force=False, cancellation=None):
        """Return a token of type ``kind``. See TokensManager.get_token."""
        return self.tokens.get_token(kind, force, cancellation)

    def clear_tokens(self, kind=None):
        """Forget cached tokens. See TokensManager.clear_cache."""
        self.tokens.clear_cache(kind)

    def refresh_site_info(self):
        """Fetch general information about the wiki."""
        data = self.request(action='query', meta='siteinfo',
                            siprop='general')
        self.site_info = SiteInfo(**data['query']['general'])
        LOGGER.debug('Site info of %s: %r', self.api_endpoint,
                     self.site_info)
        return self.site_info

    def refresh_account_info(self):
        """Fetch information about the account in use."""
        data = self.request(action='query', meta='userinfo',
                            uiprop=['blockinfo', 'groups', 'hasmsg',
                                    'rights'])
        self.account_info = AccountInfo(**data['query']['userinfo'])
        return self.account_info

    def login(self, username, password, domain=None):
        """Log in with a username and password; store cookies.

        On MediaWiki 1.27 and later, this wants a bot password.
        """
        if not username:
            raise ValueError('username cannot be empty')
        if not password:
            raise ValueError('password cannot be empty')
        if not self._login_lock.acquire(False):
            raise RuntimeError('cannot log in or out concurrently')
        try:
            token = None
            if self.site_info is not None \
                   and self.site_info.version >= (1, 27):
                token = self.tokens.get_token('login', force=True)
            while True:
                data = self.post_request(
                    action='login', lgname=username, lgpassword=password,
                    lgtoken=token, lgdomain=domain
                )['login']
                result = data['result']
                if result == 'Success':
                    break
                if result == 'NeedToken':
                    token = data['token']
                    continue
                if result == 'Throttled':
                    LOGGER.warning('%r login throttled: %s seconds.',
                                   self, data['wait'])
                    sleep(int(data['wait']))
                    continue
                if result == 'WrongToken':
                    raise UnexpectedDataError(
                        'Unexpected login result: {}'.format(result)
                    )
                raise getattr(WikiError, result)(
                    result, data.get('reason', 'login failed')
                )
            self.tokens.clear_cache()
            self.refresh_account_info()
            LOGGER.info('Logged in to %r as %r.', self, self.account_info)
            return data
        finally:
            self._login_lock.release()

    def logout(self):
        """Log out the current user."""
        if not self._login_lock.acquire(False):
            raise RuntimeError('cannot log in or out concurrently')
        try:
            params = {'action': 'logout'}
            if self.site_info is not None \
                   and self.site_info.version >= (1, 34):
                params['token'] = SiteToken('csrf')
            data = self.post_request(**params)
            self.tokens.clear_cache()
            self.refresh_account_info()
            LOGGER.info('Logged out of %r.', self)
            return data
        finally:
            self._login_lock.release()

    def page(self, title, **evil):
        """Return a Page instance based off of the title of the page."""
        if isinstance(title, _page.Page):
            return title
        return _page.Page(self, title=title, **evil)

    def category(self, title, **evil):
        """Return a Page instance based off of the title of the category.

        The "Category:" prefix is added if it is not there.
        """
        if isinstance(title, _page.Page):
            return title
        if not title.startswith('Category:'):
            title = 'Category:' + title
        return _page.Page(self, title=title, **evil)

    def query(self, module, pagination_size=None, loop_behavior=LOOP_FAIL,
              cancellation=None, distinct_pages=False):
        """Return a PagedQuery for the QueryModule ``module``."""
        return PagedQuery(self, module, pagination_size, loop_behavior,
                          cancellation, distinct_pages)

    def allpages(self, namespace=0, prefix=None, pagination_size=None,
                 cancellation=None, **evil):
        """Generate all Pages in ``namespace``."""
        return self.query(_lists.AllPagesList(
            namespace=namespace, prefix=prefix, **evil
        ), pagination_size, cancellation=cancellation)

    def allcategories(self, prefix=None, pagination_size=None,
                      cancellation=None, **evil):
        """Generate all categories as Pages."""
        return self.query(_lists.AllCategoriesList(prefix=prefix, **evil),
                          pagination_size, cancellation=cancellation)

    def recentchanges(self, pagination_size=None, cancellation=None,
                      **evil):
        """Retrieve recent changes on the wiki, a la Special:RecentChanges"""
        return self.query(_lists.RecentChangesList(**evil), pagination_size,
                          cancellation=cancellation)

    def logevents(self, title=None, user=None, pagination_size=None,
                  cancellation=None, **evil):
        """Generate log events, optionally for one title or user."""
        return self.query(_lists.LogEventsList(
            title=title, user=user, **evil
        ), pagination_size, cancellation=cancellation)

    def search(self, term, namespace=None, pagination_size=None,
               cancellation=None, **evil):
        """Search pages for ``term``.

        Specify ``namespace`` to only search in that/those namespace(s).
        """
        return self.query(_lists.SearchList(
            search=term, namespace=namespace, **evil
        ), pagination_size, cancellation=cancellation)

    def geosearch(self, coord=None, radius=None, page=None,
                  pagination_size=None, cancellation=None, **evil):
        """Generate pages near a ``(lat, lon)`` coordinate or a page."""
        return self.query(_lists.GeoSearchList(
            coord=coord, radius=radius, page=page, **evil
        ), pagination_size, cancellation=cancellation)

    def usercontribs(self, user, pagination_size=None, cancellation=None,
                     **evil):
        """Generate the contributions of ``user``, as Revisions."""
        return self.query(_lists.UserContribsList(user=user, **evil),
                          pagination_size, cancellation=cancellation)
