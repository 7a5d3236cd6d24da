"""
Wikia (FANDOM) sites.

Besides api.php, Wikia wikis have their own endpoints:
``wikia.php`` (Nirvana controllers), ``index.php?action=ajax`` and
the ``api/v1`` REST API. WikiaSite can call all of them:

..code-block:: python

    site = wc.WikiaSite(client, 'https://community.fandom.com/')
    user = site.fetch_user('Sannse')
    print(user.user_id, user.numberofedits)
"""
import logging

from bs4 import BeautifulSoup

from .client import WikiaJsonParser
from .excs import NotFoundApiError, UnexpectedDataError, WikiError
from .misc import GenericData
from .params import QueryParams
from .site import WikiSite

__all__ = ['WikiaSite', 'WikiaUser', 'WallMessage']

LOGGER = logging.getLogger(__name__)

#: Namespace of Message Wall pages.
NS_MESSAGE_WALL = 1200

USER_BATCH_SIZE = 100

class WikiaUser(GenericData):
    """A user, from the Wikia ``User/Details`` API."""
    def __repr__(self):
        """Represent a WikiaUser."""
        return '<WikiaUser {} ({})>'.format(getattr(self, 'name', None),
                                            getattr(self, 'user_id', None))

    __str__ = __repr__

class WallMessage(object): #pylint: disable=too-few-public-methods
    """A thread posted on a user's Message Wall."""
    def __init__(self, site, id, user, title): #pylint: disable=redefined-builtin
        self.site = site
        self.id = id #pylint: disable=invalid-name
        self.user = user
        self.title = title

    def __repr__(self):
        """Represent a WallMessage."""
        return '<WallMessage {} on {}>'.format(self.id, self.user)

    __str__ = __repr__

def _is_token_error(message):
    message = (message or '').lower()
    return 'token' in message

class WikiaSite(WikiSite):
    """A wiki hosted by Wikia.

    ``site_root`` is the URL of the wiki's root, e.g.
    ``https://community.fandom.com/``; the endpoint URLs are derived
    from it unless given explicitly. Other keywords are as for WikiSite.
    """
    def __init__(self, client, site_root, username=None, password=None,
                 api_endpoint=None, nirvana_url=None, wikia_api_root=None,
                 **kwargs):
        """Initialize the site with its endpoint URLs."""
        root = site_root.rstrip('/')
        self.site_root = root
        self.nirvana_url = nirvana_url or root + '/wikia.php'
        self.wikia_api_root = (wikia_api_root or root + '/api/v1').rstrip('/')
        super().__init__(client, api_endpoint or root + '/api.php',
                         username, password, **kwargs)

    @property
    def script_url(self):
        return self.site_root + '/index.php'

    def invoke_nirvana(self, params, parser=None, post=False,
                       cancellation=None):
        """Call a Nirvana controller through wikia.php."""
        params = QueryParams(params)
        params.setdefault('format', 'json')
        return self.client.invoke(self.nirvana_url, params,
                                  parser or WikiaJsonParser(), post,
                                  cancellation=cancellation)

    def invoke_wikia_ajax(self, params, parser=None, post=False,
                          cancellation=None):
        """Call an AJAX function through index.php?action=ajax."""
        params = QueryParams(action='ajax').merge(params)
        return self.client.invoke(self.script_url, params,
                                  parser or WikiaJsonParser(), post,
                                  cancellation=cancellation)

    def invoke_wikia_api(self, path, params=None, parser=None, post=False,
                         cancellation=None):
        """Call the Wikia REST API; ``path`` is e.g. ``/User/Details``."""
        url = self.wikia_api_root + '/' + path.lstrip('/')
        return self.client.invoke(url, QueryParams(params or {}),
                                  parser or WikiaJsonParser(), post,
                                  cancellation=cancellation)

    def _users_from_json(self, data):
        basepath = data.get('basepath')
        users = []
        for item in data.get('items', ()):
            user = WikiaUser(self, **item)
            if basepath and getattr(user, 'url', None):
                user.url = basepath + user.url
            users.append(user)
        return users

    def fetch_user(self, name, cancellation=None):
        """Return a WikiaUser for ``name``, or None if there is none."""
        if ',' in name:
            raise ValueError('user name cannot contain a comma')
        try:
            data = self.invoke_wikia_api('/User/Details', {'ids': name},
                                         cancellation=cancellation)
        except NotFoundApiError:
            return None
        users = self._users_from_json(data)
        return users[0] if users else None

    def fetch_users(self, names, cancellation=None):
        """Generate WikiaUsers for ``names``; unknown names are skipped."""
        names = list(names)
        for start in range(0, len(names), USER_BATCH_SIZE):
            batch = names[start:start + USER_BATCH_SIZE]
            try:
                data = self.invoke_wikia_api(
                    '/User/Details', {'ids': ', '.join(batch)},
                    cancellation=cancellation
                )
            except NotFoundApiError:
                # none of this batch exists
                continue
            for user in self._users_from_json(data):
                yield user

    def post_wall_message(self, user, title, body, cancellation=None):
        """Start a new thread on ``user``'s Message Wall.

        If the server rejects the edit token, it is fetched again and
        the post retried once.
        """
        retried = False
        while True:
            token = self.get_token('edit', force=retried,
                                   cancellation=cancellation)
            with self.modification_throttler.queue_work(
                    'wall message to ' + user, cancellation):
                data = self.invoke_nirvana({
                    'controller': 'WallExternal',
                    'method': 'postNewMessage',
                    'token': token,
                    'pagenamespace': NS_MESSAGE_WALL,
                    'pagetitle': user,
                    'messagetitle': title,
                    'body': body,
                    'notifyeveryone': 0,
                    'convertToFormat': '',
                }, post=True, cancellation=cancellation)
            if data.get('status') is True:
                return WallMessage(self, self._message_id(data), user, title)
            message = data.get('errormsg') or data.get('msg') or \
                data.get('message')
            if not retried and _is_token_error(message):
                LOGGER.warning('Wall message token rejected (%s); '
                               'retrying with a new token.', message)
                self.clear_tokens('edit')
                retried = True
                continue
            raise WikiError.wallmessagefailed('wallmessagefailed', message)

    @staticmethod
    def _message_id(data):
        soup = BeautifulSoup(data.get('message') or '', 'html.parser')
        node = soup.find(attrs={'data-id': True})
        if node is None:
            raise UnexpectedDataError(
                'cannot find the message id in the response'
            )
        return int(node['data-id'])
