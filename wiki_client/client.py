"""
The HTTP side of things.

A WikiClient sends requests and hands each response to a parser.
Parsers turn the response into JSON or an HTML tree and raise the
right exception for errors; if a response is worth trying again, the
parser marks the ParsingContext and the client retries.
"""
import logging
from warnings import warn as _warn

import requests
from bs4 import BeautifulSoup

from .excs import WikiaApiError, NotFoundApiError, WikiWarning, \
     error_for_code
from .misc import sleep
from .params import QueryParams

__all__ = [
    'DEFAULT_USER_AGENT',
    'WikiClient',
    'ParsingContext',
    'MediaWikiJsonParser',
    'WikiaJsonParser',
    'HtmlParser',
]

LOGGER = logging.getLogger(__name__)

DEFAULT_USER_AGENT = 'wiki_client/1.0.0, python-requests/>=2.18.4'

class ParsingContext(object): #pylint: disable=too-few-public-methods
    """State shared between the client and a parser for one attempt."""
    def __init__(self, url, params):
        self.url = url
        self.params = params
        self.need_retry = False

class MediaWikiJsonParser(object):
    """Parse responses from MediaWiki's api.php."""
    def parse(self, response, context):
        """Return the JSON body of ``response``.

        Raises the WikiError subclass for the error code if the API
        reported an error. API warnings are issued as WikiWarnings.
        """
        if not response.ok:
            context.need_retry = True
            response.raise_for_status()
        try:
            data = response.json()
        except ValueError:
            context.need_retry = True
            raise
        if not isinstance(data, dict):
            return data
        if 'warnings' in data:
            self.warn(data['warnings'])
        if 'error' in data:
            error = data['error']
            code = error.get('code', 'unknown')
            raise error_for_code(code)(code, error.get('info', ''))
        return data

    @staticmethod
    def warn(warnings):
        """Issue a WikiWarning for each module's warning."""
        for module, value in warnings.items():
            message = value.get('*', value.get('warnings')) \
                if isinstance(value, dict) else value
            LOGGER.warning('API warning from %s module: %s', module, message)
            _warn('warning from {} module: {}'.format(module, message),
                  getattr(WikiWarning, module))

class WikiaJsonParser(object):
    """Parse responses from Wikia's Nirvana, AJAX and v1 APIs."""
    def parse(self, response, context):
        """Return the JSON body of ``response``, raising WikiaApiErrors."""
        try:
            data = response.json()
        except ValueError:
            if not response.ok:
                context.need_retry = True
                response.raise_for_status()
            context.need_retry = True
            raise
        if not isinstance(data, dict):
            return data
        exc = data.get('exception')
        if isinstance(exc, dict):
            cls = NotFoundApiError \
                if exc.get('type') == 'NotFoundApiException' \
                else WikiaApiError
            raise cls(exc.get('type'), exc.get('message'), exc.get('code'),
                      exc.get('details'), data.get('trace_id'))
        if 'error' in data:
            status = data.get('status')
            if isinstance(status, int) and status >= 400:
                cls = NotFoundApiError if status == 404 else WikiaApiError
                raise cls(data['error'], data.get('details'), status,
                          data.get('details'))
            LOGGER.warning('Wikia API returned an error node: %s',
                           data['error'])
        if not response.ok:
            context.need_retry = True
            response.raise_for_status()
        return data

class HtmlParser(object):
    """Parse HTML responses, e.g. from index.php?action=render."""
    def parse(self, response, context):
        """Return a BeautifulSoup tree of the response body."""
        if not response.ok:
            context.need_retry = True
            response.raise_for_status()
        return BeautifulSoup(response.text, 'html.parser')

class WikiClient(object):
    """Sends requests to wikis.

    One client may be shared by any number of sites and threads.

    ``timeout`` is the per-request timeout in seconds.
    Failed attempts are retried ``max_retries`` times,
    ``retry_delay`` seconds apart.
    """
    def __init__(self, user_agent=None, timeout=10, max_retries=3,
                 retry_delay=10, session=None):
        """Initialize a client with its retry policy."""
        if max_retries < 0:
            raise ValueError('max_retries cannot be negative')
        if retry_delay < 0:
            raise ValueError('retry_delay cannot be negative')
        if timeout is not None and timeout <= 0:
            raise ValueError('timeout must be positive')
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.session = session if session is not None \
            else requests.session()

    def __repr__(self):
        """Represent a WikiClient."""
        return '<WikiClient {!r}>'.format(self.user_agent)

    __str__ = __repr__

    def invoke(self, url, params, parser=None, post=False, files=None,
               cancellation=None):
        """Send a request and return what ``parser`` makes of it.

        ``params`` may be a QueryParams or any mapping; values are
        converted for the wire first. ``parser`` defaults to a
        MediaWikiJsonParser.
        """
        if parser is None:
            parser = MediaWikiJsonParser()
        if not isinstance(params, QueryParams):
            params = QueryParams(params)
        wire = params.to_wire()
        headers = {'User-Agent': self.user_agent}
        retries = 0
        while True:
            if cancellation is not None:
                cancellation.raise_if_cancelled()
            context = ParsingContext(url, wire)
            LOGGER.debug('%s %s %s', 'POST' if post else 'GET', url, wire)
            try:
                if post:
                    response = self.session.post(
                        url, data=wire, files=files, headers=headers,
                        timeout=self.timeout
                    )
                else:
                    response = self.session.get(
                        url, params=wire, headers=headers,
                        timeout=self.timeout
                    )
                return parser.parse(response, context)
            except (requests.ConnectionError, requests.Timeout) as exc:
                error = exc
            except Exception as exc: #pylint: disable=broad-except
                if not context.need_retry:
                    raise
                error = exc
            if retries >= self.max_retries:
                raise error
            retries += 1
            LOGGER.warning('Request to %s failed (%s), retry %d of %d in '
                           '%s seconds', url, error, retries,
                           self.max_retries, self.retry_delay)
            sleep(self.retry_delay, cancellation)
