"""
Token caching.

Tokens are fetched lazily and kept until cleared. Requests for a token
that is already being fetched wait for that fetch instead of making
another one, so any number of threads can ask for the same token at
once and cause only one request.
"""
import logging
import threading
from concurrent.futures import Future, InvalidStateError

from .excs import TokenFetchTimeout, UnauthorizedOperation, WikiClientError
from .misc import wait_for

__all__ = ['TokensManager']

LOGGER = logging.getLogger(__name__)

#: These tokens are all the csrf token since MediaWiki 1.24.
CSRF_TOKEN_TYPES = frozenset((
    'csrf', 'edit', 'delete', 'protect', 'move', 'block', 'unblock',
    'email', 'import',
))

CSRF_UNIFIED_VERSION = (1, 24)
PATROL_TOKEN_VERSION = (1, 17)
PATROL_INFO_VERSION = (1, 20)

def _set_result(future, result):
    try:
        future.set_result(result)
    except InvalidStateError:
        pass

def _set_exception(future, exc):
    try:
        future.set_exception(exc)
    except InvalidStateError:
        pass

class TokensManager(object):
    """Caches the tokens of one site.

    ``fetch_timeout`` is how long, in seconds, a single fetch may take
    before everyone waiting for it gets a TokenFetchTimeout.
    """
    def __init__(self, site, fetch_timeout=60):
        """Initialize an empty token cache."""
        self.site = site
        self.fetch_timeout = max(1, fetch_timeout)
        self._lock = threading.Lock()
        # normalized name -> token string, or a Future while fetching
        self._cache = {}

    def __repr__(self):
        """Represent a TokensManager."""
        return '<TokensManager for {!r}>'.format(self.site)

    @property
    def _version(self):
        site_info = self.site.site_info
        if site_info is None:
            # the site was created with initialize=False
            site_info = self.site.refresh_site_info()
        return site_info.version

    def normalize(self, kind):
        """Return the cache slot name for the token type ``kind``."""
        kind = kind.strip()
        if not kind or '|' in kind:
            raise ValueError('invalid token type: {!r}'.format(kind))
        if self._version >= CSRF_UNIFIED_VERSION:
            if kind in CSRF_TOKEN_TYPES:
                return 'csrf'
        elif self._version < PATROL_TOKEN_VERSION and kind == 'patrol':
            return 'edit'
        return kind

    def get_token(self, kind='csrf', force=False, cancellation=None):
        """Return a token of type ``kind``, fetching it if need be.

        If ``force`` is true, a cached token is not used.
        """
        return self.get_tokens([kind], force, cancellation)[kind]

    def get_tokens(self, kinds, force=False, cancellation=None):
        """Return a dict of tokens, fetching the missing ones together."""
        slots = {kind: self.normalize(kind) for kind in kinds}
        futures = {}
        to_fetch = []
        with self._lock:
            for name in set(slots.values()):
                entry = self._cache.get(name)
                if isinstance(entry, str) and not force:
                    futures[name] = entry
                    continue
                if isinstance(entry, Future) and (
                        not entry.done() or (
                            not force and entry.exception() is None
                        )
                ):
                    futures[name] = entry
                    continue
                future = Future()
                future.set_running_or_notify_cancel()
                self._cache[name] = futures[name] = future
                to_fetch.append(name)
        if to_fetch:
            self._start_fetch(to_fetch, {name: futures[name]
                                         for name in to_fetch})
        result = {}
        for kind, name in slots.items():
            entry = futures[name]
            if isinstance(entry, Future):
                entry = wait_for(entry, cancellation)
                self._settle(name)
            result[kind] = entry
        return result

    def _settle(self, name):
        """Replace a finished fetch with its token."""
        with self._lock:
            entry = self._cache.get(name)
            if isinstance(entry, Future) and entry.done() \
                   and entry.exception() is None:
                self._cache[name] = entry.result()

    def clear_cache(self, kind=None):
        """Forget the cached token of type ``kind``, or every token."""
        if kind is None:
            with self._lock:
                self._cache.clear()
            return
        names = [self.normalize(kind)]
        if kind.strip() == 'patrol' and self._version < PATROL_TOKEN_VERSION:
            names.append('edit')
        with self._lock:
            for name in names:
                self._cache.pop(name, None)

    def _start_fetch(self, names, futures):
        """Fetch ``names`` on a thread of their own.

        The fetch outlives any caller that stops waiting for it.
        """
        LOGGER.debug('Fetching tokens %s from %r', names, self.site)
        timer = threading.Timer(self.fetch_timeout, self._time_out,
                                (futures,))
        timer.daemon = True
        thread = threading.Thread(
            target=self._run_fetch, args=(names, futures, timer),
            name='wiki_client-tokens-' + '|'.join(names), daemon=True
        )
        timer.start()
        thread.start()

    def _run_fetch(self, names, futures, timer):
        try:
            tokens = self._fetch(names)
        except Exception as exc: #pylint: disable=broad-except
            # handed to everyone waiting on the fetch
            for future in futures.values():
                _set_exception(future, exc)
            return
        finally:
            timer.cancel()
        for name, future in futures.items():
            if name in tokens:
                _set_result(future, tokens[name])
            else:
                _set_exception(future, ValueError(
                    'the server did not return a {} token'.format(name)
                ))

    def _time_out(self, futures):
        for name, future in futures.items():
            _set_exception(future, TokenFetchTimeout(
                'fetching the {} token timed out'.format(name)
            ))

    def _fetch(self, names):
        """Fetch tokens from the server. Returns a dict name: token."""
        tokens = {}
        names = list(names)
        if 'patrol' in names and \
               PATROL_TOKEN_VERSION <= self._version < PATROL_INFO_VERSION:
            names.remove('patrol')
            tokens['patrol'] = self._fetch_patrol()
        if not names:
            return tokens
        if self._version >= CSRF_UNIFIED_VERSION:
            tokens.update(self._fetch_meta(names))
        else:
            tokens.update(self._fetch_intoken(names))
        return tokens

    def _fetch_meta(self, names):
        data = self.site.request(action='query', meta='tokens', type=names)
        warnings = data.get('warnings', {}).get('tokens')
        if warnings:
            message = warnings.get('*', '') \
                if isinstance(warnings, dict) else str(warnings)
            if 'Unrecognized value' in message and 'type' in message:
                raise ValueError('invalid token type: ' + message)
            raise WikiClientError('token request failed: ' + message)
        tokens = data['query']['tokens']
        return {name: tokens[name + 'token'] for name in names
                if name + 'token' in tokens}

    def _fetch_intoken(self, names):
        data = self.site.request(action='query', prop='info',
                                 titles='Dummy Title', intoken=names)
        page = next(iter(data['query']['pages'].values()))
        tokens = {}
        for name in names:
            if name + 'token' not in page:
                raise ValueError('invalid token type: {!r}'.format(name))
            tokens[name] = page[name + 'token']
        return tokens

    def _fetch_patrol(self):
        data = self.site.request(action='query', list='recentchanges',
                                 rctoken='patrol', rclimit=1)
        changes = data['query']['recentchanges']
        if changes and 'patroltoken' in changes[0]:
            return changes[0]['patroltoken']
        if 'warnings' in data:
            raise UnauthorizedOperation(
                'permissiondenied', 'you are not allowed to patrol changes'
            )
        raise ValueError('the server did not return a patrol token')
