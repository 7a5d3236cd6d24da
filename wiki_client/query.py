"""
Paginated ``action=query`` requests.

A QueryModule knows which parameters a ``list=``, ``prop=`` or
``generator=`` module takes and how to turn its results into objects.
A PagedQuery drives one module through as many requests as it takes,
following the server's continuation parameters:

..code-block:: python

    query = site.query(wc.lists.AllPagesList(namespace=0))
    for page in query:
        print(page.title)

A PagedQuery can be iterated only once.
"""
import json
import logging
import threading

from .continuation import CONTINUATION_AVAILABLE, CONTINUATION_DONE, \
     CONTINUATION_LOOP, find_result_node, find_continuation_root, \
     parse_continuation
from .excs import UnexpectedDataError
from .misc import GenericData
from .params import QueryParams

__all__ = [
    'LOOP_FAIL',
    'LOOP_FETCH_MORE',
    'QueryModule',
    'PagedQuery',
]

LOGGER = logging.getLogger(__name__)

#: Raise UnexpectedDataError as soon as a continuation loop is seen.
LOOP_FAIL = 0
#: Try to get past a continuation loop by asking for bigger pages.
LOOP_FETCH_MORE = 1

MIN_LOOP_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500
MAX_PAGE_SIZE_HIGH = 1000

class QueryModule(object):
    """Base class for query modules.

    Subclasses set ``kind``, ``name`` and ``prefix``; keyword arguments
    are the module's parameters without the prefix, so
    ``AllPagesList(namespace=0)`` sends ``apnamespace=0``. A trailing
    underscore is dropped, for names like ``from_``.
    """
    kind = 'list'
    name = None
    prefix = ''

    def __init__(self, **filters):
        """Initialize the module with its filter parameters."""
        self.filters = filters

    def __repr__(self):
        """Represent a QueryModule."""
        return '<{} {}={}>'.format(type(self).__name__, self.kind, self.name)

    __str__ = __repr__

    @property
    def result_key(self):
        """The key of the results under the ``query`` node."""
        return self.name

    def parameters(self, pagination_size):
        """Return the parameters for the first request."""
        params = QueryParams({self.kind: self.name})
        params[self.prefix + 'limit'] = pagination_size
        for key, value in self.filters.items():
            params[self.prefix + key.rstrip('_')] = value
        return params

    def find_items(self, response):
        """Return the result node of ``response``, or None."""
        return find_result_node(response, self.result_key)

    def item_from_json(self, site, node): #pylint: disable=no-self-use
        """Turn one result node into an object."""
        return GenericData(site, **node)

    def on_failed(self, exc):
        """Called with the exception when a request fails.

        Modules can raise a more specific exception from here;
        otherwise the original one propagates.
        """
        pass

def _canonical(node):
    return json.dumps(node, sort_keys=True)

class PagedQuery(object):
    """A lazily fetched sequence of query results.

    ``pagination_size`` is the number of items asked for per request.
    ``loop_behavior`` is LOOP_FAIL or LOOP_FETCH_MORE.
    ``cancellation`` is a CancellationToken checked before each
    request. If ``distinct_pages`` is true, pages already yielded are
    skipped, which some generators need.
    """
    def __init__(self, site, module, pagination_size=None,
                 loop_behavior=LOOP_FAIL, cancellation=None,
                 distinct_pages=False):
        """Initialize the query. No requests are made yet."""
        if pagination_size is None:
            pagination_size = site.pagination_size
        if pagination_size < 1:
            raise ValueError('pagination_size must be at least 1')
        self.site = site
        self.module = module
        self.pagination_size = pagination_size
        self.loop_behavior = loop_behavior
        self.cancellation = cancellation
        self.distinct_pages = distinct_pages
        self._started = False
        self._lock = threading.Lock()

    def __repr__(self):
        """Represent a PagedQuery."""
        return '<PagedQuery {!r} on {!r}>'.format(self.module, self.site)

    __str__ = __repr__

    def _claim(self):
        with self._lock:
            if self._started:
                raise RuntimeError('a PagedQuery can only be iterated once')
            self._started = True

    def __iter__(self):
        """Iterate over every item, fetching pages as needed."""
        self._claim()
        return self._items()

    def batches(self):
        """Iterate over the results one request at a time.

        Each batch is a list of items from a single response.
        """
        self._claim()
        return self._batches()

    def _items(self):
        for batch in self._batches():
            for item in batch:
                yield item

    def _fetch(self, params):
        if self.cancellation is not None:
            self.cancellation.raise_if_cancelled()
        try:
            return self.site.request(_cancellation=self.cancellation,
                                     **params)
        except Exception as exc:
            self.module.on_failed(exc)
            raise

    def _nodes(self, response, seen_pages):
        node = self.module.find_items(response)
        if node is None:
            return None
        if isinstance(node, dict):
            if seen_pages is not None:
                node = [value for key, value in node.items()
                        if key not in seen_pages
                        and not seen_pages.add(key)]
            else:
                node = list(node.values())
        return list(node)

    def _convert(self, nodes):
        site = self.site
        return [self.module.item_from_json(site, node) for node in nodes]

    def _batches(self):
        base = QueryParams(action='query', maxlag=5)
        base.merge(self.module.parameters(self.pagination_size))
        continuation = {}
        seen_pages = set() if self.distinct_pages else None
        while True:
            working = base.copy().merge(continuation)
            response = self._fetch(working)
            status = parse_continuation(response, working, continuation)
            nodes = self._nodes(response, seen_pages)
            if nodes:
                yield self._convert(nodes)
            if status == CONTINUATION_DONE:
                return
            if status == CONTINUATION_AVAILABLE:
                if nodes is None:
                    LOGGER.warning('Empty query page with continuation '
                                   'received from %r.', self.site)
                continue
            LOGGER.warning('Continuation information provided by server '
                           'response leads to infinite loop: %s',
                           find_continuation_root(response))
            status, extra = self._escape_loop(base, continuation, nodes,
                                              seen_pages)
            if extra:
                yield self._convert(extra)
            if status == CONTINUATION_DONE:
                return

    def _escape_loop(self, base, continuation, nodes, seen_pages):
        """Ask for bigger pages until the continuation moves on.

        Returns the new status and the items not already yielded.
        """
        if not self.loop_behavior & LOOP_FETCH_MORE:
            raise UnexpectedDataError('Unexpected continuation loop')
        # xxlimit
        working = base.copy().merge(continuation)
        limit_key = None
        for key in working:
            if len(key) == 7 and key.endswith('limit'):
                limit_key = key
                break
        if limit_key is None:
            LOGGER.warning('Failed to find the parameter name for the '
                           'pagination size.')
            raise UnexpectedDataError('Unexpected continuation loop')
        if self.site.account_info.has_right('apihighlimits'):
            max_limit = MAX_PAGE_SIZE_HIGH
        else:
            max_limit = MAX_PAGE_SIZE
        current = max(self.pagination_size, MIN_LOOP_PAGE_SIZE)
        while current < max_limit:
            current = min(max_limit, current * 2)
            LOGGER.warning('Trying to fetch more with %s=%d.',
                           limit_key, current)
            working = base.copy().merge(continuation)
            working[limit_key] = current
            response = self._fetch(working)
            status = parse_continuation(response, working, continuation)
            if status == CONTINUATION_LOOP:
                continue
            LOGGER.info('Successfully got out of the continuation loop.')
            extra = self._nodes(response, seen_pages) or []
            if nodes:
                yielded = set(_canonical(node) for node in nodes)
                extra = [node for node in extra
                         if _canonical(node) not in yielded]
            return status, extra
        raise UnexpectedDataError('Unexpected continuation loop')
