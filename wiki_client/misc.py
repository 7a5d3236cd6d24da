"""This submodule contains the small classes."""
import re
import threading
from concurrent.futures import Future
from contextlib import contextmanager
from functools import total_ordering

from .excs import OperationCanceled

class _CachedAttribute(object): # pylint: disable=too-few-public-methods
    '''Computes attribute value and caches it in the instance.
    From the Python Cookbook (Denis Otkidach)
    This decorator allows you to create a property which can be computed once
    and accessed many times. Sort of like memoization.
    '''
    def __init__(self, method, name=None):
        """Initialize the cached attribute."""
        self.method = method
        self.name = name or method.__name__
        self.__doc__ = method.__doc__
    def __get__(self, inst, cls):
        """Get the cached attribute."""
        if inst is None:
            return self
        result = self.method(inst)
        # setattr redefines the instance's attribute so this doesn't get called again
        setattr(inst, self.name, result)
        return result

class CancellationToken(object):
    """A flag that can be raised once to stop blocking operations.

    Pass the same token to several calls to cancel all of them at once:

    ..code-block:: python

        token = wc.CancellationToken()
        threading.Timer(30, token.cancel).start()
        for page in site.allpages(cancellation=token):
            print(page.title)
    """
    def __init__(self):
        """Initialize an uncanceled token."""
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks = []

    def __repr__(self):
        """Represent a CancellationToken."""
        return '<CancellationToken{}>'.format(
            ' (canceled)' if self.cancelled else ''
        )

    @property
    def cancelled(self):
        """True once cancel() has been called."""
        return self._event.is_set()

    def cancel(self):
        """Cancel every operation watching this token."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def raise_if_cancelled(self):
        """Raise OperationCanceled if the token has been canceled."""
        if self.cancelled:
            raise OperationCanceled('the operation was canceled')

    @contextmanager
    def register(self, callback):
        """Call ``callback`` on cancellation while inside the block.

        If the token is already canceled, ``callback`` is called at once.
        """
        with self._lock:
            fire = self._event.is_set()
            if not fire:
                self._callbacks.append(callback)
        if fire:
            callback()
        try:
            yield
        finally:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

    def sleep(self, delay):
        """Sleep for ``delay`` seconds unless canceled first."""
        if self._event.wait(delay):
            self.raise_if_cancelled()

def sleep(delay, cancellation=None):
    """Sleep for ``delay`` seconds, waking early on cancellation."""
    if cancellation is None:
        cancellation = CancellationToken()
    cancellation.sleep(delay)

def wait_for(future, cancellation=None, timeout=None):
    """Wait for a Future to finish and return its result.

    Canceling only stops this wait; the future itself keeps running.
    """
    if cancellation is None:
        return future.result(timeout)
    cancellation.raise_if_cancelled()
    woken = threading.Event()
    future.add_done_callback(lambda _: woken.set())
    with cancellation.register(woken.set):
        woken.wait(timeout)
    if future.done():
        return future.result()
    cancellation.raise_if_cancelled()
    return future.result(0)

def completed_future(result=None):
    """Return a Future which is already done."""
    future = Future()
    future.set_result(result)
    return future

@total_ordering
class MediaWikiVersion(object):
    """A MediaWiki version such as 1.31.0-wmf.5.

    Versions compare by their numeric parts only:

    ..code-block:: python

        >>> MediaWikiVersion.parse('MediaWiki 1.23.5') < (1, 24)
        True
    """
    _PATTERN = re.compile(r'(\d+)\.(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:-?(.+))?')

    def __init__(self, major, minor, revision=0, build=0, suffix=''):
        """Initialize a version from its parts."""
        self.major = major
        self.minor = minor
        self.revision = revision
        self.build = build
        self.suffix = suffix

    @classmethod
    def parse(cls, text):
        """Parse a version from e.g. siteinfo's ``generator`` field."""
        match = cls._PATTERN.search(text or '')
        if match is None:
            raise ValueError('invalid MediaWiki version: {!r}'.format(text))
        parts = [int(part or 0) for part in match.group(1, 2, 3, 4)]
        return cls(*parts, suffix=match.group(5) or '')

    def as_tuple(self):
        """Return the numeric parts as a tuple."""
        return (self.major, self.minor, self.revision, self.build)

    def _other(self, other):
        if isinstance(other, MediaWikiVersion):
            return other.as_tuple()
        if isinstance(other, tuple):
            return tuple(other) + (0,) * (4 - len(other))
        if isinstance(other, str):
            return MediaWikiVersion.parse(other).as_tuple()
        return NotImplemented

    def __eq__(self, other):
        other = self._other(other)
        if other is NotImplemented:
            return other
        return self.as_tuple() == other

    def __lt__(self, other):
        other = self._other(other)
        if other is NotImplemented:
            return other
        return self.as_tuple() < other

    def __hash__(self):
        """MediaWikiVersion.__hash__() <==> hash(MediaWikiVersion)"""
        return hash(self.as_tuple())

    def __repr__(self):
        """Represent a MediaWikiVersion."""
        return '<MediaWikiVersion {}>'.format(self)

    def __str__(self):
        version = '{}.{}.{}'.format(self.major, self.minor, self.revision)
        if self.build:
            version += '.{}'.format(self.build)
        if self.suffix:
            version += '-' + self.suffix
        return version

class GenericData(object):
    """Generic API data. Accepts any keywords."""
    def __init__(self, site, **data):
        """Initialize the data."""
        self.site = site
        self.__dict__.update(data)

    def __repr__(self):
        """Represent the data."""
        return '<GenericData {}>'.format(
            {k: v for k, v in self.__dict__.items() if k != 'site'}
        )

    __str__ = __repr__

    def __eq__(self, other):
        """Check if two GenericDatas are equal."""
        if not isinstance(other, GenericData):
            return NotImplemented
        return self.info == other.info

    __hash__ = None

    @property
    def info(self):
        """Return a dict of the data."""
        data = self.__dict__.copy()
        del data['site']
        return data
