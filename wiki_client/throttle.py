"""
Throttling of modifications.

Each piece of work waits for the previous one to finish, then for
``throttle_time`` seconds more, before it starts:

..code-block:: python

    with site.modification_throttler.queue_work('edit Foo'):
        site.post_request(action='edit', ...)
"""
import logging
import threading
from concurrent.futures import Future

from .excs import OperationCanceled
from .misc import completed_future, sleep, wait_for

__all__ = ['Throttler', 'WorkItem']

LOGGER = logging.getLogger(__name__)

class WorkItem(object):
    """A unit of work queued in a Throttler.

    Call complete() (or leave the ``with`` block) when the work is done
    so that the next item can start.
    """
    def __init__(self, name):
        """Initialize the work item."""
        self.name = name
        self.completion = Future()
        self.completion.set_running_or_notify_cancel()

    def __repr__(self):
        """Represent a WorkItem."""
        return '<WorkItem {!r}{}>'.format(
            self.name, ' (done)' if self.completion.done() else ''
        )

    def complete(self):
        """Mark the work as finished. Calling this twice is harmless."""
        if not self.completion.done():
            self.completion.set_result(None)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.complete()

class Throttler(object):
    """Runs queued work one at a time with a delay in between."""
    def __init__(self, throttle_time=5):
        """Initialize the throttler; ``throttle_time`` is in seconds."""
        self._lock = threading.Lock()
        self._last = None
        self._queued = 0
        self.throttle_time = throttle_time

    def __repr__(self):
        """Represent a Throttler."""
        return '<Throttler {}s, {} queued>'.format(self.throttle_time,
                                                   self.queued_work_count)

    @property
    def throttle_time(self):
        """Minimum delay in seconds between two pieces of work."""
        return self._throttle_time

    @throttle_time.setter
    def throttle_time(self, value):
        if value < 0:
            raise ValueError('throttle_time cannot be negative')
        self._throttle_time = value

    @property
    def queued_work_count(self):
        """The number of queued items that have not started yet."""
        with self._lock:
            return self._queued

    def completion(self):
        """Return a Future that is done when all queued work is done."""
        with self._lock:
            if self._last is None:
                return completed_future()
            return self._last.completion

    def queue_work(self, name, cancellation=None):
        """Wait for our turn, then return the WorkItem.

        Raises OperationCanceled if ``cancellation`` fires first. The
        canceled item's slot then frees up as soon as the item before it
        completes, so later items are not held up.
        """
        item = WorkItem(name)
        with self._lock:
            previous = self._last
            self._last = item
            self._queued += 1
        try:
            if previous is not None:
                LOGGER.debug('%r waiting for %r', item, previous)
                wait_for(previous.completion, cancellation)
                sleep(self.throttle_time, cancellation)
        except OperationCanceled:
            LOGGER.debug('%r canceled', item)
            if previous is None:
                item.complete()
            else:
                previous.completion.add_done_callback(
                    lambda _: item.complete()
                )
            raise
        finally:
            with self._lock:
                self._queued -= 1
        LOGGER.debug('%r started', item)
        return item
