"""
A MediaWiki API client that takes care of the paperwork.

Handles continuation, tokens, retries and throttling, so that lists of
any length are simple loops and edits are simple calls. Also speaks
Wikia's and Wikibase's own APIs.

Requires the ``requests`` and ``beautifulsoup4`` libraries.

http://www.mediawiki.org/

Installation
============

To install from a checkout::

    pip install -e .

To also install what the tests need::

    pip install -e .[test]

Example Usage
=============

.. code-block:: python

    import wiki_client as wc

Get a page:

.. code-block:: python

    client = wc.WikiClient("MyCoolBot/0.0.0")
    wp = wc.WikiSite(client, "https://en.wikipedia.org/w/api.php")

    wp.login("Example@bot", password)

    sandbox = wp.page("User:Example/sandbox")

Edit page:

.. code-block:: python

    # Get the page
    contents = sandbox.read()

    # Change
    contents += "\\n This is a test!"
    summary = "Made a test edit"

    # Submit; waits its turn in wp.modification_throttler
    sandbox.edit(contents, summary)

List pages in category:

.. code-block:: python

    for page in wp.category("Redirects").categorymembers():
        print(page.title)

Get more per request, and stop after a minute:

.. code-block:: python

    token = wc.CancellationToken()
    threading.Timer(60, token.cancel).start()
    try:
        for page in wp.allpages(pagination_size=500, cancellation=token):
            print(page.title)
    except wc.OperationCanceled:
        print('Out of time.')

Patrol all recent changes in the Help namespace:

.. code-block:: python

    for rc in wp.recentchanges(namespace=12):
        rc.patrol()

Any list module, even one without a class here:

.. code-block:: python

    blocks = wc.lists.GenericList('blocks', 'bk', prop='user|expiry')
    for block in wp.query(blocks):
        print(block.user, block.expiry)

MIT Licensed.
"""

__version__ = '1.0.0'

from . import lists, wikibase
from .client import WikiClient, MediaWikiJsonParser, WikiaJsonParser, \
     HtmlParser
from .excs import *
from .misc import CancellationToken, MediaWikiVersion, GenericData
from .page import Page, Revision, RecentChange
from .params import QueryParams, SiteToken
from .query import PagedQuery, QueryModule, LOOP_FAIL, LOOP_FETCH_MORE
from .site import WikiSite, SiteInfo, AccountInfo
from .throttle import Throttler
from .tokens import TokensManager
from .wikia import WikiaSite, WikiaUser, WallMessage

__all__ = [
    'lists',
    'wikibase',
    'WikiClient',
    'MediaWikiJsonParser',
    'WikiaJsonParser',
    'HtmlParser',
    'CancellationToken',
    'MediaWikiVersion',
    'GenericData',
    'Page',
    'Revision',
    'RecentChange',
    'QueryParams',
    'SiteToken',
    'PagedQuery',
    'QueryModule',
    'LOOP_FAIL',
    'LOOP_FETCH_MORE',
    'WikiSite',
    'SiteInfo',
    'AccountInfo',
    'Throttler',
    'TokensManager',
    'WikiaSite',
    'WikiaUser',
    'WallMessage',
] + excs.__all__
