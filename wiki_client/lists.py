"""
Query modules for the lists and page properties this library knows.

Each one is passed to WikiSite.query, or wrapped in a PageGenerator to
get full pages instead:

..code-block:: python

    members = wc.lists.CategoryMembersList(title='Category:Foo')
    for page in site.query(wc.lists.PageGenerator(members, prop='info')):
        print(page.title, page.length)
"""
from . import page as _page
from .excs import WikiError
from .misc import GenericData
from .params import QueryParams
from .query import QueryModule

#pylint: disable=too-few-public-methods

class _PageList(QueryModule):
    """A list whose items are pages."""
    def item_from_json(self, site, node):
        return _page.Page(site, **node)

class AllPagesList(_PageList):
    """All pages, a la Special:AllPages."""
    name = 'allpages'
    prefix = 'ap'

class AllCategoriesList(QueryModule):
    """All categories, as category Pages."""
    name = 'allcategories'
    prefix = 'ac'

    def item_from_json(self, site, node):
        node = dict(node)
        name = node.pop('*', None) or node.pop('category')
        return site.category(name, **node)

class CategoryMembersList(_PageList):
    """The members of a category; pass ``title`` or ``pageid``."""
    name = 'categorymembers'
    prefix = 'cm'

class BacklinksList(_PageList):
    """Pages linking to ``title``."""
    name = 'backlinks'
    prefix = 'bl'

class TransclusionsList(_PageList):
    """Pages transcluding ``title``."""
    name = 'embeddedin'
    prefix = 'ei'

class SearchList(_PageList):
    """Full text search results."""
    name = 'search'
    prefix = 'sr'

    def __init__(self, **filters):
        filters.setdefault('prop', [
            'size', 'wordcount', 'timestamp', 'snippet', 'titlesnippet',
        ])
        super().__init__(**filters)

class RecentChangesList(QueryModule):
    """Recent changes, a la Special:RecentChanges."""
    name = 'recentchanges'
    prefix = 'rc'

    def __init__(self, **filters):
        filters.setdefault('prop', [
            'user', 'userid', 'comment', 'timestamp', 'title', 'ids',
            'sizes', 'redirect', 'loginfo', 'tags', 'flags',
        ])
        super().__init__(**filters)

    def item_from_json(self, site, node):
        return _page.RecentChange(site, **node)

class LogEventsList(QueryModule):
    """Log entries, a la Special:Log."""
    name = 'logevents'
    prefix = 'le'

class UserContribsList(QueryModule):
    """The contributions of ``user``."""
    name = 'usercontribs'
    prefix = 'uc'

    def item_from_json(self, site, node):
        return _page.Revision(site, **node)

class GeoSearchList(_PageList):
    """Pages around a point, from the GeoData extension.

    ``coord`` is a ``(latitude, longitude)`` pair; alternatively use
    ``page`` for the coordinates of a page. ``radius`` is in meters.
    """
    name = 'geosearch'
    prefix = 'gs'

    def __init__(self, coord=None, radius=None, page=None, **filters):
        if coord is None and page is None:
            raise ValueError('either coord or page is required')
        if coord is not None:
            filters['coord'] = '{}|{}'.format(*coord)
        filters['page'] = page
        filters['radius'] = radius if radius is not None else 10
        super().__init__(**filters)

    def on_failed(self, exc):
        if isinstance(exc, WikiError) and exc.code == 'toobig':
            raise ValueError('radius is too big: {}'.format(exc.info)) \
                from exc

class PropertyList(QueryModule):
    """Base class for ``prop=`` modules over a single page."""
    kind = 'prop'

    def __init__(self, page, **filters):
        """Initialize the module for ``page``."""
        super().__init__(**filters)
        self.page = page

    def parameters(self, pagination_size):
        params = super().parameters(pagination_size)
        pageid = getattr(self.page, 'pageid', None)
        if pageid is not None:
            params['pageids'] = pageid
        else:
            params['titles'] = self.page.title
        return params

    def find_items(self, response):
        query = response.get('query')
        if not isinstance(query, dict) or 'pages' not in query:
            return None
        pages = query['pages']
        if isinstance(pages, dict):
            pages = pages.values()
        items = []
        for page in pages:
            items.extend(page.get(self.name, ()))
        return items

class PageCategoriesList(PropertyList):
    """The categories a page is in."""
    name = 'categories'
    prefix = 'cl'

    def item_from_json(self, site, node):
        return _page.Page(site, **node)

class PageLinksList(PropertyList):
    """The pages a page links to."""
    name = 'links'
    prefix = 'pl'

    def item_from_json(self, site, node):
        return _page.Page(site, **node)

class PageRevisionsList(PropertyList):
    """The revisions of a page, newest first by default."""
    name = 'revisions'
    prefix = 'rv'

    def __init__(self, page, **filters):
        filters.setdefault('prop', [
            'ids', 'flags', 'timestamp', 'user', 'comment', 'size', 'sha1',
        ])
        super().__init__(page, **filters)

    def item_from_json(self, site, node):
        return _page.Revision(site, page=self.page, **node)

class PageGenerator(QueryModule):
    """Use a list as a ``generator=``, yielding Pages.

    Extra keyword arguments are sent unprefixed, e.g. ``prop='info'``.
    """
    kind = 'generator'

    def __init__(self, source, **extra):
        """Initialize the generator from the list module ``source``."""
        super().__init__(**source.filters)
        self.source = source
        self.name = source.name
        self.prefix = 'g' + source.prefix
        self.extra = extra

    @property
    def result_key(self):
        return 'pages'

    def parameters(self, pagination_size):
        params = super().parameters(pagination_size)
        if isinstance(self.source, PropertyList):
            source = self.source.parameters(pagination_size)
            for key in ('titles', 'pageids'):
                if key in source:
                    params[key] = source[key]
        return params.merge(QueryParams(self.extra))

    def item_from_json(self, site, node):
        return _page.Page(site, **node)

    def on_failed(self, exc):
        self.source.on_failed(exc)

class GenericList(QueryModule):
    """Any list this library has no class for, yielding GenericData."""
    def __init__(self, name, prefix, **filters):
        super().__init__(**filters)
        self.name = name
        self.prefix = prefix

    def item_from_json(self, site, node):
        return GenericData(site, **node)
