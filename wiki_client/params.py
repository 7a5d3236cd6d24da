"""Request parameter building.

A QueryParams is an ordered bag of API parameters. Values keep their
Python types until the request is sent; ``to_wire`` converts them to
the strings the API expects.
"""
from datetime import datetime, timezone

__all__ = ['QueryParams', 'SiteToken', 'wire_value']

class SiteToken(object):
    """Placeholder for a token, filled in by WikiSite.request.

    Using a placeholder instead of a fetched token lets the site
    refresh the token and retry once when the API says it is stale.
    """
    def __init__(self, kind='csrf'):
        self.kind = kind

    def __repr__(self):
        """Represent a SiteToken."""
        return '<SiteToken {!r}>'.format(self.kind)

    def __eq__(self, other):
        return isinstance(other, SiteToken) and self.kind == other.kind

    def __hash__(self):
        return hash((SiteToken, self.kind))

def wire_value(value):
    """Convert a single parameter value to its string form.

    Returns None for values which should not be sent at all.
    """
    if value is None or value is False:
        return None
    if value is True:
        return ''
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.strftime('%Y-%m-%dT%H:%M:%SZ')
    if isinstance(value, (list, tuple, set, frozenset)):
        items = sorted(value) if isinstance(value, (set, frozenset)) \
            else value
        return '|'.join(wire_value(item) or '' for item in items)
    return str(value)

class QueryParams(dict):
    """An ordered set of API parameters.

    ..code-block:: python

        params = QueryParams(action='query', list='allpages')
        params.set('aplimit', 50).set('apfrom', None)
        params.to_wire()  # {'action': 'query', 'list': 'allpages',
                          #  'aplimit': '50'}
    """
    def set(self, key, value):
        """Set ``key`` to ``value``. Returns self for chaining."""
        self[key] = value
        return self

    def merge(self, mapping):
        """Set every key in ``mapping``. Returns self for chaining."""
        self.update(mapping)
        return self

    def copy(self):
        """Return a shallow copy, still a QueryParams."""
        return QueryParams(self)

    def to_wire(self):
        """Return a plain dict of strings, dropping omitted values."""
        result = {}
        for key, value in self.items():
            value = wire_value(value)
            if value is not None:
                result[key] = value
        return result

    def __repr__(self):
        return 'QueryParams({})'.format(dict.__repr__(self))
