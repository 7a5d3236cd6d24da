"""
Reading continuation parameters out of query responses.

Modern wikis send ``{"continue": {...}}``; before MediaWiki 1.21 the
same information came as ``{"query-continue": {"module": {...}}}``.
Both are handled here.
"""
from .params import wire_value

__all__ = [
    'CONTINUATION_DONE',
    'CONTINUATION_AVAILABLE',
    'CONTINUATION_LOOP',
    'find_result_node',
    'find_continuation_root',
    'parse_continuation',
]

CONTINUATION_DONE = 'done'
CONTINUATION_AVAILABLE = 'available'
CONTINUATION_LOOP = 'loop'

def find_result_node(response, key):
    """Return ``response['query'][key]``, or None if it isn't there."""
    query = response.get('query')
    if not isinstance(query, dict):
        return None
    return query.get(key)

def find_continuation_root(response):
    """Return the object holding the continuation parameters, or None."""
    node = response.get('continue')
    if node is not None:
        return node
    node = response.get('query-continue')
    if not node:
        return None
    # {"query-continue": {"allpages": {"apcontinue": "..."}}}
    return next(iter(node.values()))

def parse_continuation(response, current_params, continuation):
    """Work out how a paginated query should proceed.

    ``current_params`` are the parameters the response was fetched
    with. ``continuation`` is updated in place: cleared when there is
    nothing more to fetch, replaced with the new values when there is,
    and left alone when the server handed back exactly what was sent.
    """
    node = find_continuation_root(response)
    if not node:
        continuation.clear()
        return CONTINUATION_DONE
    new_values = {key: wire_value(value) for key, value in node.items()}
    if all(key in current_params
           and wire_value(current_params[key]) == value
           for key, value in new_values.items()):
        return CONTINUATION_LOOP
    continuation.clear()
    continuation.update(new_values)
    return CONTINUATION_AVAILABLE
