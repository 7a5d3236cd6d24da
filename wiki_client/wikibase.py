"""
Wikibase entities, such as Wikidata items and properties.

..code-block:: python

    item = wc.wikibase.Entity(site, 'Q42')
    item.refresh(languages=['en'])
    print(item.labels['en'])
    for claim in item.claims.get('P31', ()):
        print(claim.value)
"""
import logging

from .excs import UnexpectedDataError

__all__ = ['Entity', 'Claim', 'refresh_entities']

LOGGER = logging.getLogger(__name__)

DEFAULT_PROPS = ('info', 'labels', 'descriptions', 'aliases', 'sitelinks',
                 'claims')

ENTITY_BATCH_SIZE = 50
ENTITY_BATCH_SIZE_HIGH = 500

class Claim(object): #pylint: disable=too-few-public-methods
    """A statement about an entity."""
    def __init__(self, node):
        """Initialize the claim from its JSON node."""
        snak = node.get('mainsnak', {})
        self.id = node.get('id') #pylint: disable=invalid-name
        self.rank = node.get('rank', 'normal')
        self.property_id = snak.get('property')
        self.datatype = snak.get('datatype')
        self.snak_type = snak.get('snaktype')
        datavalue = snak.get('datavalue')
        self.value = datavalue.get('value') if datavalue else None
        self.qualifiers = {
            prop: [_snak_value(qualifier) for qualifier in qualifiers]
            for prop, qualifiers in node.get('qualifiers', {}).items()
        }

    def __repr__(self):
        """Represent a Claim."""
        return '<Claim {} = {!r}>'.format(self.property_id, self.value)

    __str__ = __repr__

def _snak_value(snak):
    datavalue = snak.get('datavalue')
    return datavalue.get('value') if datavalue else None

class Entity(object):
    """A Wikibase entity, by its id (e.g. Q42 or P31).

    Call refresh() to load its data.
    """
    def __init__(self, site, id): #pylint: disable=redefined-builtin
        """Initialize the entity. Nothing is fetched yet."""
        self.site = site
        self.id = id #pylint: disable=invalid-name
        self.exists = None
        self.type = None
        self.labels = {}
        self.descriptions = {}
        self.aliases = {}
        self.sitelinks = {}
        self.claims = {}
        self.lastrevid = None

    def __repr__(self):
        """Represent an Entity."""
        return '<Entity {}>'.format(self.id)

    __str__ = __repr__

    def __eq__(self, other):
        if not isinstance(other, Entity):
            return NotImplemented
        return self.site == other.site and self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def refresh(self, props=DEFAULT_PROPS, languages=None,
                cancellation=None):
        """Load the entity's data. See refresh_entities."""
        refresh_entities([self], props, languages, cancellation)

    def _load(self, node):
        if 'missing' in node:
            self.exists = False
            return
        self.exists = True
        self.id = node.get('id', self.id)
        self.type = node.get('type')
        self.lastrevid = node.get('lastrevid')
        if 'labels' in node:
            self.labels = {lang: value['value']
                           for lang, value in node['labels'].items()}
        if 'descriptions' in node:
            self.descriptions = {lang: value['value'] for lang, value
                                 in node['descriptions'].items()}
        if 'aliases' in node:
            self.aliases = {
                lang: [alias['value'] for alias in values]
                for lang, values in node['aliases'].items()
            }
        if 'sitelinks' in node:
            self.sitelinks = {site: value['title'] for site, value
                              in node['sitelinks'].items()}
        if 'claims' in node:
            self.claims = {prop: [Claim(claim) for claim in claims]
                           for prop, claims in node['claims'].items()}

def refresh_entities(entities, props=DEFAULT_PROPS, languages=None,
                     cancellation=None):
    """Load the data of several entities with as few requests as possible.

    All ``entities`` must belong to the same site.
    """
    entities = list(entities)
    if not entities:
        return
    site = entities[0].site
    if site.account_info is not None \
           and site.account_info.has_right('apihighlimits'):
        batch_size = ENTITY_BATCH_SIZE_HIGH
    else:
        batch_size = ENTITY_BATCH_SIZE
    for start in range(0, len(entities), batch_size):
        batch = entities[start:start + batch_size]
        LOGGER.debug('Fetching %d entities from %r', len(batch), site)
        data = site.request(
            _cancellation=cancellation, action='wbgetentities',
            ids=[entity.id for entity in batch], props=list(props),
            languages=list(languages) if languages else None,
        )
        nodes = data.get('entities', {})
        # ids come back normalized, e.g. q42 -> Q42
        folded = {key.upper(): node for key, node in nodes.items()}
        for entity in batch:
            node = nodes.get(entity.id)
            if node is None:
                node = folded.get(entity.id.upper())
            if node is None:
                raise UnexpectedDataError(
                    'entity {} is missing from the response'.format(entity.id)
                )
            entity._load(node) #pylint: disable=protected-access
