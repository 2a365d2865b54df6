"""
Feed generation core module.
"""

from .models import FeedItem, FEED_HANDLE
from .variants import find_deepest_variants
from .transform import product_to_feed_items, catalog_to_feed_items
from .xml_writer import write_feed_xml
from .store import FeedStore
from .service import FeedContext, generate_feeds, generate_feed_for_shop

__all__ = [
    'FeedItem',
    'FEED_HANDLE',
    'find_deepest_variants',
    'product_to_feed_items',
    'catalog_to_feed_items',
    'write_feed_xml',
    'FeedStore',
    'FeedContext',
    'generate_feeds',
    'generate_feed_for_shop'
]
