"""
XML Writer for the Google Shopping feed.
"""

import logging
import re
import xml.etree.ElementTree as ET
from xml.dom import minidom
from typing import Iterable, List, Optional

from feedapp.schemas.shipping import ShippingProvider
from feedapp.schemas.shops import Shop
from .models import FeedItem, format_price
from .shipping import applicable_shipping_methods, available_shipping_methods


# Google Shopping namespace
G_NS = 'http://base.google.com/ns/1.0'

logger = logging.getLogger(__name__)

# Characters not allowed in XML 1.0 documents
_INVALID_XML_CHARS = re.compile('[\\x00-\\x08\\x0b\\x0c\\x0e-\\x1f\\ud800-\\udfff\\ufffe\\uffff]')


def _clean(text: str) -> str:
    return _INVALID_XML_CHARS.sub('', str(text))


def _g(parent: ET.Element, tag: str, text: Optional[str]) -> ET.Element:
    elem = ET.SubElement(parent, f'{{{G_NS}}}{tag}')
    if text is not None:
        elem.text = _clean(text)
    return elem


def _write_item(
    channel_elem: ET.Element,
    item: FeedItem,
    shipping_methods: list,
    shipping_country: str
) -> None:
    feed_item = ET.SubElement(channel_elem, 'item')

    if item.title:
        _g(feed_item, 'title', item.title)
    _g(feed_item, 'link', item.link)
    if item.description:
        _g(feed_item, 'description', item.description)
    if item.primary_image_url:
        _g(feed_item, 'image_link', f"MEDIA_BASE_URL{item.primary_image_url}")
    if item.price_text:
        _g(feed_item, 'price', item.price_text)
    _g(feed_item, 'condition', item.condition)
    _g(feed_item, 'id', item.id)

    # Optional identifiers are omitted, never written empty
    if item.sku:
        _g(feed_item, 'mpn', item.sku)
    if item.barcode:
        _g(feed_item, 'gtin', item.barcode)
    if item.vendor:
        _g(feed_item, 'brand', item.vendor)

    _g(feed_item, 'availability', item.availability)

    for image_url in item.additional_images:
        _g(feed_item, 'additional_image_link', f"MEDIA_BASE_URL{image_url}")

    for method in applicable_shipping_methods(shipping_methods, item.supported_fulfillment_types):
        currency = method.currency or item.currency
        shipping = _g(feed_item, 'shipping', None)
        _g(shipping, 'country', shipping_country)
        _g(shipping, 'service', method.label)
        _g(shipping, 'price', format_price(method.rate, currency) if currency else f"{method.rate:.2f}")

    if item.item_group_id:
        _g(feed_item, 'item_group_id', item.item_group_id)

    for attribute, value in item.variant_attributes.items():
        _g(feed_item, attribute, value)


def write_feed_xml(
    items: List[FeedItem],
    shop: Shop,
    shipping_providers: Iterable[ShippingProvider] = (),
    shipping_country: str = 'US'
) -> str:
    """
    Generate Google Shopping feed XML from feed items.

    Product links keep the ``BASE_URL`` placeholder and image links the
    ``MEDIA_BASE_URL`` placeholder; both are resolved when the feed is served.

    Args:
        items: FeedItem objects, in feed order
        shop: Shop the feed belongs to (channel title/description)
        shipping_providers: All shipping providers of the shop
        shipping_country: Country listed in every shipping block

    Returns:
        XML string
    """
    logger.debug(f"Writing feed XML for shop {shop.id} with {len(items)} items")

    ET.register_namespace('g', G_NS)

    rss = ET.Element('rss', {'version': '2.0'})
    channel_elem = ET.SubElement(rss, 'channel')
    if shop.name:
        ET.SubElement(channel_elem, 'title').text = _clean(shop.name)
    ET.SubElement(channel_elem, 'link').text = 'BASE_URL'
    if shop.description:
        ET.SubElement(channel_elem, 'description').text = _clean(shop.description)

    shipping_methods = available_shipping_methods(shipping_providers)

    for item in items:
        _write_item(channel_elem, item, shipping_methods, shipping_country)

    xml_string = ET.tostring(rss, encoding='unicode', method='xml')

    # ElementTree only declares the namespace when a g: element exists
    if 'xmlns:g=' not in xml_string:
        xml_string = re.sub(
            r'(<rss[^>]*version="2.0")',
            rf'\1 xmlns:g="{G_NS}"',
            xml_string,
            count=1
        )

    dom = minidom.parseString(xml_string)
    return dom.toprettyxml(indent='  ', encoding='utf-8').decode('utf-8')
