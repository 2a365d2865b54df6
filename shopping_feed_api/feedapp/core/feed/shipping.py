"""
Select the shipping methods that apply to a feed item.
"""

from typing import Iterable, List

from feedapp.schemas.shipping import ShippingMethod, ShippingProvider


def available_shipping_methods(providers: Iterable[ShippingProvider]) -> List[ShippingMethod]:
    """Enabled methods of enabled providers, in provider then method order."""
    methods = []
    for provider in providers:
        if not provider.enabled:
            continue
        methods.extend(method for method in provider.methods if method.enabled)
    return methods


def applicable_shipping_methods(
    methods: Iterable[ShippingMethod],
    fulfillment_types: Iterable[str]
) -> List[ShippingMethod]:
    """Methods supporting at least one of the item's fulfillment types."""
    supported = set(fulfillment_types)
    return [method for method in methods if supported.intersection(method.fulfillment_types)]


def resolve_shipping_methods(
    providers: Iterable[ShippingProvider],
    fulfillment_types: Iterable[str]
) -> List[ShippingMethod]:
    return applicable_shipping_methods(available_shipping_methods(providers), fulfillment_types)
