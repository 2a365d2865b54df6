"""
Variant tree flattening.
"""

from typing import List

from feedapp.schemas.catalog import CatalogProduct, VariantNode


def find_deepest_variants(product: CatalogProduct) -> List[VariantNode]:
    """
    Return the leaf variants of a product, depth-first, left to right.

    A node that has options is never returned itself, only its descendants
    without options are. Uses an explicit stack so deeply nested catalogs
    cannot exhaust the interpreter's recursion limit.
    """
    if not product.variants:
        return []

    leaves: List[VariantNode] = []
    stack = list(reversed(product.variants))
    while stack:
        node = stack.pop()
        if node.options:
            stack.extend(reversed(node.options))
        else:
            leaves.append(node)
    return leaves
