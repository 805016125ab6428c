from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional

from spade_bridge.catalog.media import resolve_media
from spade_bridge.catalog.models import Product, Variant
from spade_bridge.catalog.mutations import ProductMutations, serialize
from spade_bridge.catalog.normalizer import DEFAULT_MARKER_TAG, normalize
from spade_bridge.catalog.tags import dedupe_tags
from spade_bridge.catalog.variants import expand


@dataclass(frozen=True)
class PreparedProduct:
    product: Product
    options: list[str]
    variants: list[Variant]
    media: list[dict[str, str]]
    tags: list[str]
    mutations: ProductMutations


def prepare_product(
    raw: Any,
    *,
    media_base_url: str,
    marker_tag: str = DEFAULT_MARKER_TAG,
    default_sku: Optional[str] = None,
) -> PreparedProduct:
    """Normalize, expand and render one catalog product.

    ``default_sku`` fills every variant that has no SKU of its own, so a
    product-level SKU can later find the product again.
    """
    product = normalize(raw, marker_tag=marker_tag)
    options, variants = expand(product)
    if default_sku:
        variants = [variant if variant.sku else replace(variant, sku=default_sku) for variant in variants]
    media = resolve_media(product, base_url=media_base_url)
    return PreparedProduct(
        product=product,
        options=options,
        variants=variants,
        media=media,
        tags=dedupe_tags(product.tags),
        mutations=serialize(product, options, variants, media),
    )
