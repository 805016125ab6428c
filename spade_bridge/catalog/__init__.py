from spade_bridge.catalog.media import resolve_media
from spade_bridge.catalog.models import Attribute, AttributeValue, MediaReference, Product, Variant
from spade_bridge.catalog.mutations import ProductMutations, gql_escape, serialize
from spade_bridge.catalog.normalizer import normalize
from spade_bridge.catalog.pipeline import PreparedProduct, prepare_product
from spade_bridge.catalog.tags import dedupe_tags
from spade_bridge.catalog.variants import expand

__all__ = [
    "Attribute",
    "AttributeValue",
    "MediaReference",
    "PreparedProduct",
    "Product",
    "ProductMutations",
    "Variant",
    "dedupe_tags",
    "expand",
    "gql_escape",
    "normalize",
    "prepare_product",
    "resolve_media",
    "serialize",
]
