from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Optional

from spade_bridge.catalog.models import Product, Variant
from spade_bridge.catalog.tags import dedupe_tags

_PRODUCT_SELECTION = """
    product {
      id
      title
      status
      tags
      variants(first: 100) {
        edges {
          node {
            id
            title
            price
            sku
            inventoryItem {
              id
            }
          }
        }
      }
    }
    userErrors {
      field
      message
    }"""

_MEDIA_SELECTION = """
    media {
      ... on MediaImage {
        id
        status
        image {
          url
        }
      }
    }
    mediaUserErrors {
      field
      message
    }"""


def gql_escape(value: Any) -> str:
    """Escape text for a double-quoted GraphQL string literal.

    Backslashes are doubled before quotes are escaped; the reverse order
    would escape the backslashes added in front of the quotes.
    """
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return escaped.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")


def _quoted(value: Any) -> str:
    return f'"{gql_escape(value)}"'


def _quoted_list(values: Sequence[Any]) -> str:
    return "[" + ", ".join(_quoted(value) for value in values) + "]"


def _render_variant(variant: Variant) -> str:
    fields = [f'price: "{variant.price}"']
    if variant.sku:
        fields.append(f"sku: {_quoted(variant.sku)}")
    fields.append(f"options: {_quoted_list(variant.options)}")
    return "{ " + ", ".join(fields) + " }"


def build_create_mutation(product: Product, options: Sequence[str], variants: Sequence[Variant]) -> str:
    input_fields = [f"title: {_quoted(product.title)}"]
    if product.description:
        input_fields.append(f"descriptionHtml: {_quoted(product.description)}")
    input_fields.append(f"status: {product.status}")
    tags = dedupe_tags(product.tags)
    if tags:
        input_fields.append(f"tags: {_quoted_list(tags)}")
    input_fields.append(f"options: {_quoted_list(options)}")
    rendered_variants = ",\n        ".join(_render_variant(variant) for variant in variants)
    input_fields.append(f"variants: [\n        {rendered_variants}\n      ]")

    body = ",\n      ".join(input_fields)
    return (
        "mutation {\n"
        "  productCreate(\n"
        "    input: {\n"
        f"      {body}\n"
        "    }\n"
        f"  ) {{{_PRODUCT_SELECTION}\n"
        "  }\n"
        "}\n"
    )


def build_media_mutation(product_id: str, media: Sequence[dict[str, str]]) -> Optional[str]:
    if not media:
        return None
    entries = ",\n      ".join(
        "{ "
        f"mediaContentType: {item['mediaContentType']}, "
        f"originalSource: {_quoted(item['originalSource'])}"
        " }"
        for item in media
    )
    return (
        "mutation {\n"
        "  productCreateMedia(\n"
        f"    productId: {_quoted(product_id)},\n"
        "    media: [\n"
        f"      {entries}\n"
        "    ]\n"
        f"  ) {{{_MEDIA_SELECTION}\n"
        "  }\n"
        "}\n"
    )


@dataclass(frozen=True)
class ProductMutations:
    create: str
    media: tuple[dict[str, str], ...]

    def media_mutation(self, product_id: str) -> Optional[str]:
        return build_media_mutation(product_id, self.media)


def serialize(
    product: Product,
    options: Sequence[str],
    variants: Sequence[Variant],
    media: Sequence[dict[str, str]],
) -> ProductMutations:
    """Render the productCreate mutation and keep media for the attach step.

    The attach mutation needs the id Shopify assigns on create, so it is
    rendered later through ``ProductMutations.media_mutation``; it is None
    when there is no media to attach.
    """
    return ProductMutations(
        create=build_create_mutation(product, options, variants),
        media=tuple(media),
    )
