from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from spade_bridge.catalog.models import Attribute, MediaReference, Product, as_list, optional_text
from spade_bridge.catalog.tags import build_sample_tags

DEFAULT_MARKER_TAG = "spade-product"
DEFAULT_PRODUCT_TITLE = "Untitled product"


@dataclass(frozen=True)
class NestedSamplePayload:
    raw: dict[str, Any]
    sample: dict[str, Any]


@dataclass(frozen=True)
class FlatAttributesPayload:
    raw: dict[str, Any]


@dataclass(frozen=True)
class DefaultPayload:
    raw: dict[str, Any]


ProductPayload = Union[NestedSamplePayload, FlatAttributesPayload, DefaultPayload]


def classify_payload(raw: Any) -> ProductPayload:
    if not isinstance(raw, dict):
        return DefaultPayload(raw={})
    sample = raw.get("sample")
    if isinstance(sample, dict) and isinstance(sample.get("sample_attributes"), list):
        return NestedSamplePayload(raw=raw, sample=sample)
    if isinstance(raw.get("attributes"), list):
        return FlatAttributesPayload(raw=raw)
    return DefaultPayload(raw=raw)


def _display_title(*candidates: Any) -> str:
    # Shopify rejects blank titles.
    for candidate in candidates:
        text = optional_text(candidate)
        if text is not None and text.strip():
            return text
    return DEFAULT_PRODUCT_TITLE


def _active_flag(raw: Any) -> Optional[bool]:
    if raw is None:
        return None
    return bool(raw)


def _attributes(raw_attributes: list[Any]) -> tuple[Attribute, ...]:
    return tuple(
        attribute
        for attribute in (Attribute.from_raw(item) for item in raw_attributes)
        if attribute is not None
    )


def _media(raw_media: Any) -> list[MediaReference]:
    return [
        reference
        for reference in (MediaReference.from_raw(item) for item in as_list(raw_media))
        if reference is not None
    ]


def _normalize_nested_sample(payload: NestedSamplePayload, *, marker_tag: str) -> Product:
    raw, sample = payload.raw, payload.sample
    attributes = _attributes(sample["sample_attributes"])

    media = _media(sample.get("sample_media"))
    for attribute in attributes:
        for value in attribute.values or ():
            media.extend(value.images)

    return Product(
        id=raw.get("id"),
        title=_display_title(raw.get("name"), sample.get("title")),
        description=optional_text(raw.get("description")) or optional_text(sample.get("description")),
        price=raw.get("price", sample.get("price")),
        attributes=attributes,
        media=tuple(media),
        tags=tuple(
            build_sample_tags(raw=raw, sample=sample, attributes=attributes, marker_tag=marker_tag)
        ),
        stock=raw.get("stock"),
        is_active=_active_flag(raw.get("is_active")),
        price_range=raw.get("price_range"),
    )


def _normalize_flat(raw: dict[str, Any], *, attributes: tuple[Attribute, ...]) -> Product:
    return Product(
        id=raw.get("id"),
        title=_display_title(raw.get("title"), raw.get("name")),
        description=optional_text(raw.get("description")),
        price=raw.get("price"),
        attributes=attributes,
        media=tuple(_media(raw.get("media"))),
        tags=tuple(
            tag for tag in (optional_text(item) for item in as_list(raw.get("tags"))) if tag is not None
        ),
        stock=raw.get("stock", raw.get("stock_quantity")),
        is_active=_active_flag(raw.get("is_active")),
        price_range=raw.get("price_range"),
    )


def normalize(raw: Any, *, marker_tag: str = DEFAULT_MARKER_TAG) -> Product:
    """Turn any catalog product payload into a canonical Product.

    Never raises for JSON input: unknown or mistyped fields fall back to
    empty values.
    """
    payload = classify_payload(raw)
    if isinstance(payload, NestedSamplePayload):
        return _normalize_nested_sample(payload, marker_tag=marker_tag)
    if isinstance(payload, FlatAttributesPayload):
        return _normalize_flat(payload.raw, attributes=_attributes(payload.raw["attributes"]))
    return _normalize_flat(payload.raw, attributes=())
