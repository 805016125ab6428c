from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

DEFAULT_OPTION_LABEL = "Default"


def optional_text(raw: Any) -> Optional[str]:
    if raw is None or isinstance(raw, (dict, list, bool)):
        return None
    text = str(raw)
    return text or None


def as_list(raw: Any) -> list[Any]:
    if raw is None:
        return []
    if isinstance(raw, list):
        return raw
    return [raw]


@dataclass(frozen=True)
class MediaReference:
    """A pointer to an externally hosted image, as received from the catalog."""

    media: Optional[str] = None
    image: Optional[str] = None
    is_featured: Optional[bool] = None

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["MediaReference"]:
        if isinstance(raw, str):
            return cls(media=raw) if raw else None
        if not isinstance(raw, dict):
            return None
        is_featured = raw.get("is_featured")
        return cls(
            media=optional_text(raw.get("media")),
            image=optional_text(raw.get("image")),
            is_featured=is_featured if isinstance(is_featured, bool) else None,
        )

    @property
    def source(self) -> Optional[str]:
        return self.media or self.image


@dataclass(frozen=True)
class AttributeValue:
    name: Optional[str] = None
    price: Any = None
    compare_price: Any = None
    sku: Optional[str] = None
    images: tuple[MediaReference, ...] = ()

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["AttributeValue"]:
        if isinstance(raw, dict):
            raw_images = raw.get("images")
            images = tuple(
                reference
                for reference in (MediaReference.from_raw(item) for item in as_list(raw_images))
                if reference is not None
            )
            return cls(
                name=optional_text(raw.get("name")),
                price=raw.get("price"),
                compare_price=raw.get("compare_price"),
                sku=optional_text(raw.get("sku")),
                images=images,
            )
        if isinstance(raw, (str, int, float)) and not isinstance(raw, bool):
            return cls(name=str(raw))
        return None


@dataclass(frozen=True)
class Attribute:
    name: Optional[str]
    # None when the payload carried no usable value list at all.
    values: Optional[tuple[AttributeValue, ...]]

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["Attribute"]:
        if not isinstance(raw, dict):
            return None
        raw_values = raw.get("values")
        values: Optional[tuple[AttributeValue, ...]] = None
        if isinstance(raw_values, list):
            values = tuple(
                value
                for value in (AttributeValue.from_raw(item) for item in raw_values)
                if value is not None
            )
        return cls(name=optional_text(raw.get("name")), values=values)


@dataclass(frozen=True)
class Product:
    """Canonical product built fresh for every incoming request."""

    title: str
    id: Any = None
    description: Optional[str] = None
    price: Any = None
    attributes: tuple[Attribute, ...] = ()
    media: tuple[MediaReference, ...] = ()
    tags: tuple[str, ...] = ()
    stock: Any = None
    is_active: Optional[bool] = None
    price_range: Any = None

    @property
    def status(self) -> str:
        return "ACTIVE" if self.is_active else "DRAFT"


@dataclass(frozen=True)
class Variant:
    price: str
    sku: Optional[str] = None
    options: tuple[str, ...] = field(default_factory=tuple)
