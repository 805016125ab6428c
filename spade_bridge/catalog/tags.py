from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from spade_bridge.catalog.models import Attribute, as_list


def dedupe_tags(tags: Iterable[Any]) -> list[str]:
    """Trim, drop blanks and keep the first occurrence of each tag.

    Matching is exact and case-sensitive, so "Red" and "red" are both kept.
    """
    seen: set[str] = set()
    resolved: list[str] = []
    for tag in tags:
        if tag is None or isinstance(tag, (dict, list, bool)):
            continue
        cleaned = str(tag).strip()
        if not cleaned or cleaned in seen:
            continue
        seen.add(cleaned)
        resolved.append(cleaned)
    return resolved


def _manufacturer_name(sample: dict[str, Any]) -> str | None:
    manufacturer = sample.get("manufacturer")
    if not isinstance(manufacturer, dict) or not manufacturer.get("first_name"):
        return None
    parts = [manufacturer.get("first_name"), manufacturer.get("last_name")]
    full_name = " ".join(str(part) for part in parts if part).strip()
    return full_name or None


def build_sample_tags(
    *,
    raw: dict[str, Any],
    sample: dict[str, Any],
    attributes: Iterable[Attribute],
    marker_tag: str,
) -> list[str]:
    tags: list[Any] = [marker_tag]
    tags.extend(as_list(raw.get("tags")))

    store = raw.get("store")
    if isinstance(store, dict) and store.get("name"):
        tags.append(store["name"])

    manufacturer = _manufacturer_name(sample)
    if manufacturer:
        tags.append(manufacturer)

    tags.extend(attribute.name for attribute in attributes if attribute.name)

    if raw.get("name"):
        tags.append(raw["name"])
    return dedupe_tags(tags)
