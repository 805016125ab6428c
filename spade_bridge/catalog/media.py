from __future__ import annotations

import re

from spade_bridge.catalog.models import Product

MEDIA_CONTENT_TYPE_IMAGE = "IMAGE"
MEDIA_ROOT_PREFIX = "/media/"

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


def resolve_media_url(source: str, *, base_url: str) -> str:
    if _SCHEME_RE.match(source):
        return source
    if source.startswith(MEDIA_ROOT_PREFIX):
        return f"{base_url}{source}"
    return f"{base_url}/{source}"


def resolve_media(product: Product, *, base_url: str) -> list[dict[str, str]]:
    """Absolute image sources for productCreateMedia, in payload order.

    References without any URL are skipped; nothing is fetched or checked.
    """
    resolved: list[dict[str, str]] = []
    for reference in product.media:
        source = reference.source
        if not source:
            continue
        resolved.append(
            {
                "mediaContentType": MEDIA_CONTENT_TYPE_IMAGE,
                "originalSource": resolve_media_url(source, base_url=base_url),
            }
        )
    return resolved
