"""Create, update and restock Shopify products from catalog payloads.

Products are matched to existing Shopify products by their catalog SKU.
A match is updated in place; anything else goes through the same
``productCreate`` path as a single product import.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from spade_bridge.catalog import PreparedProduct, prepare_product
from spade_bridge.catalog.models import optional_text
from spade_bridge.catalog.variants import format_price, parse_price
from spade_bridge.shopify_api import ShopifyApiClient, ShopifyApiError, ShopifyUserErrors

logger = logging.getLogger(__name__)

_APPROVED_STATUSES = frozenset({"approved", "active"})


@dataclass(frozen=True)
class PublishedProduct:
    product: Optional[dict[str, Any]]
    media: Optional[dict[str, Any]]


@dataclass(frozen=True)
class SyncOutcome:
    message: str
    product_id: Optional[str] = None
    product: Optional[dict[str, Any]] = None
    inventory: Optional[dict[str, Any]] = None


def catalog_sku(raw: Any) -> Optional[str]:
    if not isinstance(raw, dict):
        return None
    sku = (optional_text(raw.get("sku")) or "").strip()
    return sku or None


def stock_quantity(raw: Any) -> Optional[int]:
    """Whole-unit stock level, or None when the catalog value is not a count."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def with_approval_flag(raw: Any) -> Any:
    # Catalog exports carry a review status instead of is_active.
    if not isinstance(raw, dict) or "is_active" in raw or not isinstance(raw.get("status"), str):
        return raw
    return {**raw, "is_active": raw["status"].strip().lower() in _APPROVED_STATUSES}


def _variant_nodes(product: dict[str, Any]) -> list[dict[str, Any]]:
    variants = product.get("variants") or {}
    if isinstance(variants.get("nodes"), list):
        return [node for node in variants["nodes"] if isinstance(node, dict)]
    edges = variants.get("edges") or []
    return [edge["node"] for edge in edges if isinstance(edge, dict) and isinstance(edge.get("node"), dict)]


def _inventory_item_id(variant: dict[str, Any]) -> Optional[str]:
    item_id = (variant.get("inventoryItem") or {}).get("id")
    return item_id if isinstance(item_id, str) and item_id else None


def matching_variant(product: dict[str, Any], sku: str) -> Optional[dict[str, Any]]:
    return next((variant for variant in _variant_nodes(product) if variant.get("sku") == sku), None)


class ProductSync:
    """Shopify writes for one shop, shared by the create, import and sync routes."""

    def __init__(
        self,
        shopify_api: ShopifyApiClient,
        *,
        shop_domain: str,
        access_token: str,
        media_base_url: str,
        marker_tag: str,
    ) -> None:
        self.shopify_api = shopify_api
        self.shop_domain = shop_domain
        self.access_token = access_token
        self.media_base_url = media_base_url
        self.marker_tag = marker_tag

    def prepare(self, raw: Any) -> PreparedProduct:
        return prepare_product(
            with_approval_flag(raw),
            media_base_url=self.media_base_url,
            marker_tag=self.marker_tag,
            default_sku=catalog_sku(raw),
        )

    async def publish(self, prepared: PreparedProduct) -> PublishedProduct:
        """Create the product, then attach its media.

        productCreate userErrors propagate as ShopifyUserErrors before any
        media call is made. A failed media attach is logged and reported in
        ``media`` without failing the publish.
        """
        created = await self.shopify_api.create_product(
            shop_domain=self.shop_domain,
            access_token=self.access_token,
            mutation=prepared.mutations.create,
        )
        product = created.get("product") if isinstance(created.get("product"), dict) else None
        product_id = product.get("id") if product else None
        media = await self._attach_media(prepared, product_id) if product_id else None
        return PublishedProduct(product=product, media=media)

    async def _attach_media(self, prepared: PreparedProduct, product_id: str) -> Optional[dict[str, Any]]:
        mutation = prepared.mutations.media_mutation(product_id)
        if mutation is None:
            return None
        try:
            return await self.shopify_api.attach_product_media(
                shop_domain=self.shop_domain,
                access_token=self.access_token,
                mutation=mutation,
            )
        except ShopifyApiError as exc:
            logger.warning(
                "products.media_attach_failed",
                extra={"shop_domain": self.shop_domain, "product_id": product_id, "error": str(exc)},
            )
            return {"error": exc.details if exc.details is not None else str(exc)}

    async def set_stock(self, inventory_item_ids: list[str], quantity: int) -> Optional[dict[str, Any]]:
        if not inventory_item_ids:
            return None
        location_id = await self.shopify_api.primary_location_id(
            shop_domain=self.shop_domain,
            access_token=self.access_token,
        )
        return await self.shopify_api.set_inventory_quantities(
            shop_domain=self.shop_domain,
            access_token=self.access_token,
            location_id=location_id,
            quantities={item_id: quantity for item_id in inventory_item_ids},
        )

    async def find(self, sku: Optional[str]) -> Optional[dict[str, Any]]:
        if not sku:
            return None
        return await self.shopify_api.find_product_by_sku(
            shop_domain=self.shop_domain,
            access_token=self.access_token,
            sku=sku,
        )

    async def update(self, existing: dict[str, Any], prepared: PreparedProduct, raw: Any) -> dict[str, Any]:
        product_id = existing["id"]
        product_input: dict[str, Any] = {
            "id": product_id,
            "title": prepared.product.title,
            "status": prepared.product.status,
        }
        if prepared.product.description:
            product_input["descriptionHtml"] = prepared.product.description
        result: dict[str, Any] = {
            "productUpdate": await self.shopify_api.update_product(
                shop_domain=self.shop_domain,
                access_token=self.access_token,
                product_input=product_input,
            )
        }

        sku = catalog_sku(raw)
        variant = matching_variant(existing, sku) if sku else None
        if variant is not None:
            variant_input = self._variant_price_input(variant["id"], prepared, raw)
            if variant_input is not None:
                result["variantUpdate"] = await self.shopify_api.update_variants(
                    shop_domain=self.shop_domain,
                    access_token=self.access_token,
                    product_id=product_id,
                    variants=[variant_input],
                )
            quantity = stock_quantity(prepared.product.stock)
            item_id = _inventory_item_id(variant)
            if quantity is not None and item_id:
                result["inventoryUpdate"] = await self.set_stock([item_id], quantity)

        result["media"] = await self._attach_media(prepared, product_id)
        return result

    @staticmethod
    def _variant_price_input(variant_id: str, prepared: PreparedProduct, raw: Any) -> Optional[dict[str, Any]]:
        price = parse_price(prepared.product.price)
        if price is None:
            return None
        variant_input: dict[str, Any] = {"id": variant_id, "price": format_price(price)}
        compare_price = parse_price(raw.get("compare_price")) if isinstance(raw, dict) else None
        if compare_price is not None:
            variant_input["compareAtPrice"] = format_price(compare_price)
        return variant_input

    async def import_one(self, raw: Any) -> dict[str, Any]:
        """Upsert one catalog product by SKU; validation failures are reported, not raised."""
        sku = catalog_sku(raw)
        prepared = self.prepare(raw)
        try:
            existing = await self.find(sku)
            if existing is not None:
                return {
                    "status": "updated",
                    "sku": sku,
                    "shopifyId": existing.get("id"),
                    "result": await self.update(existing, prepared, raw),
                }

            published = await self.publish(prepared)
            result: dict[str, Any] = {"product": published.product, "media": published.media}
            quantity = stock_quantity(prepared.product.stock)
            if published.product is not None and quantity is not None:
                item_ids = [
                    item_id
                    for item_id in (_inventory_item_id(variant) for variant in _variant_nodes(published.product))
                    if item_id
                ]
                result["inventoryUpdate"] = await self.set_stock(item_ids, quantity)
            return {"status": "created", "sku": sku, "result": result}
        except ShopifyUserErrors as exc:
            logger.info(
                "products.import_rejected",
                extra={"shop_domain": self.shop_domain, "sku": sku, "user_errors": exc.user_errors},
            )
            return {"status": "failed", "sku": sku, "errors": exc.user_errors}

    async def sync(self, raw: Any) -> SyncOutcome:
        """Restock an existing product by SKU, or create it when there is no match."""
        sku = catalog_sku(raw)
        existing = await self.find(sku)
        variant = matching_variant(existing, sku) if existing is not None and sku else None
        if variant is not None:
            quantity = stock_quantity(raw.get("stock_quantity", raw.get("stock")))
            item_id = _inventory_item_id(variant)
            if quantity is None or item_id is None:
                return SyncOutcome(message="Product exists, inventory unchanged", product_id=existing.get("id"))
            inventory = await self.set_stock([item_id], quantity)
            return SyncOutcome(
                message="Product exists, inventory updated",
                product_id=existing.get("id"),
                inventory=inventory,
            )

        published = await self.publish(self.prepare(raw))
        return SyncOutcome(message="Product created", product=published.product)
