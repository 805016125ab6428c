from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import ORJSONResponse

from spade_bridge.config import settings
from spade_bridge.deps import get_shopify_api, get_token_store, shop_key
from spade_bridge.product_sync import ProductSync
from spade_bridge.schemas import ImportProductsRequest, SyncProductRequest
from spade_bridge.shopify_api import ShopifyApiClient, ShopifyApiError, ShopifyUserErrors
from spade_bridge.token_store import TokenStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shopify", tags=["catalog-sync"])

_NO_TOKEN = {"error": "Unauthorized: no token"}


def _details(exc: ShopifyApiError) -> Any:
    return exc.details if exc.details is not None else str(exc)


def _product_sync(shopify_api: ShopifyApiClient, shop_domain: str, access_token: str) -> ProductSync:
    return ProductSync(
        shopify_api,
        shop_domain=shop_domain,
        access_token=access_token,
        media_base_url=settings.media_base_url,
        marker_tag=settings.SPADE_PRODUCT_TAG,
    )


@router.post("/import-products")
async def import_products(
    payload: ImportProductsRequest,
    token_store: TokenStore = Depends(get_token_store),
    shopify_api: ShopifyApiClient = Depends(get_shopify_api),
):
    shop_domain = shop_key(payload.shop)
    access_token = token_store.get(shop_domain) if shop_domain else None
    if not access_token:
        return ORJSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content=_NO_TOKEN)
    if not isinstance(payload.products, list):
        return ORJSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid products data"},
        )

    sync = _product_sync(shopify_api, shop_domain, access_token)
    results: list[dict[str, Any]] = []
    try:
        for raw in payload.products:
            results.append(await sync.import_one(raw))
    except ShopifyApiError as exc:
        logger.error(
            "catalog_sync.import_failed",
            extra={"shop_domain": shop_domain, "imported": len(results), "error": str(exc)},
        )
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to import products", "details": _details(exc)},
        )

    logger.info("catalog_sync.imported", extra={"shop_domain": shop_domain, "count": len(results)})
    return {"success": True, "results": results}


@router.post("/sync-product")
async def sync_product(
    payload: SyncProductRequest,
    token_store: TokenStore = Depends(get_token_store),
    shopify_api: ShopifyApiClient = Depends(get_shopify_api),
):
    shop_domain = shop_key(payload.shop)
    access_token = token_store.get(shop_domain) if shop_domain else None
    if not access_token:
        return ORJSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content=_NO_TOKEN)
    if payload.product is None:
        return ORJSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Product JSON is required"},
        )

    try:
        outcome = await _product_sync(shopify_api, shop_domain, access_token).sync(payload.product)
    except ShopifyUserErrors as exc:
        return ORJSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"errors": exc.user_errors})
    except ShopifyApiError as exc:
        logger.error("catalog_sync.sync_failed", extra={"shop_domain": shop_domain, "error": str(exc)})
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to sync product", "details": _details(exc)},
        )

    if outcome.product_id is not None:
        return {"message": outcome.message, "productId": outcome.product_id, "inventory": outcome.inventory}
    return {"message": outcome.message, "product": outcome.product}
