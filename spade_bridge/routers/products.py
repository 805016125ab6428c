from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import ORJSONResponse

from spade_bridge.catalog import prepare_product
from spade_bridge.config import settings
from spade_bridge.deps import get_shopify_api, get_token_store, shop_key
from spade_bridge.product_sync import ProductSync
from spade_bridge.schemas import CreateProductRequest, CreateProductResponse, SourceData
from spade_bridge.shopify_api import ShopifyApiClient, ShopifyApiError, ShopifyUserErrors
from spade_bridge.token_store import TokenStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


def _upstream_message(details: Any) -> Any:
    if isinstance(details, dict):
        return details.get("errors") or details.get("message") or "Shopify API error"
    return "Shopify API error"


def _failure_response(exc: ShopifyApiError) -> ORJSONResponse:
    content: dict[str, Any] = {"error": str(exc)}
    if exc.details is not None:
        content = {"error": exc.details, "message": _upstream_message(exc.details)}
    return ORJSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


@router.post("/create", response_model=CreateProductResponse)
async def create_product(
    payload: CreateProductRequest,
    token_store: TokenStore = Depends(get_token_store),
    shopify_api: ShopifyApiClient = Depends(get_shopify_api),
):
    if payload.product is None:
        return ORJSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Product JSON is required"},
        )

    shop_domain = shop_key(payload.shop)
    access_token = token_store.get(shop_domain) if shop_domain else None
    if not access_token:
        return ORJSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "Unauthorized: no token"},
        )

    sync = ProductSync(
        shopify_api,
        shop_domain=shop_domain,
        access_token=access_token,
        media_base_url=settings.media_base_url,
        marker_tag=settings.SPADE_PRODUCT_TAG,
    )
    prepared = prepare_product(
        payload.product,
        media_base_url=settings.media_base_url,
        marker_tag=settings.SPADE_PRODUCT_TAG,
    )

    try:
        published = await sync.publish(prepared)
    except ShopifyUserErrors as exc:
        logger.info(
            "products.create_rejected",
            extra={"shop_domain": shop_domain, "user_errors": exc.user_errors},
        )
        return ORJSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"errors": exc.user_errors})
    except ShopifyApiError as exc:
        logger.error(
            "products.create_failed",
            extra={"shop_domain": shop_domain, "error": str(exc)},
        )
        return _failure_response(exc)

    return CreateProductResponse(
        product=published.product,
        media=published.media,
        source_data=SourceData(
            original_id=prepared.product.id,
            price_range=prepared.product.price_range,
            stock=prepared.product.stock,
            tags=list(prepared.product.tags),
        ),
    )
