from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import ORJSONResponse

from spade_bridge.config import settings
from spade_bridge.deps import get_shopify_api, get_token_store, shop_key
from spade_bridge.shopify_api import ShopifyApiClient, ShopifyApiError, ShopifyGraphQLError
from spade_bridge.token_store import TokenStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/spade")
async def list_spade_orders(
    shop: str | None = None,
    token_store: TokenStore = Depends(get_token_store),
    shopify_api: ShopifyApiClient = Depends(get_shopify_api),
):
    shop_domain = shop_key(shop)
    access_token = token_store.get(shop_domain) if shop_domain else None
    if not access_token:
        return ORJSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "Unauthorized: No access token found for this shop"},
        )

    try:
        return await shopify_api.list_tagged_orders(
            shop_domain=shop_domain,
            access_token=access_token,
            tag=settings.SPADE_ORDER_TAG,
            first=settings.SPADE_ORDERS_PAGE_SIZE,
        )
    except ShopifyGraphQLError as exc:
        logger.warning("orders.graphql_errors", extra={"shop_domain": shop_domain, "errors": exc.errors})
        return ORJSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"errors": exc.errors})
    except ShopifyApiError as exc:
        logger.error("orders.fetch_failed", extra={"shop_domain": shop_domain, "error": str(exc)})
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error"},
        )
