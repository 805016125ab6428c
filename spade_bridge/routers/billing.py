from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import ORJSONResponse

from spade_bridge.config import settings
from spade_bridge.deps import get_shopify_api, get_token_store, shop_key
from spade_bridge.schemas import (
    CreateSubscriptionRequest,
    CreateSubscriptionResponse,
    CreateUsageChargeRequest,
)
from spade_bridge.shopify_api import ShopifyApiClient, ShopifyApiError, ShopifyUserErrors
from spade_bridge.token_store import TokenStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["billing"])

_UNAUTHENTICATED = {"error": "Shop not authenticated or access token not found"}


@router.post("/subscription", response_model=CreateSubscriptionResponse)
async def create_subscription(
    payload: CreateSubscriptionRequest,
    token_store: TokenStore = Depends(get_token_store),
    shopify_api: ShopifyApiClient = Depends(get_shopify_api),
):
    shop_domain = shop_key(payload.shop)
    access_token = token_store.get(shop_domain)
    if not access_token:
        return ORJSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content=_UNAUTHENTICATED)

    try:
        created = await shopify_api.create_app_subscription(
            shop_domain=shop_domain,
            access_token=access_token,
            name=payload.planName,
            price=payload.price,
            return_url=payload.returnUrl,
            test=settings.BILLING_TEST_MODE,
            currency_code=settings.BILLING_CURRENCY_CODE,
        )
    except ShopifyUserErrors as exc:
        return ORJSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"errors": exc.user_errors})
    except ShopifyApiError as exc:
        logger.error("billing.subscription_failed", extra={"shop_domain": shop_domain, "error": str(exc)})
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to create subscription"},
        )

    subscription = created.get("appSubscription") or {}
    return CreateSubscriptionResponse(
        confirmationUrl=created["confirmationUrl"],
        subscriptionId=subscription.get("id"),
    )


@router.post("/usage")
async def create_usage_charge(
    payload: CreateUsageChargeRequest,
    token_store: TokenStore = Depends(get_token_store),
    shopify_api: ShopifyApiClient = Depends(get_shopify_api),
):
    shop_domain = shop_key(payload.shop)
    access_token = token_store.get(shop_domain)
    if not access_token:
        return ORJSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content=_UNAUTHENTICATED)

    try:
        return await shopify_api.create_usage_record(
            shop_domain=shop_domain,
            access_token=access_token,
            subscription_line_item_id=payload.subscriptionId,
            description=payload.description,
            amount=payload.amount,
            currency_code=settings.BILLING_CURRENCY_CODE,
        )
    except ShopifyApiError as exc:
        logger.error("billing.usage_failed", extra={"shop_domain": shop_domain, "error": str(exc)})
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to create usage charge"},
        )
