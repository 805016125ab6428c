from __future__ import annotations

import re

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from spade_bridge.db import get_session
from spade_bridge.fedex_api import FedExApiClient
from spade_bridge.shopify_api import ShopifyApiClient
from spade_bridge.token_store import ShopTokenRepository, TokenStore

shopify_api = ShopifyApiClient()
fedex_api = FedExApiClient()

_MYSHOPIFY_DOMAIN = re.compile(r"[a-z0-9][a-z0-9-]*\.myshopify\.com")


def get_token_store(session: Session = Depends(get_session)) -> TokenStore:
    return ShopTokenRepository(session)


def get_shopify_api() -> ShopifyApiClient:
    return shopify_api


def get_fedex_api() -> FedExApiClient:
    return fedex_api


def shop_key(shop: str | None) -> str:
    return (shop or "").strip().lower()


def require_shop_domain(shop: str | None) -> str:
    """Token-store key for ``shop``; anything but a ``*.myshopify.com`` host is a 400."""
    domain = shop_key(shop)
    if _MYSHOPIFY_DOMAIN.fullmatch(domain) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="shop must be a *.myshopify.com domain",
        )
    return domain
