from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from spade_bridge.config import settings
from spade_bridge.deps import get_token_store, require_shop_domain
from spade_bridge.token_store import TokenStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def webhook_body_is_authentic(body: bytes, signature: Optional[str]) -> bool:
    """Check ``X-Shopify-Hmac-Sha256``: base64 HMAC-SHA256 of the raw body under the app secret."""
    if not signature:
        return False
    try:
        supplied = base64.b64decode(signature, validate=True)
    except (binascii.Error, ValueError):
        return False
    expected = hmac.new(settings.SHOPIFY_API_SECRET.encode("utf-8"), body, hashlib.sha256).digest()
    return hmac.compare_digest(expected, supplied)


@router.post("/app-uninstalled")
async def app_uninstalled(request: Request, token_store: TokenStore = Depends(get_token_store)):
    body = await request.body()
    if not webhook_body_is_authentic(body, request.headers.get("x-shopify-hmac-sha256")):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook HMAC")

    shop_header = request.headers.get("x-shopify-shop-domain")
    if not shop_header:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing x-shopify-shop-domain header",
        )
    shop_domain = require_shop_domain(shop_header)

    token_store.delete(shop_domain)
    logger.info("webhooks.app_uninstalled", extra={"shop_domain": shop_domain})
    return {"received": True}
