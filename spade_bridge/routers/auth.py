from __future__ import annotations

import hashlib
import hmac
import logging
from collections.abc import Sequence
from urllib.parse import urlencode
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from spade_bridge.config import settings
from spade_bridge.db import get_session
from spade_bridge.deps import get_shopify_api, get_token_store, require_shop_domain
from spade_bridge.models import OAuthState
from spade_bridge.shopify_api import ShopifyApiClient, ShopifyApiError
from spade_bridge.token_store import TokenStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shopify", tags=["auth"])

UNINSTALL_WEBHOOK_PATH = "/webhooks/app-uninstalled"

_UNSIGNED_QUERY_KEYS = frozenset({"hmac", "signature"})


def oauth_query_is_authentic(query_items: Sequence[tuple[str, str]]) -> bool:
    """Check the ``hmac`` Shopify appends to OAuth redirects.

    The signed message is every other parameter as ``key=value``, sorted and
    joined with ``&``, hex HMAC-SHA256 under the app secret.
    """
    supplied = next((value for key, value in query_items if key == "hmac"), "")
    if not supplied:
        return False
    signed = sorted((key, value) for key, value in query_items if key not in _UNSIGNED_QUERY_KEYS)
    message = "&".join(f"{key}={value}" for key, value in signed)
    expected = hmac.new(
        settings.SHOPIFY_API_SECRET.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return hmac.compare_digest(expected, supplied)


def build_authorize_url(*, shop_domain: str, state: str) -> str:
    query = urlencode(
        {
            "client_id": settings.SHOPIFY_API_KEY,
            "scope": settings.SHOPIFY_SCOPES,
            "redirect_uri": f"{settings.app_base_url}/shopify/callback",
            "state": state,
        }
    )
    return f"https://{shop_domain}/admin/oauth/authorize?{query}"


@router.get("/install")
def install(shop: str, session: Session = Depends(get_session)):
    shop_domain = require_shop_domain(shop)
    state = uuid4().hex
    session.add(OAuthState(state=state, shop_domain=shop_domain))
    session.commit()
    return RedirectResponse(url=build_authorize_url(shop_domain=shop_domain, state=state), status_code=302)


@router.get("/callback")
async def callback(
    request: Request,
    session: Session = Depends(get_session),
    token_store: TokenStore = Depends(get_token_store),
    shopify_api: ShopifyApiClient = Depends(get_shopify_api),
):
    query_items = list(request.query_params.multi_items())
    if not oauth_query_is_authentic(query_items):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="HMAC verification failed")

    shop = request.query_params.get("shop")
    code = request.query_params.get("code")
    state_value = request.query_params.get("state")
    if not shop or not code or not state_value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required OAuth callback params: shop, code, state",
        )

    shop_domain = require_shop_domain(shop)
    oauth_state = session.get(OAuthState, state_value)
    if not oauth_state:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid OAuth state")
    if oauth_state.shop_domain != shop_domain:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="OAuth state does not match the shop domain",
        )

    try:
        access_token, scopes_csv = await shopify_api.exchange_code_for_access_token(
            shop_domain=shop_domain,
            code=code,
        )
        await shopify_api.register_webhook(
            shop_domain=shop_domain,
            access_token=access_token,
            topic="APP_UNINSTALLED",
            callback_url=f"{settings.app_base_url}{UNINSTALL_WEBHOOK_PATH}",
        )
    except ShopifyApiError as exc:
        logger.error("auth.callback_failed", extra={"shop_domain": shop_domain, "error": str(exc)})
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc

    token_store.set(shop_domain, access_token, scopes=scopes_csv)
    session.delete(oauth_state)
    session.commit()
    logger.info("auth.installed", extra={"shop_domain": shop_domain})

    return {
        "ok": True,
        "shopDomain": shop_domain,
        "scopes": [scope.strip() for scope in scopes_csv.split(",") if scope.strip()],
    }
