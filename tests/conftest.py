import os
import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("SHOPIFY_API_KEY", "test_key")
os.environ.setdefault("SHOPIFY_API_SECRET", "test_secret")
os.environ.setdefault("SHOPIFY_SCOPES", "read_products,write_products,read_orders")
os.environ.setdefault("SHOPIFY_HOST", "https://example.ngrok.app")
os.environ.setdefault("SPADE_DB_URL", "sqlite:///./test_spade_bridge.db")
os.environ.setdefault("SPADE_HOST_URL", "http://localhost:8000/media")
os.environ.setdefault("FEDEX_CLIENT_ID", "fedex_id")
os.environ.setdefault("FEDEX_CLIENT_SECRET", "fedex_secret")
os.environ.setdefault("USE_FEDEX_SANDBOX", "false")


class InMemoryTokenStore:
    def __init__(self, tokens: dict[str, str] | None = None) -> None:
        self.tokens: dict[str, str] = dict(tokens or {})

    def get(self, shop_domain: str) -> str | None:
        return self.tokens.get(shop_domain)

    def set(self, shop_domain: str, token: str, *, scopes: str = "") -> None:
        self.tokens[shop_domain] = token

    def delete(self, shop_domain: str) -> None:
        self.tokens.pop(shop_domain, None)


@pytest.fixture()
def token_store():
    return InMemoryTokenStore({"example.myshopify.com": "admin_access_token"})


@pytest.fixture()
def api_client(token_store):
    from fastapi.testclient import TestClient

    from spade_bridge.deps import get_token_store
    from spade_bridge.main import app

    app.dependency_overrides[get_token_store] = lambda: token_store
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
