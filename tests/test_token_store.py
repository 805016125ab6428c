from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from spade_bridge.db import build_engine, init_db
from spade_bridge.models import ShopInstallation
from spade_bridge.token_store import ShopTokenRepository


@pytest.fixture()
def db_session():
    engine = build_engine("sqlite://")
    init_db(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


def test_get_returns_none_for_unknown_shop(db_session):
    assert ShopTokenRepository(db_session).get("unknown.myshopify.com") is None


def test_set_then_get_round_trips_token(db_session):
    store = ShopTokenRepository(db_session)

    store.set("example.myshopify.com", "token_1", scopes="read_products")

    assert store.get("example.myshopify.com") == "token_1"
    installation = db_session.query(ShopInstallation).one()
    assert installation.scopes == "read_products"


def test_set_replaces_existing_token_and_reinstalls(db_session):
    store = ShopTokenRepository(db_session)
    store.set("example.myshopify.com", "token_1")
    store.delete("example.myshopify.com")

    store.set("example.myshopify.com", "token_2", scopes="write_products")

    assert store.get("example.myshopify.com") == "token_2"
    installation = db_session.query(ShopInstallation).one()
    assert installation.uninstalled_at is None


def test_delete_revokes_token(db_session):
    store = ShopTokenRepository(db_session)
    store.set("example.myshopify.com", "token_1")

    store.delete("example.myshopify.com")
    store.delete("missing.myshopify.com")

    assert store.get("example.myshopify.com") is None
    installation = db_session.query(ShopInstallation).one()
    assert installation.uninstalled_at is not None
    assert installation.admin_access_token == ""
