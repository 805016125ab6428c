from __future__ import annotations

import pytest

from spade_bridge.catalog import prepare_product
from spade_bridge.product_sync import catalog_sku, matching_variant, stock_quantity, with_approval_flag


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ({"sku": " TEE-1 "}, "TEE-1"),
        ({"sku": 1001}, "1001"),
        ({"sku": "   "}, None),
        ({"sku": ["A"]}, None),
        ({}, None),
        ("not a product", None),
    ],
)
def test_catalog_sku(raw, expected):
    assert catalog_sku(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(4, 4), ("12", 12), (" 7 ", 7), (3.0, 3), (2.5, None), ("many", None), (True, None), (None, None)],
)
def test_stock_quantity(raw, expected):
    assert stock_quantity(raw) == expected


def test_with_approval_flag_maps_review_status():
    assert with_approval_flag({"status": "approved"})["is_active"] is True
    assert with_approval_flag({"status": "pending"})["is_active"] is False
    assert with_approval_flag({"status": "approved", "is_active": False}) == {"status": "approved", "is_active": False}
    assert with_approval_flag({"title": "No status"}) == {"title": "No status"}


def test_matching_variant_reads_nodes_and_edges():
    by_nodes = {"variants": {"nodes": [{"id": "v1", "sku": "A"}, {"id": "v2", "sku": "B"}]}}
    by_edges = {"variants": {"edges": [{"node": {"id": "v3", "sku": "B"}}]}}

    assert matching_variant(by_nodes, "B") == {"id": "v2", "sku": "B"}
    assert matching_variant(by_edges, "B") == {"id": "v3", "sku": "B"}
    assert matching_variant(by_nodes, "C") is None
    assert matching_variant({}, "A") is None


def test_prepare_product_fills_missing_variant_skus_with_default():
    raw = {
        "title": "Tee",
        "attributes": [{"name": "Size", "values": [{"name": "S", "sku": "TEE-S"}, {"name": "M"}]}],
    }

    prepared = prepare_product(raw, media_base_url="https://media.example.com", default_sku="TEE")

    assert [variant.sku for variant in prepared.variants] == ["TEE-S", "TEE"]
    assert 'sku: "TEE"' in prepared.mutations.create
