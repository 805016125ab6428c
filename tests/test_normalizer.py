from __future__ import annotations

from spade_bridge.catalog.models import MediaReference
from spade_bridge.catalog.normalizer import (
    DEFAULT_PRODUCT_TITLE,
    DefaultPayload,
    FlatAttributesPayload,
    NestedSamplePayload,
    classify_payload,
    normalize,
)


def _sample_payload() -> dict:
    return {
        "id": 42,
        "name": "Linen Shirt",
        "tags": "summer",
        "stock": 12,
        "is_active": True,
        "price_range": {"min": "19.99", "max": "21.99"},
        "store": {"name": "Acme Store"},
        "sample": {
            "title": "Sample Shirt",
            "description": "<p>Soft linen</p>",
            "manufacturer": {"first_name": "Jane", "last_name": "Doe"},
            "sample_media": [
                {"media": "/media/shirt.jpg", "is_featured": True},
            ],
            "sample_attributes": [
                {
                    "name": "Color",
                    "values": [
                        {
                            "name": "Red",
                            "price": "19.99",
                            "compare_price": "24.99",
                            "sku": "RED",
                            "images": [{"image": "red.jpg"}],
                        },
                        {"name": "Yellow", "price": "21.99", "sku": "YEL", "images": []},
                    ],
                },
                {"name": "Size", "values": [{"name": "M"}, {"name": "L"}]},
            ],
        },
    }


def test_classify_payload_prefers_nested_sample_over_flat_attributes():
    payload = _sample_payload()
    payload["attributes"] = [{"name": "Ignored", "values": ["x"]}]

    assert isinstance(classify_payload(payload), NestedSamplePayload)
    assert isinstance(classify_payload({"attributes": []}), FlatAttributesPayload)
    assert isinstance(classify_payload({"title": "Plain"}), DefaultPayload)
    assert isinstance(classify_payload({"sample": {"title": "No attributes"}}), DefaultPayload)


def test_classify_payload_treats_non_objects_as_default():
    assert classify_payload(["not", "an", "object"]) == DefaultPayload(raw={})
    assert classify_payload(None) == DefaultPayload(raw={})


def test_normalize_nested_sample_builds_canonical_product():
    product = normalize(_sample_payload())

    assert product.id == 42
    assert product.title == "Linen Shirt"
    assert product.description == "<p>Soft linen</p>"
    assert product.stock == 12
    assert product.is_active is True
    assert product.status == "ACTIVE"
    assert product.price_range == {"min": "19.99", "max": "21.99"}
    assert [attribute.name for attribute in product.attributes] == ["Color", "Size"]
    red = product.attributes[0].values[0]
    assert red.name == "Red"
    assert red.price == "19.99"
    assert red.compare_price == "24.99"
    assert red.sku == "RED"


def test_normalize_nested_sample_orders_sample_media_before_value_images():
    product = normalize(_sample_payload())

    assert product.media == (
        MediaReference(media="/media/shirt.jpg", is_featured=True),
        MediaReference(image="red.jpg"),
    )


def test_normalize_nested_sample_assembles_tags_in_source_order():
    product = normalize(_sample_payload())

    assert product.tags == (
        "spade-product",
        "summer",
        "Acme Store",
        "Jane Doe",
        "Color",
        "Size",
        "Linen Shirt",
    )


def test_normalize_nested_sample_dedupes_tags_and_accepts_tag_arrays():
    payload = _sample_payload()
    payload["tags"] = ["Color", "spade-product", "  ", "new"]
    payload["name"] = "Color"

    product = normalize(payload, marker_tag="spade-product")

    assert product.tags == ("spade-product", "Color", "new", "Acme Store", "Jane Doe", "Size")


def test_normalize_nested_sample_falls_back_to_sample_title_and_description():
    payload = _sample_payload()
    del payload["name"]

    product = normalize(payload)

    assert product.title == "Sample Shirt"
    assert product.description == "<p>Soft linen</p>"
    assert "Linen Shirt" not in product.tags


def test_normalize_nested_sample_skips_manufacturer_without_first_name():
    payload = _sample_payload()
    payload["sample"]["manufacturer"] = {"last_name": "Doe"}
    del payload["store"]

    product = normalize(payload)

    assert "Doe" not in product.tags
    assert product.tags[:2] == ("spade-product", "summer")


def test_normalize_flat_attributes_wraps_scalar_values():
    product = normalize(
        {
            "title": "T-shirt",
            "price": "10",
            "attributes": [
                {"name": "Color", "values": ["Red", "Yellow"]},
                {"name": "Size", "values": [{"name": "M", "price": "12.50", "sku": "M"}]},
            ],
            "media": [{"media": "https://cdn.example.com/a.jpg"}],
            "tags": ["a", "b"],
        }
    )

    assert product.title == "T-shirt"
    assert product.price == "10"
    color, size = product.attributes
    assert [value.name for value in color.values] == ["Red", "Yellow"]
    assert color.values[0].price is None
    assert size.values[0].price == "12.50"
    assert size.values[0].sku == "M"
    assert product.media == (MediaReference(media="https://cdn.example.com/a.jpg"),)
    assert product.tags == ("a", "b")


def test_normalize_flat_attributes_defaults_media_and_tags():
    product = normalize({"title": "Mug", "attributes": []})

    assert product.attributes == ()
    assert product.media == ()
    assert product.tags == ()
    assert product.is_active is None
    assert product.status == "DRAFT"


def test_normalize_default_shape_passes_scalars_through():
    product = normalize({"id": "abc", "title": "Poster", "description": "Big", "stock": 3, "is_active": False})

    assert product.id == "abc"
    assert product.title == "Poster"
    assert product.description == "Big"
    assert product.stock == 3
    assert product.status == "DRAFT"
    assert product.attributes == ()


def test_normalize_never_raises_on_malformed_fields():
    product = normalize(
        {
            "title": {"unexpected": "object"},
            "attributes": [
                None,
                "Color",
                {"name": "Size", "values": "not-a-list"},
                {"name": "Fit", "values": [None, ["nested"], {"name": "Slim"}]},
            ],
            "media": [None, 5, {"is_featured": "yes"}],
            "tags": "solo",
        }
    )

    assert product.title == DEFAULT_PRODUCT_TITLE
    assert [attribute.name for attribute in product.attributes] == ["Size", "Fit"]
    assert product.attributes[0].values is None
    assert [value.name for value in product.attributes[1].values] == ["Slim"]
    assert product.media == (MediaReference(),)
    assert product.tags == ("solo",)


def test_normalize_uses_placeholder_title_for_every_shape():
    nested = normalize({"sample": {"sample_attributes": []}})
    flat = normalize({"attributes": [], "title": "   "})
    default = normalize({})

    assert nested.title == flat.title == default.title == DEFAULT_PRODUCT_TITLE
    assert DEFAULT_PRODUCT_TITLE not in nested.tags
