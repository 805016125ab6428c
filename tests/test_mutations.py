from __future__ import annotations

import pytest

from spade_bridge.catalog.models import Product, Variant
from spade_bridge.catalog.mutations import (
    build_create_mutation,
    build_media_mutation,
    gql_escape,
    serialize,
)

_UNESCAPES = {'"': '"', "\\": "\\", "n": "\n", "r": "\r", "t": "\t"}


def _read_string_literal(document: str, field: str) -> str:
    """Parse the quoted literal following ``field:`` the way a GraphQL lexer would."""
    start = document.index(f'{field}: "') + len(field) + 3
    chars: list[str] = []
    index = start
    while True:
        char = document[index]
        if char == "\\":
            chars.append(_UNESCAPES[document[index + 1]])
            index += 2
            continue
        if char == '"':
            return "".join(chars)
        assert char not in "\n\r", "unterminated string literal"
        chars.append(char)
        index += 1


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("", ""),
        ("plain", "plain"),
        ('say "hi"', 'say \\"hi\\"'),
        ("back\\slash", "back\\\\slash"),
        ('\\"', '\\\\\\"'),
        ("line\nbreak", "line\\nbreak"),
        (42, "42"),
    ],
)
def test_gql_escape(raw, expected):
    assert gql_escape(raw) == expected


def test_escaped_title_round_trips_as_a_string_literal():
    title = 'The "Best" \\ Shirt \\"'
    product = Product(title=title)

    document = build_create_mutation(product, [], [Variant(price="1.00")])

    assert _read_string_literal(document, "title") == title


def test_create_mutation_renders_product_input():
    product = Product(
        title="T-shirt",
        description='<p class="x">Soft</p>',
        is_active=True,
        tags=("spade-product", " Acme ", "spade-product", ""),
    )
    variants = [
        Variant(price="19.99", sku="RED-M", options=("Red", "M")),
        Variant(price="21.99", sku=None, options=("Yellow", "M")),
    ]

    document = build_create_mutation(product, ["Color", "Size"], variants)

    assert document.startswith("mutation {\n  productCreate(\n    input: {\n")
    assert 'title: "T-shirt"' in document
    assert _read_string_literal(document, "descriptionHtml") == '<p class="x">Soft</p>'
    assert "status: ACTIVE" in document
    assert 'tags: ["spade-product", "Acme"]' in document
    assert 'options: ["Color", "Size"]' in document
    assert '{ price: "19.99", sku: "RED-M", options: ["Red", "M"] }' in document
    assert '{ price: "21.99", options: ["Yellow", "M"] }' in document
    assert "userErrors" in document
    assert document.count("{") == document.count("}")


def test_create_mutation_omits_empty_optional_fields():
    document = build_create_mutation(Product(title="Mug"), [], [Variant(price="0.00")])

    assert "descriptionHtml" not in document
    assert "tags:" not in document
    assert "status: DRAFT" in document
    assert "options: []" in document


def test_create_mutation_escapes_option_and_sku_text():
    variants = [Variant(price="1.00", sku='A"B', options=('12" pizza',))]

    document = build_create_mutation(Product(title="Pizza"), ['Size "in"'], variants)

    assert 'options: ["Size \\"in\\""]' in document
    assert 'sku: "A\\"B"' in document
    assert 'options: ["12\\" pizza"]' in document


def test_build_media_mutation_lists_sources_for_product():
    media = [
        {"mediaContentType": "IMAGE", "originalSource": "https://cdn.example.com/a.jpg"},
        {"mediaContentType": "IMAGE", "originalSource": "https://cdn.example.com/b.jpg"},
    ]

    document = build_media_mutation("gid://shopify/Product/1", media)

    assert document is not None
    assert 'productId: "gid://shopify/Product/1"' in document
    assert 'mediaContentType: IMAGE, originalSource: "https://cdn.example.com/a.jpg"' in document
    assert document.index("a.jpg") < document.index("b.jpg")
    assert "mediaUserErrors" in document


def test_build_media_mutation_is_omitted_without_media():
    assert build_media_mutation("gid://shopify/Product/1", []) is None


def test_serialize_defers_media_mutation_until_product_id_is_known():
    media = [{"mediaContentType": "IMAGE", "originalSource": "https://cdn.example.com/a.jpg"}]

    mutations = serialize(Product(title="Mug"), [], [Variant(price="2.00")], media)

    assert "productCreate(" in mutations.create
    assert "productCreateMedia" not in mutations.create
    assert 'productId: "gid://shopify/Product/9"' in mutations.media_mutation("gid://shopify/Product/9")
    assert serialize(Product(title="Mug"), [], [Variant(price="2.00")], []).media_mutation("gid://x") is None
