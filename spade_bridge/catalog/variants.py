from __future__ import annotations

import itertools
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Optional

from spade_bridge.catalog.models import (
    DEFAULT_OPTION_LABEL,
    Attribute,
    AttributeValue,
    Product,
    Variant,
)

_ZERO = Decimal("0")
_CENTS = Decimal("0.01")
# Prices with more integer digits than this are rejected rather than rounded.
MAX_PRICE_DIGITS = 40


def _to_cents(value: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def parse_price(raw: Any) -> Optional[Decimal]:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite() or value.adjusted() >= MAX_PRICE_DIGITS:
        return None
    return _to_cents(value)


def format_price(value: Decimal) -> str:
    if value <= _ZERO:
        value = _ZERO
    return str(_to_cents(value))


def _option_name(attribute: Attribute, position: int) -> str:
    return attribute.name or f"Option {position}"


def _value_choices(attribute: Attribute, product: Product) -> Sequence[AttributeValue]:
    if attribute.values is None:
        return (AttributeValue(name=DEFAULT_OPTION_LABEL, price=product.price),)
    return attribute.values


def _build_variant(combination: Sequence[AttributeValue], fallback_price: Decimal) -> Variant:
    # Highest contributing price wins: an option value may mark a premium variant.
    prices = [parse_price(value.price) for value in combination]
    resolved = [price if price is not None else fallback_price for price in prices]
    price = max(resolved) if resolved else fallback_price

    skus = [value.sku for value in combination if value.sku]
    return Variant(
        price=format_price(price),
        sku="-".join(skus) if skus else None,
        options=tuple(value.name or DEFAULT_OPTION_LABEL for value in combination),
    )


def expand(product: Product) -> tuple[list[str], list[Variant]]:
    """Build option names and the full variant matrix for a product.

    Combinations follow attribute order with the last attribute varying
    fastest, so ``Color[Red, Yellow] x Size[M, L]`` yields Red/M, Red/L,
    Yellow/M, Yellow/L.
    """
    options = [_option_name(attribute, index) for index, attribute in enumerate(product.attributes, start=1)]
    fallback_price = parse_price(product.price)
    if fallback_price is None:
        fallback_price = _ZERO

    choices = [_value_choices(attribute, product) for attribute in product.attributes]
    variants = [_build_variant(combination, fallback_price) for combination in itertools.product(*choices)]

    if not variants:
        variants.append(
            Variant(
                price=format_price(fallback_price),
                sku=None,
                options=tuple(DEFAULT_OPTION_LABEL for _ in options),
            )
        )
    return options, variants
