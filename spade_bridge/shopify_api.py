from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

import httpx

from spade_bridge.config import settings


class ShopifyApiError(RuntimeError):
    def __init__(self, *, message: str, status_code: int = 502, details: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ShopifyGraphQLError(ShopifyApiError):
    """Top-level ``errors`` array on an Admin GraphQL response."""

    def __init__(self, *, errors: Any) -> None:
        super().__init__(message=f"Admin GraphQL errors: {errors}", details=errors)
        self.errors = errors


class ShopifyUserErrors(ShopifyApiError):
    """Field-level ``userErrors`` reported by a mutation, kept verbatim."""

    def __init__(self, *, mutation_name: str, user_errors: list[dict[str, Any]]) -> None:
        messages = "; ".join(str(error.get("message")) for error in user_errors)
        super().__init__(
            message=f"{mutation_name} failed: {messages}",
            status_code=400,
            details=user_errors,
        )
        self.user_errors = user_errors


_WEBHOOK_CREATE = """
mutation webhookSubscriptionCreate($topic: WebhookSubscriptionTopic!, $webhookSubscription: WebhookSubscriptionInput!) {
    webhookSubscriptionCreate(topic: $topic, webhookSubscription: $webhookSubscription) {
        webhookSubscription { id }
        userErrors { field message }
    }
}
"""

_PRODUCT_BY_SKU = """
query productBySku($query: String!) {
    products(first: 1, query: $query) {
        nodes {
            id
            title
            variants(first: 100) {
                nodes {
                    id
                    sku
                    price
                    inventoryQuantity
                    inventoryItem { id }
                }
            }
        }
    }
}
"""

_PRODUCT_UPDATE = """
mutation productUpdate($input: ProductInput!) {
    productUpdate(input: $input) {
        product { id title status }
        userErrors { field message }
    }
}
"""

_VARIANTS_BULK_UPDATE = """
mutation productVariantsBulkUpdate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
    productVariantsBulkUpdate(productId: $productId, variants: $variants) {
        productVariants { id price compareAtPrice sku }
        userErrors { field message }
    }
}
"""

_PRIMARY_LOCATION = """
query primaryLocation {
    locations(first: 1) {
        nodes { id name }
    }
}
"""

_INVENTORY_SET_QUANTITIES = """
mutation inventorySetQuantities($input: InventorySetQuantitiesInput!) {
    inventorySetQuantities(input: $input) {
        inventoryAdjustmentGroup {
            reason
            changes { name delta }
        }
        userErrors { field message }
    }
}
"""

_ORDERS_BY_TAG = """
query OrdersByTag($first: Int!, $query: String!) {
    orders(first: $first, query: $query) {
        nodes {
            id
            name
            tags
            createdAt
            updatedAt
            processedAt
            displayFinancialStatus
            displayFulfillmentStatus
            totalPriceSet { shopMoney { amount currencyCode } }
            subtotalPriceSet { shopMoney { amount currencyCode } }
            totalTaxSet { shopMoney { amount currencyCode } }
            totalShippingPriceSet { shopMoney { amount currencyCode } }
            totalDiscountsSet { shopMoney { amount currencyCode } }
            currencyCode
            customer { id email firstName lastName phone tags }
            billingAddress { address1 address2 city province country zip phone name }
            shippingAddress { address1 address2 city province country zip phone name }
            lineItems(first: 50) {
                nodes {
                    id
                    title
                    quantity
                    sku
                    vendor
                    product { id title tags }
                    variant { id title price }
                    originalUnitPriceSet { shopMoney { amount currencyCode } }
                }
            }
            fulfillments(first: 10) {
                id
                status
                trackingInfo { number url }
            }
            metafields(first: 10) {
                edges { node { namespace key value } }
            }
            note
            paymentGatewayNames
            test
            totalWeight
            totalTipReceivedSet { shopMoney { amount currencyCode } }
            refunds(first: 10) {
                id
                createdAt
                note
                refundLineItems(first: 10) { nodes { lineItem { id } } }
            }
            shippingLines(first: 10) {
                nodes {
                    code
                    originalPriceSet { shopMoney { amount currencyCode } }
                    discountedPriceSet { shopMoney { amount currencyCode } }
                }
            }
        }
    }
}
"""

_APP_SUBSCRIPTION_CREATE = """
mutation appSubscriptionCreate(
    $name: String!
    $returnUrl: URL!
    $test: Boolean
    $lineItems: [AppSubscriptionLineItemInput!]!
) {
    appSubscriptionCreate(name: $name, returnUrl: $returnUrl, test: $test, lineItems: $lineItems) {
        appSubscription { id status }
        confirmationUrl
        userErrors { field message }
    }
}
"""

_APP_USAGE_RECORD_CREATE = """
mutation appUsageRecordCreate($subscriptionLineItemId: ID!, $description: String!, $price: MoneyInput!) {
    appUsageRecordCreate(subscriptionLineItemId: $subscriptionLineItemId, description: $description, price: $price) {
        appUsageRecord { id }
        userErrors { field message }
    }
}
"""


def sku_search_query(sku: str) -> str:
    """Admin search syntax matching one exact SKU, quoted so spaces and colons survive."""
    escaped = sku.replace("\\", "\\\\").replace('"', '\\"')
    return f'sku:"{escaped}"'


def _mutation_payload(
    data: dict[str, Any],
    mutation_name: str,
    *,
    errors_key: Optional[str] = "userErrors",
) -> dict[str, Any]:
    payload = data.get(mutation_name)
    if not isinstance(payload, dict):
        raise ShopifyApiError(message=f"{mutation_name} response is missing payload", details=data)
    if errors_key is None:
        return payload
    raw_errors = payload.get(errors_key)
    if isinstance(raw_errors, list):
        user_errors = [error for error in raw_errors if isinstance(error, dict)]
        if user_errors:
            raise ShopifyUserErrors(mutation_name=mutation_name, user_errors=user_errors)
    return payload


def _json_object(response: httpx.Response) -> dict[str, Any]:
    try:
        body: Any = response.json()
    except ValueError:
        if response.is_success:
            raise ShopifyApiError(message="Shopify API returned invalid JSON", details=response.text) from None
        body = response.text

    if response.is_error:
        raise ShopifyApiError(message=f"Shopify API call failed ({response.status_code})", details=body)
    if not isinstance(body, dict):
        raise ShopifyApiError(message="Shopify API response must be a JSON object", details=body)
    return body


class ShopifyApiClient:
    def __init__(self, *, api_version: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self._api_version = api_version or settings.SHOPIFY_ADMIN_API_VERSION
        self._timeout = timeout or settings.SHOPIFY_REQUEST_TIMEOUT_SECONDS

    async def exchange_code_for_access_token(self, *, shop_domain: str, code: str) -> tuple[str, str]:
        """Trade an OAuth ``code`` for an offline Admin token; returns ``(token, scope_csv)``."""
        body = await self._post_json(
            url=f"https://{shop_domain}/admin/oauth/access_token",
            payload={
                "client_id": settings.SHOPIFY_API_KEY,
                "client_secret": settings.SHOPIFY_API_SECRET,
                "code": code,
            },
        )
        token = body.get("access_token")
        if not isinstance(token, str) or not token:
            raise ShopifyApiError(message="OAuth token exchange response is missing access_token", details=body)
        scope = body.get("scope")
        return token, scope if isinstance(scope, str) else ""

    async def register_webhook(
        self,
        *,
        shop_domain: str,
        access_token: str,
        topic: str,
        callback_url: str,
    ) -> str:
        data = await self._admin_graphql(
            shop_domain=shop_domain,
            access_token=access_token,
            payload={
                "query": _WEBHOOK_CREATE,
                "variables": {
                    "topic": topic,
                    "webhookSubscription": {"callbackUrl": callback_url, "format": "JSON"},
                },
            },
        )
        created = _mutation_payload(data, "webhookSubscriptionCreate")
        subscription_id = (created.get("webhookSubscription") or {}).get("id")
        if not isinstance(subscription_id, str) or not subscription_id:
            raise ShopifyApiError(message=f"Webhook registration for {topic} returned no id", details=created)
        return subscription_id

    async def create_product(self, *, shop_domain: str, access_token: str, mutation: str) -> dict[str, Any]:
        """Send a rendered productCreate mutation and return its payload.

        userErrors are raised as ShopifyUserErrors so callers can surface
        them untouched and skip any follow-up media upload.
        """
        data = await self._admin_graphql(
            shop_domain=shop_domain,
            access_token=access_token,
            payload={"query": mutation},
        )
        return _mutation_payload(data, "productCreate")

    async def attach_product_media(
        self,
        *,
        shop_domain: str,
        access_token: str,
        mutation: str,
    ) -> dict[str, Any]:
        # mediaUserErrors stay in the payload; image upload is best-effort.
        data = await self._admin_graphql(
            shop_domain=shop_domain,
            access_token=access_token,
            payload={"query": mutation},
        )
        return _mutation_payload(data, "productCreateMedia", errors_key=None)

    async def find_product_by_sku(
        self,
        *,
        shop_domain: str,
        access_token: str,
        sku: str,
    ) -> Optional[dict[str, Any]]:
        data = await self._admin_graphql(
            shop_domain=shop_domain,
            access_token=access_token,
            payload={"query": _PRODUCT_BY_SKU, "variables": {"query": sku_search_query(sku)}},
        )
        nodes = (data.get("products") or {}).get("nodes")
        if not isinstance(nodes, list):
            raise ShopifyApiError(message="Product search response is invalid", details=data)
        return nodes[0] if nodes and isinstance(nodes[0], dict) else None

    async def update_product(
        self,
        *,
        shop_domain: str,
        access_token: str,
        product_input: dict[str, Any],
    ) -> dict[str, Any]:
        data = await self._admin_graphql(
            shop_domain=shop_domain,
            access_token=access_token,
            payload={"query": _PRODUCT_UPDATE, "variables": {"input": product_input}},
        )
        return _mutation_payload(data, "productUpdate")

    async def update_variants(
        self,
        *,
        shop_domain: str,
        access_token: str,
        product_id: str,
        variants: list[dict[str, Any]],
    ) -> dict[str, Any]:
        data = await self._admin_graphql(
            shop_domain=shop_domain,
            access_token=access_token,
            payload={
                "query": _VARIANTS_BULK_UPDATE,
                "variables": {"productId": product_id, "variants": variants},
            },
        )
        return _mutation_payload(data, "productVariantsBulkUpdate")

    async def primary_location_id(self, *, shop_domain: str, access_token: str) -> str:
        data = await self._admin_graphql(
            shop_domain=shop_domain,
            access_token=access_token,
            payload={"query": _PRIMARY_LOCATION},
        )
        nodes = (data.get("locations") or {}).get("nodes") or []
        location_id = nodes[0].get("id") if nodes and isinstance(nodes[0], dict) else None
        if not isinstance(location_id, str) or not location_id:
            raise ShopifyApiError(message="Shop has no inventory location", details=data)
        return location_id

    async def set_inventory_quantities(
        self,
        *,
        shop_domain: str,
        access_token: str,
        location_id: str,
        quantities: dict[str, int],
    ) -> dict[str, Any]:
        """Overwrite the ``available`` quantity of each inventory item at one location."""
        data = await self._admin_graphql(
            shop_domain=shop_domain,
            access_token=access_token,
            payload={
                "query": _INVENTORY_SET_QUANTITIES,
                "variables": {
                    "input": {
                        "name": "available",
                        "reason": "correction",
                        "ignoreCompareQuantity": True,
                        "quantities": [
                            {"inventoryItemId": item_id, "locationId": location_id, "quantity": quantity}
                            for item_id, quantity in quantities.items()
                        ],
                    }
                },
            },
        )
        return _mutation_payload(data, "inventorySetQuantities")

    async def list_tagged_orders(
        self,
        *,
        shop_domain: str,
        access_token: str,
        tag: str,
        first: int = 50,
    ) -> list[dict[str, Any]]:
        data = await self._admin_graphql(
            shop_domain=shop_domain,
            access_token=access_token,
            payload={"query": _ORDERS_BY_TAG, "variables": {"first": first, "query": f"tag:{tag}"}},
        )
        nodes = (data.get("orders") or {}).get("nodes")
        if not isinstance(nodes, list):
            raise ShopifyApiError(message="Order list response is invalid", details=data)
        return nodes

    async def create_app_subscription(
        self,
        *,
        shop_domain: str,
        access_token: str,
        name: str,
        price: Decimal,
        return_url: str,
        test: bool,
        currency_code: str,
    ) -> dict[str, Any]:
        line_item = {
            "plan": {
                "appRecurringPricingDetails": {
                    "price": {"amount": str(price), "currencyCode": currency_code},
                }
            }
        }
        data = await self._admin_graphql(
            shop_domain=shop_domain,
            access_token=access_token,
            payload={
                "query": _APP_SUBSCRIPTION_CREATE,
                "variables": {"name": name, "returnUrl": return_url, "test": test, "lineItems": [line_item]},
            },
        )
        created = _mutation_payload(data, "appSubscriptionCreate")
        confirmation_url = created.get("confirmationUrl")
        if not isinstance(confirmation_url, str) or not confirmation_url:
            raise ShopifyApiError(message="appSubscriptionCreate response is missing confirmationUrl", details=created)
        return created

    async def create_usage_record(
        self,
        *,
        shop_domain: str,
        access_token: str,
        subscription_line_item_id: str,
        description: str,
        amount: Decimal,
        currency_code: str,
    ) -> dict[str, Any]:
        data = await self._admin_graphql(
            shop_domain=shop_domain,
            access_token=access_token,
            payload={
                "query": _APP_USAGE_RECORD_CREATE,
                "variables": {
                    "subscriptionLineItemId": subscription_line_item_id,
                    "description": description,
                    "price": {"amount": str(amount), "currencyCode": currency_code},
                },
            },
        )
        # userErrors are part of the returned payload for usage charges.
        return _mutation_payload(data, "appUsageRecordCreate", errors_key=None)

    def _graphql_url(self, shop_domain: str) -> str:
        return f"https://{shop_domain}/admin/api/{self._api_version}/graphql.json"

    async def _admin_graphql(
        self,
        *,
        shop_domain: str,
        access_token: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        body = await self._post_json(
            url=self._graphql_url(shop_domain),
            payload=payload,
            headers={"X-Shopify-Access-Token": access_token},
        )
        if body.get("errors"):
            raise ShopifyGraphQLError(errors=body["errors"])
        data = body.get("data")
        if isinstance(data, dict):
            return data
        raise ShopifyApiError(message="Admin GraphQL response is missing data", details=body)

    async def _post_json(
        self,
        *,
        url: str,
        payload: dict[str, Any],
        headers: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.RequestError as exc:
            raise ShopifyApiError(message=f"Network error while calling Shopify: {exc}") from exc
        return _json_object(response)
