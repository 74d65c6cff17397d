"""Stripe operations exposed to the remote agent.

Each operation is an OperationDefinition describing the request shape the
agent may send, paired with an invoker that calls the matching service on a
``stripe.StripeClient`` bound to the caller's secret key.
"""

from typing import Any

import stripe

from wildcard_bridge.config import settings
from wildcard_bridge.operations.registry import OperationRegistry
from wildcard_bridge.operations.types import FieldSpec, OperationDefinition, OperationRequest

NAMESPACE = "stripe"


def stripe_client_factory(api_key: str) -> stripe.StripeClient:
    """Create a Stripe client scoped to one secret key.

    Each HTTP request is bounded by the Stripe timeout so a worker thread
    outliving the executor deadline still finishes.
    """
    return stripe.StripeClient(
        api_key,
        http_client=stripe.RequestsClient(timeout=settings.stripe_timeout_seconds),
        max_network_retries=0,
    )


def _string(name: str, required: bool = False, description: str = "") -> FieldSpec:
    return FieldSpec(name=name, type="string", required=required, description=description)


def _integer(name: str, required: bool = False, description: str = "") -> FieldSpec:
    return FieldSpec(name=name, type="integer", required=required, description=description)


def _boolean(name: str, required: bool = False, description: str = "") -> FieldSpec:
    return FieldSpec(name=name, type="boolean", required=required, description=description)


def _strings(name: str, required: bool = False, description: str = "") -> FieldSpec:
    return FieldSpec(name=name, type="string_array", required=required, description=description)


def _object(name: str, *fields: FieldSpec, required: bool = False) -> FieldSpec:
    return FieldSpec(name=name, type="object", required=required, fields=list(fields))


def _objects(name: str, *fields: FieldSpec, required: bool = False) -> FieldSpec:
    return FieldSpec(name=name, type="object_array", required=required, fields=list(fields))


def _path(name: str, description: str) -> FieldSpec:
    return FieldSpec(name=name, type="string", required=True, path=True, description=description)


_PAGE_FIELDS = (
    _integer("limit", description="Page size used while draining"),
    _string("starting_after"),
    _string("ending_before"),
)

_CREATED_RANGE = _object(
    "created", _integer("gt"), _integer("gte"), _integer("lt"), _integer("lte")
)

_ADDRESS = (
    _string("line1"),
    _string("line2"),
    _string("city"),
    _string("state"),
    _string("postal_code"),
    _string("country"),
)

_RECURRING = _object(
    "recurring",
    _string("interval", required=True),
    _integer("interval_count"),
    _string("usage_type"),
)

_ADJUSTABLE_QUANTITY = _object(
    "adjustable_quantity",
    _boolean("enabled", required=True),
    _integer("maximum"),
    _integer("minimum"),
)

_AUTOMATIC_TAX = _object("automatic_tax", _boolean("enabled", required=True))


# Customers

CREATE_CUSTOMER = OperationDefinition(
    operation_id="stripe_post_customers",
    description="Create a customer",
    accepts_metadata=True,
    aliases=["createCustomer"],
    fields=[
        _string("name"),
        _string("email"),
        _string("description"),
        _string("phone"),
        _object("address", *_ADDRESS),
        _object(
            "shipping",
            _string("name", required=True),
            _string("phone"),
            _object("address", *_ADDRESS, required=True),
        ),
        _string("payment_method"),
        _object("invoice_settings", _string("default_payment_method"), _string("footer")),
        _strings("preferred_locales"),
        _string("tax_exempt"),
        _integer("balance"),
        _string("invoice_prefix"),
        _integer("next_invoice_sequence"),
    ],
)

LIST_CUSTOMERS = OperationDefinition(
    operation_id="stripe_get_customers",
    description="List customers",
    paginated=True,
    fields=[_string("email"), _CREATED_RANGE, *_PAGE_FIELDS],
)

SEARCH_CUSTOMERS = OperationDefinition(
    operation_id="stripe_get_customers_search",
    description="Search customers with Stripe's search query language",
    paginated=True,
    fields=[_string("query", required=True), _integer("limit"), _string("page")],
)

RETRIEVE_CUSTOMER = OperationDefinition(
    operation_id="stripe_get_customers_customer",
    description="Retrieve a customer",
    fields=[_path("customer", "Customer ID")],
)


# Products

CREATE_PRODUCT = OperationDefinition(
    operation_id="stripe_post_products",
    description="Create a product",
    accepts_metadata=True,
    fields=[
        _string("name", required=True),
        _string("id"),
        _string("description"),
        _boolean("active"),
        _strings("images"),
        _objects("marketing_features", _string("name", required=True)),
        _boolean("shippable"),
        _string("statement_descriptor"),
        _string("tax_code"),
        _string("unit_label"),
        _string("url"),
        _object(
            "default_price_data",
            _string("currency", required=True),
            _integer("unit_amount"),
            _string("unit_amount_decimal"),
            _string("tax_behavior"),
            _RECURRING,
        ),
    ],
)

LIST_PRODUCTS = OperationDefinition(
    operation_id="stripe_get_products",
    description="List products",
    paginated=True,
    fields=[
        _boolean("active"),
        _strings("ids"),
        _boolean("shippable"),
        _string("url"),
        _CREATED_RANGE,
        *_PAGE_FIELDS,
    ],
)

RETRIEVE_PRODUCT = OperationDefinition(
    operation_id="stripe_get_products_id",
    description="Retrieve a product",
    fields=[_path("id", "Product ID")],
)

UPDATE_PRODUCT = OperationDefinition(
    operation_id="stripe_post_products_id",
    description="Update a product",
    accepts_metadata=True,
    fields=[
        _path("id", "Product ID"),
        _string("name"),
        _string("description"),
        _boolean("active"),
        _strings("images"),
        _string("default_price"),
        _objects("marketing_features", _string("name", required=True)),
        _boolean("shippable"),
        _string("statement_descriptor"),
        _string("tax_code"),
        _string("unit_label"),
        _string("url"),
    ],
)


# Prices

CREATE_PRICE = OperationDefinition(
    operation_id="stripe_post_prices",
    description="Create a price",
    accepts_metadata=True,
    fields=[
        _string("currency", required=True),
        _integer("unit_amount"),
        _string("unit_amount_decimal"),
        _string("product"),
        _object(
            "product_data",
            _string("name", required=True),
            _boolean("active"),
            _string("statement_descriptor"),
            _string("tax_code"),
            _string("unit_label"),
        ),
        _RECURRING,
        _boolean("active"),
        _string("nickname"),
        _string("lookup_key"),
        _string("tax_behavior"),
        _string("billing_scheme"),
        _boolean("transfer_lookup_key"),
        _object(
            "custom_unit_amount",
            _boolean("enabled", required=True),
            _integer("maximum"),
            _integer("minimum"),
            _integer("preset"),
        ),
    ],
)

LIST_PRICES = OperationDefinition(
    operation_id="stripe_get_prices",
    description="List prices",
    paginated=True,
    fields=[
        _boolean("active"),
        _string("currency"),
        _string("product"),
        _string("type"),
        _strings("lookup_keys"),
        _object("recurring", _string("interval"), _string("usage_type")),
        _CREATED_RANGE,
        *_PAGE_FIELDS,
    ],
)

RETRIEVE_PRICE = OperationDefinition(
    operation_id="stripe_get_prices_price",
    description="Retrieve a price",
    fields=[_path("price", "Price ID")],
)

UPDATE_PRICE = OperationDefinition(
    operation_id="stripe_post_prices_price",
    description="Update a price",
    accepts_metadata=True,
    fields=[
        _path("price", "Price ID"),
        _boolean("active"),
        _string("nickname"),
        _string("lookup_key"),
        _string("tax_behavior"),
        _boolean("transfer_lookup_key"),
    ],
)


# Payment links, invoices, balance, refunds

CREATE_PAYMENT_LINK = OperationDefinition(
    operation_id="stripe_post_payment_links",
    description="Create a payment link",
    accepts_metadata=True,
    fields=[
        _objects(
            "line_items",
            _string("price", required=True),
            _integer("quantity", required=True),
            _ADJUSTABLE_QUANTITY,
            required=True,
        ),
        _object(
            "after_completion",
            _string("type", required=True),
            _object("redirect", _string("url", required=True)),
            _object("hosted_confirmation", _string("custom_message")),
        ),
        _boolean("allow_promotion_codes"),
        _string("billing_address_collection"),
        _string("currency"),
        _string("customer_creation"),
        _strings("payment_method_types"),
        _object("phone_number_collection", _boolean("enabled", required=True)),
        _object(
            "shipping_address_collection", _strings("allowed_countries", required=True)
        ),
        _string("submit_type"),
        _AUTOMATIC_TAX,
    ],
)

CREATE_INVOICE = OperationDefinition(
    operation_id="stripe_post_invoices",
    description="Create a draft invoice",
    accepts_metadata=True,
    fields=[
        _string("customer"),
        _boolean("auto_advance"),
        _string("collection_method"),
        _integer("days_until_due"),
        _integer("due_date"),
        _string("description"),
        _string("currency"),
        _string("default_payment_method"),
        _string("footer"),
        _string("pending_invoice_items_behavior"),
        _string("subscription"),
        _string("statement_descriptor"),
        _objects("custom_fields", _string("name", required=True), _string("value", required=True)),
        _AUTOMATIC_TAX,
    ],
)

CREATE_INVOICE_ITEM = OperationDefinition(
    operation_id="stripe_post_invoiceitems",
    description="Create an invoice item",
    accepts_metadata=True,
    fields=[
        _string("customer", required=True),
        _integer("amount"),
        _string("currency"),
        _string("description"),
        _string("invoice"),
        _integer("quantity"),
        _string("unit_amount_decimal"),
        _object(
            "price_data",
            _string("currency", required=True),
            _string("product", required=True),
            _integer("unit_amount"),
            _string("unit_amount_decimal"),
            _string("tax_behavior"),
        ),
        _boolean("discountable"),
        _object("period", _integer("start", required=True), _integer("end", required=True)),
        _string("tax_behavior"),
        _strings("tax_rates"),
    ],
)

FINALIZE_INVOICE = OperationDefinition(
    operation_id="stripe_post_invoices_invoice_finalize",
    description="Finalize a draft invoice",
    fields=[_path("invoice", "Invoice ID"), _boolean("auto_advance")],
)

RETRIEVE_BALANCE = OperationDefinition(
    operation_id="stripe_get_balance",
    description="Retrieve the account balance",
)

CREATE_REFUND = OperationDefinition(
    operation_id="stripe_post_refunds",
    description="Refund a charge or payment intent",
    accepts_metadata=True,
    fields=[
        _string("charge"),
        _string("payment_intent"),
        _integer("amount"),
        _string("reason"),
        _string("instructions_email"),
        _boolean("refund_application_fee"),
        _boolean("reverse_transfer"),
    ],
)


# Checkout and billing portal

CREATE_CHECKOUT_SESSION = OperationDefinition(
    operation_id="stripe_post_checkout_sessions",
    description="Create a Checkout session",
    accepts_metadata=True,
    fields=[
        _string("mode"),
        _string("success_url"),
        _string("cancel_url"),
        _string("return_url"),
        _string("ui_mode"),
        _string("customer"),
        _string("customer_email"),
        _string("client_reference_id"),
        _objects(
            "line_items",
            _string("price"),
            _integer("quantity"),
            _object(
                "price_data",
                _string("currency", required=True),
                _string("product"),
                _integer("unit_amount"),
                _object(
                    "product_data",
                    _string("name", required=True),
                    _string("description"),
                    _strings("images"),
                ),
                _object(
                    "recurring", _string("interval", required=True), _integer("interval_count")
                ),
            ),
            _ADJUSTABLE_QUANTITY,
        ),
        _strings("payment_method_types"),
        _boolean("allow_promotion_codes"),
        _string("billing_address_collection"),
        _integer("expires_at"),
        _string("locale"),
        _string("submit_type"),
        _object("subscription_data", _integer("trial_period_days"), _string("description")),
        _object(
            "payment_intent_data",
            _string("description"),
            _string("receipt_email"),
            _string("setup_future_usage"),
            _string("capture_method"),
        ),
        _AUTOMATIC_TAX,
    ],
)

CREATE_PORTAL_SESSION = OperationDefinition(
    operation_id="stripe_post_billing_portal_sessions",
    description="Create a customer portal session",
    fields=[
        _string("customer", required=True),
        _string("return_url"),
        _string("configuration"),
        _string("locale"),
        _string("on_behalf_of"),
    ],
)

LIST_PORTAL_CONFIGURATIONS = OperationDefinition(
    operation_id="stripe_get_billing_portal_configurations",
    description="List customer portal configurations",
    paginated=True,
    fields=[_boolean("active"), _boolean("is_default"), *_PAGE_FIELDS],
)

CREATE_PORTAL_CONFIGURATION = OperationDefinition(
    operation_id="stripe_post_billing_portal_configurations",
    description="Create a customer portal configuration",
    accepts_metadata=True,
    fields=[
        _object(
            "features",
            _object(
                "customer_update",
                _boolean("enabled", required=True),
                _strings("allowed_updates"),
            ),
            _object("invoice_history", _boolean("enabled", required=True)),
            _object("payment_method_update", _boolean("enabled", required=True)),
            _object(
                "subscription_cancel",
                _boolean("enabled", required=True),
                _string("mode"),
                _string("proration_behavior"),
                _object(
                    "cancellation_reason",
                    _boolean("enabled", required=True),
                    _strings("options"),
                ),
            ),
            _object(
                "subscription_update",
                _boolean("enabled", required=True),
                _strings("default_allowed_updates"),
                _string("proration_behavior"),
                _objects(
                    "products",
                    _string("product", required=True),
                    _strings("prices", required=True),
                ),
            ),
            required=True,
        ),
        _object(
            "business_profile",
            _string("headline"),
            _string("privacy_policy_url"),
            _string("terms_of_service_url"),
        ),
        _string("default_return_url"),
        _string("name"),
        _object("login_page", _boolean("enabled", required=True)),
    ],
)


def _list(service: Any, request: OperationRequest) -> Any:
    return service.list(params=request.params)


STRIPE_OPERATIONS: list[tuple[OperationDefinition, Any]] = [
    (CREATE_CUSTOMER, lambda c, r: c.customers.create(params=r.params)),
    (LIST_CUSTOMERS, lambda c, r: _list(c.customers, r)),
    (SEARCH_CUSTOMERS, lambda c, r: c.customers.search(params=r.params)),
    (RETRIEVE_CUSTOMER, lambda c, r: c.customers.retrieve(r.path("customer"), params=r.params)),
    (CREATE_PRODUCT, lambda c, r: c.products.create(params=r.params)),
    (LIST_PRODUCTS, lambda c, r: _list(c.products, r)),
    (RETRIEVE_PRODUCT, lambda c, r: c.products.retrieve(r.path("id"), params=r.params)),
    (UPDATE_PRODUCT, lambda c, r: c.products.update(r.path("id"), params=r.params)),
    (CREATE_PRICE, lambda c, r: c.prices.create(params=r.params)),
    (LIST_PRICES, lambda c, r: _list(c.prices, r)),
    (RETRIEVE_PRICE, lambda c, r: c.prices.retrieve(r.path("price"), params=r.params)),
    (UPDATE_PRICE, lambda c, r: c.prices.update(r.path("price"), params=r.params)),
    (CREATE_PAYMENT_LINK, lambda c, r: c.payment_links.create(params=r.params)),
    (CREATE_INVOICE, lambda c, r: c.invoices.create(params=r.params)),
    (CREATE_INVOICE_ITEM, lambda c, r: c.invoice_items.create(params=r.params)),
    (
        FINALIZE_INVOICE,
        lambda c, r: c.invoices.finalize_invoice(r.path("invoice"), params=r.params),
    ),
    (RETRIEVE_BALANCE, lambda c, r: c.balance.retrieve(params=r.params)),
    (CREATE_REFUND, lambda c, r: c.refunds.create(params=r.params)),
    (CREATE_CHECKOUT_SESSION, lambda c, r: c.checkout.sessions.create(params=r.params)),
    (
        CREATE_PORTAL_SESSION,
        lambda c, r: c.billing_portal.sessions.create(params=r.params),
    ),
    (LIST_PORTAL_CONFIGURATIONS, lambda c, r: _list(c.billing_portal.configurations, r)),
    (
        CREATE_PORTAL_CONFIGURATION,
        lambda c, r: c.billing_portal.configurations.create(params=r.params),
    ),
]


def register_stripe_operations(registry: OperationRegistry) -> None:
    """Register every Stripe operation on a registry."""
    for definition, invoker in STRIPE_OPERATIONS:
        registry.register(definition, invoker)


def build_stripe_registry() -> OperationRegistry:
    """Build the frozen dispatch table of Stripe operations."""
    registry = OperationRegistry()
    register_stripe_operations(registry)
    return registry.freeze()
