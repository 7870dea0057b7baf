"""Hosted checkout sessions on the payment processor (Stripe)."""
from __future__ import annotations
from typing import Any, Iterable, Optional

import stripe

from .config import ALLOWED_COUNTRIES, Settings, get_settings
from .logger import get_logger
from .schemas import CartItem, CheckoutSession, CustomerInfo, to_minor_units

logger = get_logger(__name__)

PAID = "paid"


def build_line_items(items: Iterable[CartItem], currency: str = "usd") -> list[dict[str, Any]]:
    return [
        {
            "price_data": {
                "currency": currency,
                "product_data": {
                    "name": item.name,
                    "images": [item.image_url] if item.image_url else [],
                },
                "unit_amount": to_minor_units(item.price),
            },
            "quantity": item.quantity,
        }
        for item in items
    ]


def build_session_params(
    items: Iterable[CartItem],
    customer: Optional[CustomerInfo],
    settings: Settings,
) -> dict[str, Any]:
    customer = customer or CustomerInfo()
    params: dict[str, Any] = {
        "payment_method_types": ["card"],
        "line_items": build_line_items(items, settings.PAYMENT_CURRENCY),
        "mode": "payment",
        "success_url": settings.success_url,
        "cancel_url": settings.cancel_url,
        "metadata": {
            "customerName": customer.name,
            "customerPhone": customer.phone,
            "customerAddress": customer.address,
        },
        "shipping_address_collection": {"allowed_countries": list(ALLOWED_COUNTRIES)},
        "billing_address_collection": "required",
    }
    if customer.email:
        params["customer_email"] = customer.email
    return params


class PaymentGateway:
    def __init__(self, settings: Settings):
        self.settings = settings

    def create_checkout_session(
        self, items: list[CartItem], customer: Optional[CustomerInfo]
    ) -> CheckoutSession:
        params = build_session_params(items, customer, self.settings)
        session = stripe.checkout.Session.create(api_key=self.settings.STRIPE_SECRET_KEY, **params)
        logger.info("Created checkout session %s for %d line item(s)", session["id"], len(items))
        return CheckoutSession(session_id=session["id"], url=session["url"])

    def retrieve_session(self, session_id: str) -> dict[str, Any]:
        session = stripe.checkout.Session.retrieve(
            session_id,
            expand=["line_items", "customer_details"],
            api_key=self.settings.STRIPE_SECRET_KEY,
        )
        return {
            "id": session["id"],
            "amount_total": session.get("amount_total"),
            "currency": session.get("currency"),
            "customer_details": _plain(session.get("customer_details")),
            "payment_status": session.get("payment_status"),
        }


def _plain(value: Any) -> Any:
    # StripeObject is a dict subclass; hand back builtins only
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def is_paid(session: dict[str, Any]) -> bool:
    return session.get("payment_status") == PAID


def get_payment_gateway() -> PaymentGateway:
    return PaymentGateway(get_settings())
