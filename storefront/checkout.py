"""Shopper-side checkout: start a hosted payment session, then confirm it.

Both flows report back with a result object instead of raising; failures are
logged here and the shopper sees a generic message.
"""
from __future__ import annotations
import webbrowser
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional
from urllib.parse import parse_qs, urlparse

import requests

from .api_client import StorefrontAPIError, StorefrontClient
from .cart_store import CartStore
from .logger import get_logger
from .schemas import CustomerInfo

logger = get_logger(__name__)

CHECKOUT_FAILED_MESSAGE = "Failed to process checkout. Please try again."
VERIFY_FAILED_MESSAGE = (
    "We couldn't verify your payment. Please contact support if you believe this is an error."
)


class CheckoutStatus(str, Enum):
    REDIRECTED = "redirected"
    EMPTY_CART = "empty_cart"
    INVALID = "invalid"
    FAILED = "failed"
    BUSY = "busy"


@dataclass
class CheckoutResult:
    status: CheckoutStatus
    message: str = ""
    missing_fields: list[str] = field(default_factory=list)
    url: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is CheckoutStatus.REDIRECTED


class CheckoutSessionInitiator:
    def __init__(
        self,
        cart: CartStore,
        client: StorefrontClient,
        redirect: Callable[[str], Any] = webbrowser.open,
    ) -> None:
        self.cart = cart
        self.client = client
        self.redirect = redirect
        self.loading = False

    def submit(self, customer: CustomerInfo) -> CheckoutResult:
        if self.loading:
            return CheckoutResult(CheckoutStatus.BUSY)

        items = self.cart.cart_items
        if not items:
            return CheckoutResult(CheckoutStatus.EMPTY_CART, "Your cart is empty!")

        missing = customer.missing_fields()
        if missing:
            logger.info("Checkout blocked, missing fields: %s", ", ".join(missing))
            return CheckoutResult(
                CheckoutStatus.INVALID,
                f"Please fill in all required fields: {', '.join(missing)}",
                missing_fields=missing,
            )

        self.loading = True
        try:
            session = self.client.create_checkout_session(items, customer)
        except (StorefrontAPIError, requests.RequestException, ValueError) as e:
            logger.error("Checkout error: %s", e)
            return CheckoutResult(CheckoutStatus.FAILED, CHECKOUT_FAILED_MESSAGE)
        finally:
            self.loading = False

        if not session.url:
            logger.error("Checkout session %s came back without a URL", session.session_id)
            return CheckoutResult(CheckoutStatus.FAILED, CHECKOUT_FAILED_MESSAGE)

        self.redirect(session.url)
        return CheckoutResult(CheckoutStatus.REDIRECTED, url=session.url)


class VerificationStatus(str, Enum):
    VERIFIED = "verified"
    UNVERIFIED = "unverified"
    NO_SESSION = "no_session"
    FAILED = "failed"


@dataclass
class VerificationResult:
    status: VerificationStatus
    message: str = ""
    session: Optional[dict[str, Any]] = None

    @property
    def verified(self) -> bool:
        return self.status is VerificationStatus.VERIFIED


def session_id_from_url(url: str) -> Optional[str]:
    values = parse_qs(urlparse(url).query).get("session_id")
    return values[0] if values else None


class PaymentVerifier:
    def __init__(self, cart: CartStore, client: StorefrontClient) -> None:
        self.cart = cart
        self.client = client

    def verify_url(self, url: str) -> VerificationResult:
        return self.verify(session_id_from_url(url))

    def verify(self, session_id: Optional[str]) -> VerificationResult:
        if not session_id:
            return VerificationResult(VerificationStatus.NO_SESSION, VERIFY_FAILED_MESSAGE)

        try:
            data = self.client.verify_payment(session_id)
        except (StorefrontAPIError, requests.RequestException, ValueError) as e:
            logger.error("Error verifying payment %s: %s", session_id, e)
            return VerificationResult(VerificationStatus.FAILED, VERIFY_FAILED_MESSAGE)

        if not isinstance(data, dict) or data.get("success") is not True:
            return VerificationResult(VerificationStatus.UNVERIFIED, VERIFY_FAILED_MESSAGE)

        # Wishlist survives a purchase
        self.cart.clear_cart()
        logger.info("Payment %s verified, cart cleared", session_id)
        return VerificationResult(
            VerificationStatus.VERIFIED,
            "Payment Successful!",
            session=data.get("session"),
        )
