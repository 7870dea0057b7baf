import pytest
import requests

from helpers import make_item
from storefront.api_client import StorefrontAPIError
from storefront.checkout import (
    CHECKOUT_FAILED_MESSAGE,
    CheckoutSessionInitiator,
    CheckoutStatus,
    PaymentVerifier,
    VerificationStatus,
    session_id_from_url,
)
from storefront.schemas import CheckoutSession, CustomerInfo


class FakeClient:
    def __init__(self, checkout=None, verify=None):
        self.checkout = checkout
        self.verify = verify
        self.checkout_calls = []
        self.verify_calls = []

    def create_checkout_session(self, cart_items, customer_info):
        self.checkout_calls.append((cart_items, customer_info))
        if isinstance(self.checkout, Exception):
            raise self.checkout
        return self.checkout

    def verify_payment(self, session_id):
        self.verify_calls.append(session_id)
        if isinstance(self.verify, Exception):
            raise self.verify
        return self.verify


@pytest.fixture
def redirects():
    return []


def test_empty_cart_never_calls_payment_api(cart, customer, redirects):
    client = FakeClient(checkout=CheckoutSession(session_id="cs_1", url="https://pay/1"))
    result = CheckoutSessionInitiator(cart, client, redirects.append).submit(customer)

    assert result.status is CheckoutStatus.EMPTY_CART
    assert client.checkout_calls == []
    assert redirects == []


def test_missing_fields_are_listed(cart, redirects):
    cart.add_to_cart(make_item("a"))
    client = FakeClient()
    customer = CustomerInfo(email="a@b.c", name="  ", city="X")
    result = CheckoutSessionInitiator(cart, client, redirects.append).submit(customer)

    assert result.status is CheckoutStatus.INVALID
    assert result.missing_fields == ["name", "phone", "address", "state", "zipCode"]
    assert "zipCode" in result.message
    assert client.checkout_calls == []


def test_successful_checkout_redirects_once(cart, customer, redirects):
    cart.add_to_cart(make_item("a", price=10, stock=5))
    cart.add_to_cart(make_item("a", price=10, stock=5))
    client = FakeClient(checkout=CheckoutSession(session_id="cs_1", url="https://pay/cs_1"))
    initiator = CheckoutSessionInitiator(cart, client, redirects.append)

    result = initiator.submit(customer)

    assert result.ok
    assert result.url == "https://pay/cs_1"
    assert redirects == ["https://pay/cs_1"]
    sent_items, sent_customer = client.checkout_calls[0]
    assert [(i.id, i.quantity) for i in sent_items] == [("a", 2)]
    assert sent_customer.country == "US"
    assert not initiator.loading
    # Checkout alone never empties the cart
    assert cart.cart_count == 2


def test_resubmission_opens_a_new_session_each_time(cart, customer, redirects):
    cart.add_to_cart(make_item("a"))
    client = FakeClient(checkout=CheckoutSession(session_id="cs_1", url="https://pay/cs_1"))
    initiator = CheckoutSessionInitiator(cart, client, redirects.append)
    initiator.submit(customer)
    initiator.submit(customer)
    assert len(client.checkout_calls) == 2


@pytest.mark.parametrize("failure", [
    StorefrontAPIError(500, "Internal Server Error"),
    requests.ConnectionError("refused"),
    CheckoutSession(session_id="cs_1", url=""),
])
def test_failed_checkout_leaves_cart_alone(cart, customer, redirects, failure):
    cart.add_to_cart(make_item("a"))
    initiator = CheckoutSessionInitiator(cart, FakeClient(checkout=failure), redirects.append)

    result = initiator.submit(customer)

    assert result.status is CheckoutStatus.FAILED
    assert result.message == CHECKOUT_FAILED_MESSAGE
    assert redirects == []
    assert cart.cart_count == 1
    assert not initiator.loading


def test_submit_while_loading_is_ignored(cart, customer, redirects):
    cart.add_to_cart(make_item("a"))
    client = FakeClient(checkout=CheckoutSession(session_id="cs_1", url="https://pay/cs_1"))
    initiator = CheckoutSessionInitiator(cart, client, redirects.append)
    initiator.loading = True

    assert initiator.submit(customer).status is CheckoutStatus.BUSY
    assert client.checkout_calls == []


def test_session_id_from_url():
    assert session_id_from_url("http://localhost:3000/success?session_id=cs_test_1") == "cs_test_1"
    assert session_id_from_url("http://localhost:3000/success?x=1") is None
    assert session_id_from_url("http://localhost:3000/success") is None


def test_paid_session_clears_cart_only(cart):
    cart.add_to_cart(make_item("a"))
    cart.add_to_wishlist(make_item("w"))
    client = FakeClient(verify={"success": True, "session": {"id": "cs_1", "amount_total": 1000}})

    result = PaymentVerifier(cart, client).verify_url("http://shop/success?session_id=cs_1")

    assert result.verified
    assert result.session["amount_total"] == 1000
    assert client.verify_calls == ["cs_1"]
    assert cart.cart_items == []
    assert cart.is_in_wishlist("w")


@pytest.mark.parametrize("reply, status", [
    ({"success": False, "message": "Payment not completed"}, VerificationStatus.UNVERIFIED),
    ({}, VerificationStatus.UNVERIFIED),
    (StorefrontAPIError(500, "Internal Server Error"), VerificationStatus.FAILED),
    (requests.Timeout("slow"), VerificationStatus.FAILED),
])
def test_unpaid_or_failed_verification_keeps_cart(cart, reply, status):
    cart.add_to_cart(make_item("a"))
    client = FakeClient(verify=reply)

    result = PaymentVerifier(cart, client).verify("cs_1")

    assert result.status is status
    assert not result.verified
    assert cart.cart_count == 1
    assert client.verify_calls == ["cs_1"]


def test_missing_session_id_makes_no_call(cart):
    cart.add_to_cart(make_item("a"))
    client = FakeClient(verify={"success": True})

    result = PaymentVerifier(cart, client).verify_url("http://shop/success")

    assert result.status is VerificationStatus.NO_SESSION
    assert client.verify_calls == []
    assert cart.cart_count == 1
