import pytest

from helpers import FakeResponse, FakeSession, make_item
from storefront.api_client import StorefrontAPIError, StorefrontClient
from storefront.schemas import CustomerInfo, ReviewIn


def client_with(*responses):
    session = FakeSession(*responses)
    return StorefrontClient(base_url="http://api.test/", timeout=3, session=session), session


def test_create_checkout_session_posts_camel_case():
    client, session = client_with(FakeResponse(200, {"sessionId": "cs_1", "url": "https://pay/cs_1"}))

    result = client.create_checkout_session([make_item("a")], CustomerInfo(zip_code="12345"))

    assert result.session_id == "cs_1"
    call = session.calls[0]
    assert call["url"] == "http://api.test/api/create-checkout-session"
    assert call["timeout"] == 3
    assert call["json"]["cartItems"][0]["inStock"] is True
    assert call["json"]["customerInfo"]["zipCode"] == "12345"
    assert call["json"]["customerInfo"]["country"] == "US"


def test_error_reply_raises_with_detail():
    client, _ = client_with(FakeResponse(400, {"detail": "No items in cart"}))
    with pytest.raises(StorefrontAPIError) as exc:
        client.verify_payment("cs_1")
    assert exc.value.status_code == 400
    assert exc.value.detail == "No items in cart"


def test_error_reply_without_json():
    client, _ = client_with(FakeResponse(502, text="Bad Gateway"))
    with pytest.raises(StorefrontAPIError) as exc:
        client.track("L1")
    assert exc.value.detail == "Bad Gateway"


def test_review_and_label_payloads():
    client, session = client_with(FakeResponse(200, {"message": "ok"}), FakeResponse(200, {"label_id": "L1"}))

    client.submit_review("p1", ReviewIn(name="Grace", rating=5, comment="Great"))
    client.create_label("rate-1")

    review_call, label_call = session.calls
    assert review_call["json"] == {
        "productId": "p1",
        "review": {"name": "Grace", "rating": 5, "comment": "Great"},
    }
    assert label_call["json"] == {"rateId": "rate-1"}
