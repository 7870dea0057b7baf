from __future__ import annotations
from typing import Any, Optional

import requests
import stripe
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from .database import ContentStore, get_content_store
from .logger import get_logger
from .payments import PaymentGateway, get_payment_gateway, is_paid
from .reviews import average_rating, build_review, review_problems
from .schemas import (
    CheckoutRequest,
    CheckoutSession,
    LabelRequest,
    Product,
    RatesRequest,
    Review,
    ReviewSubmission,
    VerifyPaymentRequest,
)
from .shipping import ShippingConfigError, ShippingError, ShippingRelay, get_shipping_relay

logger = get_logger(__name__)

app = FastAPI(title="Storefront API")

# Storefront pages are served from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def product_out(doc: dict[str, Any]) -> Product:
    reviews = []
    for r in doc.get("reviews") or []:
        try:
            reviews.append(Review.model_validate(r))
        except ValidationError:
            logger.warning("Skipping malformed review on product %s", doc.get("id"))
    return Product.model_validate({**doc, "reviews": reviews, "average_rating": average_rating(reviews)})


@app.get("/")
async def root():
    return {"message": "Storefront Backend Running"}


# Products

@app.get("/api/products", response_model=list[Product])
async def list_products(
    q: Optional[str] = Query(None),
    limit: int = Query(8, ge=1, le=200),
    store: ContentStore = Depends(get_content_store),
):
    docs = await store.list_products(limit=limit, q=q)
    return [product_out(d) for d in docs]


@app.get("/api/products/{slug}", response_model=Product)
async def get_product(slug: str, store: ContentStore = Depends(get_content_store)):
    doc = await store.get_product_by_slug(slug)
    if not doc:
        raise HTTPException(status_code=404, detail="Product not found")
    return product_out(doc)


# Checkout

@app.post("/api/create-checkout-session", response_model=CheckoutSession)
def create_checkout_session(
    payload: CheckoutRequest,
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    if not payload.cart_items:
        raise HTTPException(status_code=400, detail="No items in cart")
    try:
        return gateway.create_checkout_session(payload.cart_items, payload.customer_info)
    except stripe.StripeError as e:
        logger.error("Error creating checkout session: %s", e)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@app.post("/api/verify-payment")
def verify_payment(
    payload: VerifyPaymentRequest,
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    if not payload.session_id:
        raise HTTPException(status_code=400, detail="Session ID is required")
    try:
        session = gateway.retrieve_session(payload.session_id)
    except stripe.StripeError as e:
        logger.error("Error verifying payment for %s: %s", payload.session_id, e)
        raise HTTPException(status_code=500, detail="Internal Server Error")

    if is_paid(session):
        return {"success": True, "session": session}
    logger.info("Session %s not paid (status=%s)", payload.session_id, session.get("payment_status"))
    return {"success": False, "message": "Payment not completed"}


# Reviews

@app.post("/api/review")
async def submit_review(
    payload: ReviewSubmission,
    store: ContentStore = Depends(get_content_store),
):
    problems = review_problems(payload.product_id, payload.review)
    if problems:
        raise HTTPException(status_code=400, detail="; ".join(problems))

    review = build_review(payload.review)
    try:
        if not await store.get_product(payload.product_id):
            raise HTTPException(status_code=404, detail="Product not found")
        if not await store.append_review(payload.product_id, review.model_dump()):
            raise HTTPException(status_code=404, detail="Product not found")
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error submitting review for %s", payload.product_id)
        raise HTTPException(status_code=500, detail="Failed to submit review")

    logger.info("Review added to product %s", payload.product_id)
    return {"message": "Review submitted successfully!", "review": review.model_dump()}


# Shipping

def _relay_call(action: str, call):
    try:
        return call()
    except ShippingConfigError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except ShippingError as e:
        raise HTTPException(status_code=e.status_code, detail=f"Failed to {action}")
    except requests.RequestException as e:
        logger.error("Error trying to %s: %s", action, e)
        raise HTTPException(status_code=500, detail="Internal server error")


@app.post("/api/get-rates")
def get_rates(payload: RatesRequest, relay: ShippingRelay = Depends(get_shipping_relay)):
    if not payload.ship_to_address or not payload.packages:
        raise HTTPException(status_code=400, detail="Missing required fields")
    data = _relay_call(
        "fetch shipping rates",
        lambda: relay.get_rates(payload.ship_to_address, payload.packages),
    )
    return {"shipmentDetails": data}


@app.post("/api/label")
def create_label(payload: LabelRequest, relay: ShippingRelay = Depends(get_shipping_relay)):
    if not payload.rate_id:
        raise HTTPException(status_code=400, detail="Rate ID is required")
    return _relay_call("create shipping label", lambda: relay.create_label(payload.rate_id))


@app.get("/api/tracking/{label_id}")
def track_label(label_id: str, relay: ShippingRelay = Depends(get_shipping_relay)):
    return _relay_call("fetch tracking information", lambda: relay.track(label_id))
