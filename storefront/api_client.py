from __future__ import annotations
from typing import Any, Iterable, Optional

import requests

from .config import settings
from .schemas import CartItem, CheckoutSession, CustomerInfo, Package, ReviewIn, ShipToAddress


class StorefrontAPIError(Exception):
    """Non-2xx reply from the storefront API."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class StorefrontClient:
    """Calls the storefront API on behalf of the shopper's session."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or settings.STOREFRONT_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT
        self._session = session or requests.Session()

    def _call(self, method: str, path: str, payload: Optional[dict] = None) -> Any:
        response = self._session.request(
            method,
            f"{self.base_url}{path}",
            json=payload,
            timeout=self.timeout,
        )
        if not response.ok:
            raise StorefrontAPIError(response.status_code, self._detail(response))
        return response.json()

    @staticmethod
    def _detail(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:500]
        if isinstance(body, dict):
            return str(body.get("detail") or body.get("error") or body.get("message") or body)
        return str(body)

    def create_checkout_session(
        self, cart_items: Iterable[CartItem], customer_info: CustomerInfo
    ) -> CheckoutSession:
        data = self._call(
            "POST",
            "/api/create-checkout-session",
            {
                "cartItems": [item.model_dump(by_alias=True) for item in cart_items],
                "customerInfo": customer_info.model_dump(by_alias=True),
            },
        )
        return CheckoutSession.model_validate(data)

    def verify_payment(self, session_id: str) -> dict[str, Any]:
        return self._call("POST", "/api/verify-payment", {"sessionId": session_id})

    def submit_review(self, product_id: str, review: ReviewIn) -> dict[str, Any]:
        return self._call(
            "POST",
            "/api/review",
            {"productId": product_id, "review": review.model_dump()},
        )

    def get_rates(self, ship_to: ShipToAddress, packages: list[Package]) -> dict[str, Any]:
        return self._call(
            "POST",
            "/api/get-rates",
            {
                "shipToAddress": ship_to.model_dump(by_alias=True),
                "packages": [p.model_dump() for p in packages],
            },
        )

    def create_label(self, rate_id: str) -> dict[str, Any]:
        return self._call("POST", "/api/label", {"rateId": rate_id})

    def track(self, label_id: str) -> dict[str, Any]:
        return self._call("GET", f"/api/tracking/{label_id}")
