"""Pass-through to the ShipEngine REST API: rates, labels and tracking.

No business logic lives here beyond mapping our request fields onto the
carrier's field names; replies are handed back as the carrier sent them.
"""
from __future__ import annotations
from typing import Any, Optional

import requests

from .config import LABEL_FORMAT, LABEL_LAYOUT, SHIP_FROM, Settings, get_settings
from .logger import get_logger
from .schemas import Package, ShipToAddress

logger = get_logger(__name__)


class ShippingConfigError(Exception):
    """Raised when no carrier API key is configured."""


class ShippingError(Exception):
    def __init__(self, status_code: int, body: str):
        super().__init__(f"ShipEngine returned {status_code}")
        self.status_code = status_code
        self.body = body


def ship_to_payload(address: ShipToAddress) -> dict[str, Any]:
    return {
        "name": address.name,
        "phone": address.phone,
        "address_line1": address.address_line1,
        "city_locality": address.city_locality,
        "state_province": address.state_province,
        "postal_code": address.postal_code,
        "country_code": address.country_code,
        "address_residential_indicator": address.address_residential_indicator,
    }


def package_payload(pkg: Package) -> dict[str, Any]:
    return {
        "weight": {"value": pkg.weight.value, "unit": pkg.weight.unit},
        "dimensions": {
            "height": pkg.dimensions.height,
            "width": pkg.dimensions.width,
            "length": pkg.dimensions.length,
            "unit": pkg.dimensions.unit,
        },
    }


class ShippingRelay:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.shipengine.com/v1",
        carrier_ids: Optional[list[str]] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.carrier_ids = list(carrier_ids or [])
        self.timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ShippingRelay":
        return cls(
            api_key=settings.SHIPENGINE_API_KEY,
            base_url=settings.SHIPENGINE_BASE_URL,
            carrier_ids=settings.SHIPENGINE_CARRIER_IDS,
            timeout=settings.HTTP_TIMEOUT,
        )

    def _request(self, method: str, path: str, payload: Optional[dict] = None) -> Any:
        if not self.api_key:
            raise ShippingConfigError("ShipEngine API key not configured")

        kwargs: dict[str, Any] = {
            "headers": {"Content-Type": "application/json", "API-Key": self.api_key},
            "timeout": self.timeout,
        }
        if payload is not None:
            kwargs["json"] = payload

        response = self._session.request(method, f"{self.base_url}{path}", **kwargs)
        if not response.ok:
            logger.error("ShipEngine %s %s failed (%s): %s", method, path, response.status_code, response.text)
            raise ShippingError(response.status_code, response.text)
        return response.json()

    def get_rates(self, ship_to: ShipToAddress, packages: list[Package]) -> Any:
        shipment = {
            "rate_options": {"carrier_ids": self.carrier_ids},
            "shipment": {
                "ship_to": ship_to_payload(ship_to),
                "ship_from": dict(SHIP_FROM),
                "packages": [package_payload(p) for p in packages],
            },
        }
        return self._request("POST", "/rates", shipment)

    def create_label(self, rate_id: str) -> Any:
        return self._request(
            "POST",
            "/labels",
            {"rate_id": rate_id, "label_layout": LABEL_LAYOUT, "label_format": LABEL_FORMAT},
        )

    def track(self, label_id: str) -> Any:
        return self._request("GET", f"/labels/{label_id}/track")


def get_shipping_relay() -> ShippingRelay:
    return ShippingRelay.from_settings(get_settings())
