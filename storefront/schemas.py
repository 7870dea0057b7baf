from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .config import DEFAULT_COUNTRY

# Wire format is camelCase; Python side stays snake_case


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CartItem(CamelModel):
    id: str
    name: str
    description: str = ""
    price: float = Field(ge=0)
    quantity: int = Field(default=1, ge=1)
    image_url: Optional[str] = None
    in_stock: bool = False
    stock: int = 0


# Same shape; quantity is kept at 1 and never counted
WishlistItem = CartItem


REQUIRED_CUSTOMER_FIELDS = ("email", "name", "phone", "address", "city", "state", "zip_code")


class CustomerInfo(CamelModel):
    email: str = ""
    name: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = DEFAULT_COUNTRY

    def missing_fields(self) -> list[str]:
        """Wire names of required fields that are empty or whitespace."""
        return [
            to_camel(field)
            for field in REQUIRED_CUSTOMER_FIELDS
            if not (getattr(self, field) or "").strip()
        ]


class ReviewIn(BaseModel):
    # Kept lenient so range problems come back as 400 from the relay
    name: Optional[str] = None
    rating: Optional[int] = None
    comment: Optional[str] = None


class Review(BaseModel):
    name: str
    rating: int = Field(ge=1, le=5)
    comment: str
    date: str = ""


class Product(CamelModel):
    id: str
    slug: Optional[str] = None
    name: str
    description: Optional[str] = None
    price: float = 0
    image_url: Optional[str] = None
    in_stock: bool = False
    stock: int = 0
    rating: float = 0
    reviews: list[Review] = Field(default_factory=list)
    average_rating: float = 0

    def to_cart_item(self) -> CartItem:
        return CartItem(
            id=self.id,
            name=self.name,
            description=self.description or "",
            price=self.price,
            quantity=1,
            image_url=self.image_url,
            in_stock=self.in_stock,
            stock=self.stock,
        )


# Checkout / payment wire models

class CheckoutRequest(CamelModel):
    cart_items: list[CartItem] = Field(default_factory=list)
    customer_info: Optional[CustomerInfo] = None


class CheckoutSession(CamelModel):
    session_id: str
    url: str


class VerifyPaymentRequest(CamelModel):
    session_id: Optional[str] = None


class ReviewSubmission(CamelModel):
    product_id: str = ""
    review: Optional[ReviewIn] = None


# Shipping wire models

class ShipToAddress(CamelModel):
    name: str
    phone: Optional[str] = None
    address_line1: str
    city_locality: str
    state_province: str
    postal_code: str
    country_code: str
    address_residential_indicator: str = "unknown"


class Weight(BaseModel):
    value: float
    unit: str


class Dimensions(BaseModel):
    height: float
    width: float
    length: float
    unit: str


class Package(BaseModel):
    weight: Weight
    dimensions: Dimensions


class RatesRequest(CamelModel):
    # Older clients still send the misspelled key
    ship_to_address: Optional[ShipToAddress] = Field(
        default=None,
        validation_alias=AliasChoices("shipToAddress", "shipeToAddress", "ship_to_address"),
    )
    packages: Optional[list[Package]] = None


class LabelRequest(CamelModel):
    rate_id: Optional[str] = None


def subtotal(items: Iterable[CartItem]) -> float:
    return round(sum(item.price * item.quantity for item in items), 2)


def to_minor_units(amount: Any) -> int:
    """Convert a decimal currency amount to integer minor units (cents), rounding half up."""
    cents = Decimal(str(amount)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
