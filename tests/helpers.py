import json

from storefront.main import app
from storefront.schemas import CartItem


def make_item(item_id="a", price=10.0, stock=5, in_stock=True, **extra) -> CartItem:
    return CartItem(
        id=item_id,
        name=extra.pop("name", f"Product {item_id}"),
        description=extra.pop("description", ""),
        price=price,
        quantity=extra.pop("quantity", 1),
        image_url=extra.pop("image_url", None),
        in_stock=in_stock,
        stock=stock,
    )


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else json.dumps(body)

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._body is None:
            raise ValueError("no json body")
        return self._body


class FakeSession:
    """Stands in for requests.Session; records every call."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def override(dependency, value):
    app.dependency_overrides[dependency] = lambda: value
