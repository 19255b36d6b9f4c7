import json
import re
from typing import Any, Callable, Optional

import httpx
import pytest

API_ROOT = "/api/v1"
BASE_URL = f"http://shop.test{API_ROOT}"


@pytest.fixture
def anyio_backend():
    return "asyncio"


def envelope(data: Any, **extra: Any) -> dict:
    return {"data": data, **extra}


def error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


def product_json(product_id: int = 1, price: float = 500.0, stock: int = 5, **overrides: Any) -> dict:
    body = {
        "id": product_id,
        "name": f"Фигурка {product_id}",
        "slug": f"figure-{product_id}",
        "price": price,
        "oldPrice": None,
        "stockQuantity": stock,
        "images": [
            {
                "id": product_id * 10,
                "url": f"/img/{product_id}.jpg",
                "urlThumbnail": f"/img/{product_id}-thumb.jpg",
                "isMain": True,
            }
        ],
    }
    body.update(overrides)
    return body


class FakeBackend:
    """
    Shop API stand-in for httpx.MockTransport.

    Routes are (method, path regex) pairs relative to /api/v1; handlers get
    the request and the regex match and return an httpx.Response (or a
    coroutine producing one). Every request is recorded.
    """

    def __init__(self):
        self.routes: list[tuple[str, re.Pattern, Callable]] = []
        self.requests: list[httpx.Request] = []

    def on(
        self,
        method: str,
        path: str,
        handler: Optional[Callable] = None,
        status: int = 200,
        json: Any = None,
    ) -> None:
        if handler is None:
            def handler(request, match, _status=status, _json=json):
                if _json is None:
                    return httpx.Response(_status)
                return httpx.Response(_status, json=_json)
        # Newer registrations win
        self.routes.insert(0, (method, re.compile(path), handler))

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith(API_ROOT):
            path = path[len(API_ROOT):]
        for method, pattern, handler in self.routes:
            match = pattern.fullmatch(path)
            if method == request.method and match:
                response = handler(request, match)
                if not isinstance(response, httpx.Response):
                    response = await response
                return response
        return httpx.Response(404, json=error_body("NOT_FOUND", "Not found"))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        pattern = re.compile(path)
        return [
            r for r in self.requests
            if r.method == method and pattern.fullmatch(r.url.path[len(API_ROOT):])
        ]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None


class FakeServerCart:
    """Server-side cart keyed by line id"""

    def __init__(self, backend: FakeBackend, products: dict[int, dict]):
        self.products = products
        self.lines: list[dict] = []
        self._next_id = 100
        backend.on("GET", "/cart", lambda r, m: self._respond())
        backend.on("POST", "/cart/items", self._add)
        backend.on("PUT", r"/cart/items/(\d+)", self._update)
        backend.on("DELETE", r"/cart/items/(\d+)", self._remove)
        backend.on("DELETE", "/cart", self._clear)

    def seed(self, product_id: int, quantity: int) -> None:
        self.lines.append({"id": self._next_id, "productId": product_id, "quantity": quantity})
        self._next_id += 1

    def _respond(self) -> httpx.Response:
        items = [
            {**line, "product": self.products[line["productId"]]}
            for line in self.lines
        ]
        return httpx.Response(200, json=envelope({
            "items": items,
            "totalItems": sum(line["quantity"] for line in self.lines),
            "totalPrice": sum(i["product"]["price"] * i["quantity"] for i in items),
        }))

    def _add(self, request, match):
        body = FakeBackend.body(request)
        if body["productId"] not in self.products:
            return httpx.Response(404, json=error_body("NOT_FOUND", "Товар не найден"))
        for line in self.lines:
            if line["productId"] == body["productId"]:
                line["quantity"] += body["quantity"]
                return self._respond()
        self.seed(body["productId"], body["quantity"])
        return self._respond()

    def _update(self, request, match):
        line_id = int(match.group(1))
        for line in self.lines:
            if line["id"] == line_id:
                line["quantity"] = FakeBackend.body(request)["quantity"]
        return self._respond()

    def _remove(self, request, match):
        self.lines = [line for line in self.lines if line["id"] != int(match.group(1))]
        return self._respond()

    def _clear(self, request, match):
        self.lines = []
        return httpx.Response(204)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def products():
    return {
        1: product_json(1, price=500.0, stock=5),
        2: product_json(2, price=1000.0, stock=2),
        3: product_json(3, price=250.0, stock=0),
    }


@pytest.fixture
def server_cart(backend, products):
    return FakeServerCart(backend, products)


@pytest.fixture
def api_url():
    return BASE_URL


@pytest.fixture
def make_product():
    return product_json
