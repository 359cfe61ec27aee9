import json
import re
from datetime import date

import httpx
import pytest

from procurement_client.client import ApiClient
from procurement_client.config import set_policy
from procurement_client.session import UserSession

BASE_URL = "http://backend.test/api"
REFERENCE_DAY = date(2025, 11, 30)


def _normalize(path: str) -> str:
    return re.sub("/+", "/", path)


class FakeBackend:
    """
    Routes (method, path) to canned JSON responses and records every
    request it receives. Paths are relative to the API root.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def on(self, method, path, json=None, status=200, handler=None):
        self.routes[(method, _normalize(path))] = (status, json, handler)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = _normalize(request.url.path)
        if path.startswith("/api"):
            path = path[len("/api"):]
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"error": f"No route for {request.method} {path}"})
        status, body, handler = route
        if handler is not None:
            return handler(request)
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def calls(self, method, path):
        path = _normalize(path)
        return [
            r for r in self.requests
            if r.method == method and _normalize(r.url.path) == _normalize("/api" + path)
        ]

    @staticmethod
    def body(request: httpx.Request):
        return json.loads(request.content) if request.content else None


@pytest.fixture
def today():
    return REFERENCE_DAY


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def make_client(backend):
    clients = []

    def factory(token="test-token", role="purchase_head", user_id="u1"):
        client = ApiClient(
            base_url=BASE_URL,
            session=UserSession(token=token, role=role, user_id=user_id),
            transport=httpx.MockTransport(backend),
        )
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture(autouse=True)
def reset_policy():
    yield
    set_policy(None)


def po_row(po_number, component_id, **overrides):
    """One raw PO line as the backend returns it."""
    row = {
        "po_number": po_number,
        "component_id": component_id,
        "mrf_no": "MRF-1",
        "vendor_name": "Acme",
        "po_created_at": "2025-11-01T10:00:00",
        "po_status": "Material Delivery Pending",
        "expected_delivery_date": "2025-12-10",
        "mpn": f"MPN-{component_id}",
        "item_description": f"Part {component_id}",
        "updated_requested_quantity": "5",
        "rate_per_unit": "100",
        "amount": "500",
        "gst_amount": "90",
    }
    row.update(overrides)
    return row
