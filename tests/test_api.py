"""
API tests for the checkout redirect service.

Tests cover:
- Admin registration and short-link redemption end to end
- Error bodies and status codes
- Direct checkout (redirect and JSON forms)
- Health endpoint
"""
from __future__ import annotations

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from holland_checkout.api.app import create_app
from holland_checkout.models import CodeConfig

from conftest import HOSTED_URL, FakeVendor


@pytest.fixture
def build_app(make_settings, memory_store, fake_vendor):
    def _build(vendor: FakeVendor | None = None, **settings_overrides):
        settings = make_settings(**settings_overrides)
        return create_app(settings, store=memory_store, vendor=(vendor or fake_vendor).client())

    return _build


@pytest.fixture
def app(build_app):
    return build_app(payper_token="env_tok")


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "store": "memory"}

    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        response = await client.get("/nope")

        assert response.status_code == 404
        assert response.json() == {"error": "not_found"}


class TestRegisterAndRedeem:

    @pytest.mark.asyncio
    async def test_register_then_redeem_with_override(self, app, client, fake_vendor, memory_store):
        response = await client.post(
            "/codes",
            json={
                "amount": 500,
                "product": "Deposit",
                "currency": "cad",
                "allow_amount_override": True,
                "code": "ABC123",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["code"] == "ABC123"
        assert body["shortUrl"] == "https://test/c/ABC123"
        assert body["config"]["amount"] == 500
        assert body["config"]["currency"] == "CAD"
        assert body["config"]["usage_count"] == 0

        response = await client.get("/c/ABC123", params={"a": "750"})

        assert response.status_code == 302
        assert response.headers["location"] == HOSTED_URL
        payload = fake_vendor.last_payload
        assert payload["checkout_items"][0]["unit_price"] == 750
        assert payload["currency"] == "CAD"
        assert payload["return_url"] == "https://test/payment-return"
        assert fake_vendor.last_authorization == "Bearer env_tok"

        await app.state.deps.orchestrator.wait_for_usage_updates()
        assert (await memory_store.get("ABC123")).usage_count == 1

    @pytest.mark.asyncio
    async def test_generated_code_and_forwarded_proto(self, client, memory_store):
        response = await client.post(
            "/codes",
            json={"amount": "125.5"},
            headers={"x-forwarded-proto": "http"},
        )

        body = response.json()
        assert len(body["code"]) == 8
        assert body["shortUrl"] == f"http://test/c/{body['code']}"
        assert body["config"]["product"] == "Holland Deposit"
        assert body["config"]["amount"] == 125.5
        assert await memory_store.get(body["code"]) is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "content",
        [b'{"amount": 0}', b'{"amount": "abc"}', b"{}", b"not json", b"[500]"],
    )
    async def test_invalid_amount(self, client, memory_store, content):
        response = await client.post("/codes", content=content, headers={"content-type": "application/json"})

        assert response.status_code == 400
        assert response.json() == {"error": "invalid_amount"}
        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_redeem_by_query(self, client, memory_store, fake_vendor):
        await memory_store.set("XYZ", CodeConfig(amount=Decimal("40")))

        response = await client.get("/redeem", params={"code": "XYZ", "a": "999"})

        assert response.status_code == 302
        assert response.headers["location"] == HOSTED_URL
        assert fake_vendor.last_payload["checkout_items"][0]["unit_price"] == 40

    @pytest.mark.asyncio
    async def test_query_code_wins_over_path(self, client, memory_store, fake_vendor):
        await memory_store.set("REAL", CodeConfig(amount=Decimal("15")))

        response = await client.get("/c/OTHER", params={"code": "REAL"})

        assert response.status_code == 302
        assert fake_vendor.calls == 1

    @pytest.mark.asyncio
    async def test_caller_token(self, client, memory_store, fake_vendor):
        await memory_store.set("XYZ", CodeConfig(amount=Decimal("40")))

        await client.get("/c/XYZ", params={"token": "caller_tok"})

        assert fake_vendor.last_authorization == "Bearer caller_tok"

    @pytest.mark.asyncio
    async def test_missing_code(self, client, fake_vendor):
        response = await client.get("/redeem")

        assert response.status_code == 400
        assert response.json() == {"error": "missing_code"}
        assert fake_vendor.calls == 0

    @pytest.mark.asyncio
    async def test_unknown_code(self, client, fake_vendor):
        response = await client.get("/c/NOPE")

        assert response.status_code == 404
        assert response.json() == {"error": "code_not_found"}
        assert fake_vendor.calls == 0

    @pytest.mark.asyncio
    async def test_missing_token(self, build_app, memory_store, fake_vendor):
        app = build_app()
        await memory_store.set("XYZ", CodeConfig(amount=Decimal("40")))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/c/XYZ")

        assert response.status_code == 401
        assert response.json() == {"error": "missing_token"}
        assert fake_vendor.calls == 0

    @pytest.mark.asyncio
    async def test_vendor_failure(self, build_app, memory_store):
        vendor = FakeVendor(status_code=422, body={"message": "rejected"})
        app = build_app(vendor=vendor, payper_token="env_tok")
        await memory_store.set("XYZ", CodeConfig(amount=Decimal("40")))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/c/XYZ")

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "redeem_failed"
        assert body["details"] == {"message": "rejected"}

    @pytest.mark.asyncio
    async def test_vendor_without_url(self, build_app, memory_store):
        vendor = FakeVendor(body={"data": {"session_id": "s"}})
        app = build_app(vendor=vendor, payper_token="env_tok")
        await memory_store.set("XYZ", CodeConfig(amount=Decimal("40")))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/c/XYZ")

        assert response.status_code == 502
        assert response.json()["error"] == "bad_gateway"


class TestAdminKey:

    @pytest_asyncio.fixture
    async def client(self, build_app):
        app = build_app(admin_api_key="s3cret")
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
            yield c

    @pytest.mark.asyncio
    @pytest.mark.parametrize("headers", [{}, {"x-api-key": "wrong"}])
    async def test_rejected(self, client, memory_store, headers):
        response = await client.post("/codes", json={"amount": 10, "code": "A"}, headers=headers)

        assert response.status_code == 401
        assert response.json() == {"error": "unauthorized"}
        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_accepted(self, client, memory_store):
        response = await client.post(
            "/codes",
            json={"amount": 10, "code": "A"},
            headers={"x-api-key": "s3cret"},
        )

        assert response.status_code == 200
        assert await memory_store.get("A") is not None


class TestDirectCheckout:

    @pytest.mark.asyncio
    async def test_get_redirects(self, client, fake_vendor):
        response = await client.get(
            "/checkout",
            params={"amount": "100", "currency": "usd", "token": "tok"},
            headers={"x-forwarded-for": "203.0.113.9, 10.0.0.1"},
        )

        assert response.status_code == 302
        assert response.headers["location"] == HOSTED_URL
        payload = fake_vendor.last_payload
        assert payload["checkout_items"][0]["name"] == "Deposit"
        assert payload["currency"] == "USD"
        assert payload["customer"]["billing_info"]["ip_address"] == "203.0.113.9"
        assert fake_vendor.last_authorization == "Bearer tok"

    @pytest.mark.asyncio
    async def test_get_uses_authorization_header(self, client, fake_vendor):
        response = await client.get(
            "/checkout",
            params={"amount": "100", "product": "Car"},
            headers={"authorization": "Bearer header_tok"},
        )

        assert response.status_code == 302
        assert fake_vendor.last_authorization == "Bearer header_tok"
        assert fake_vendor.last_payload["checkout_items"][0]["name"] == "Car"

    @pytest.mark.asyncio
    async def test_get_missing_authorization(self, client, fake_vendor):
        response = await client.get("/checkout", params={"amount": "100"})

        assert response.status_code == 401
        assert response.json()["error"] == "missing_authorization"
        assert fake_vendor.calls == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [{}, {"amount": "abc"}, {"amount": "-1"}, {"amount": "10", "return_url": "nope"}])
    async def test_get_validation_error(self, client, fake_vendor, params):
        response = await client.get("/checkout", params={**params, "token": "tok"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]
        assert fake_vendor.calls == 0

    @pytest.mark.asyncio
    async def test_post_returns_session(self, client, fake_vendor):
        response = await client.post(
            "/checkout",
            json={
                "amount": 250,
                "product": "Deposit",
                "return_url": "https://shop.example/ok",
                "token": "tok",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["url"] == HOSTED_URL
        assert body["session_id"] == "sess_123"
        assert fake_vendor.last_payload["return_url"] == "https://shop.example/ok"
        assert fake_vendor.last_payload["failed_return_url"] == "https://test/checkout-failed"

    @pytest.mark.asyncio
    async def test_post_requires_product(self, client, fake_vendor):
        response = await client.post("/checkout", json={"amount": 250, "token": "tok"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"][0]["field"] == "product"
        assert fake_vendor.calls == 0

    @pytest.mark.asyncio
    async def test_post_vendor_failure(self, build_app):
        vendor = FakeVendor(status_code=400, body={"error": "bad currency"})
        app = build_app(vendor=vendor)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post(
                "/checkout",
                json={"amount": 250, "product": "Deposit", "currency": "xyz"},
                headers={"authorization": "tok"},
            )

        assert response.status_code == 400
        assert response.json()["error"] == "checkout_failed"
        assert response.json()["details"] == {"error": "bad currency"}


class TestInputBounds:

    @pytest.mark.asyncio
    async def test_huge_override_ignored(self, client, memory_store, fake_vendor):
        await memory_store.set("ABC", CodeConfig(amount=Decimal("500"), allow_amount_override=True))

        response = await client.get("/c/ABC", params={"a": "1e5000"})

        assert response.status_code == 302
        assert fake_vendor.last_payload["checkout_items"][0]["unit_price"] == 500

    @pytest.mark.asyncio
    async def test_huge_direct_amount_rejected(self, client, fake_vendor):
        response = await client.get("/checkout", params={"amount": "1e5000", "token": "tok"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"][0]["field"] == "amount"
        assert fake_vendor.calls == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body,field",
        [
            ({"amount": 500, "token": 12345, "code": "TOK"}, "token"),
            ({"amount": 500, "currency": 5}, "currency"),
            ({"amount": 500, "product": {"name": "Deposit"}}, "product"),
        ],
    )
    async def test_registration_rejects_non_string_fields(self, client, memory_store, body, field):
        response = await client.post("/codes", json=body)

        assert response.status_code == 400
        assert response.json() == {
            "error": "validation_error",
            "details": [{"field": field, "message": "must be a string"}],
        }
        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_unacknowledged_registration_is_500(self, build_app, memory_store, monkeypatch):
        async def refuse(code, config):
            return False

        monkeypatch.setattr(memory_store, "set", refuse)
        app = build_app()

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/codes", json={"amount": 500, "code": "LOST"})

        assert response.status_code == 500
        assert response.json()["error"] == "store_unavailable"
