"""Tests for the vendor session payload."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from holland_checkout.payload import (
    PLACEHOLDER_BILLING_INFO,
    build_checkout_payload,
    build_udfs,
    format_locale_date,
)


def _payload(**overrides):
    kwargs = {
        "amount": Decimal("750"),
        "product": "Deposit",
        "currency": "cad",
        "return_url": "https://host/payment-return",
        "failed_return_url": "https://host/checkout-failed",
    }
    kwargs.update(overrides)
    return build_checkout_payload(**kwargs)


class TestBuildCheckoutPayload:

    def test_single_item_carries_amount_and_product(self):
        payload = _payload()

        (item,) = payload["checkout_items"]
        assert item["name"] == "Deposit"
        assert item["quantity"] == 1
        assert item["unit_price"] == 750
        assert isinstance(item["unit_price"], int)
        assert item["SKU"] == "deposit"
        assert item["item_type"] == "physical"

    def test_fractional_amount(self):
        (item,) = _payload(amount=Decimal("12.50"))["checkout_items"]
        assert item["unit_price"] == 12.5

    def test_currency_upper_cased(self):
        assert _payload()["currency"] == "CAD"

    def test_session_methods_prefer_etransfer(self):
        session_info = _payload()["session_info"]

        assert session_info["session_type"] == "payment"
        preferred = [m["method"] for m in session_info["session_methods"] if m["preferred"]]
        assert preferred == ["etransfer_request_money"]

    def test_static_fields(self):
        payload = _payload()

        assert payload["convenience_fee"] == 0.0
        assert payload["return_url"] == "https://host/payment-return"
        assert payload["failed_return_url"] == "https://host/checkout-failed"
        assert payload["customer"]["billing_info"] == PLACEHOLDER_BILLING_INFO

    def test_optional_fields_absent_by_default(self):
        payload = _payload()

        assert "ip_address" not in payload["customer"]["billing_info"]
        assert "merchant_ntf_url" not in payload
        assert "notification_info" not in payload

    def test_customer_ip(self):
        payload = _payload(customer_ip="203.0.113.7")

        assert payload["customer"]["billing_info"]["ip_address"] == "203.0.113.7"
        assert "ip_address" not in PLACEHOLDER_BILLING_INFO

    def test_merchant_notification_fields(self):
        payload = _payload(
            merchant_ntf_url="https://host/ntf",
            notify_email="ops@example.com",
            notify_phone="+14165550000",
        )

        assert payload["merchant_ntf_url"] == "https://host/ntf"
        assert payload["notification_info"] == {
            "email_addresses": ["ops@example.com"],
            "phone_numbers": ["+14165550000"],
        }

    def test_notification_email_only(self):
        payload = _payload(notify_email="ops@example.com")
        assert payload["notification_info"] == {"email_addresses": ["ops@example.com"]}


class TestUdfs:

    def test_seven_tracking_tokens(self):
        udfs = build_udfs(timestamp_ms=1700000000000, moment=datetime(2026, 3, 5))

        assert udfs == [
            "deposit_1700000000000",
            "deposit",
            "holland_leasing",
            "1700000000000",
            "Holland Leasing Inc",
            "3/5/2026",
            "TD",
        ]

    def test_payload_udfs_shape(self):
        udfs = _payload()["udfs"]

        assert len(udfs) == 7
        assert all(isinstance(u, str) for u in udfs)
        assert udfs[0] == f"deposit_{udfs[3]}"

    def test_locale_date_has_no_padding(self):
        assert format_locale_date(datetime(2026, 10, 9)) == "10/9/2026"
