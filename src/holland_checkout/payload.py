"""Payper checkout-session payload construction.

The payload shape is fixed by the vendor. Everything except the item,
amount, currency, return URLs and caller IP is static placeholder data,
apart from the timestamp and date entries in ``udfs``.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from holland_checkout.models import amount_to_json, now_ms

PLACEHOLDER_EMAIL = "placeholder@example.com"

PLACEHOLDER_BILLING_INFO = {
    "first_name": "Holland",
    "last_name": "Customer",
    "address": "123 Main Street",
    "city": "Toronto",
    "state": "ON",
    "zip_code": "M5V 3A8",
    "country": "CA",
    "company": "Holland Leasing",
    "phone": "+14160000000",
}

SESSION_METHODS = [
    {"method": "wire_transfer", "preferred": False},
    {"method": "etransfer_request_money", "preferred": True},
]

ITEM_DESCRIPTION = "Secure deposit payment"
ITEM_SKU = "deposit"
ITEM_TYPE = "physical"
ITEM_IMAGE_URL = (
    "https://static.vecteezy.com/system/resources/previews/035/662/363/"
    "non_2x/luxury-car-front-view-icon-free-vector.jpg"
)

MERCHANT_TAG = "holland_leasing"
COMPANY_NAME = "Holland Leasing Inc"
BANK_CODE = "TD"


def format_locale_date(moment: datetime) -> str:
    """Short US-locale date, e.g. ``10/9/2026`` (no zero padding)."""
    return f"{moment.month}/{moment.day}/{moment.year}"


def build_udfs(timestamp_ms: Optional[int] = None, moment: Optional[datetime] = None) -> list[str]:
    """The seven merchant tracking tokens sent with every session."""
    timestamp_ms = timestamp_ms if timestamp_ms is not None else now_ms()
    moment = moment or datetime.now()
    return [
        f"deposit_{timestamp_ms}",
        "deposit",
        MERCHANT_TAG,
        str(timestamp_ms),
        COMPANY_NAME,
        format_locale_date(moment),
        BANK_CODE,
    ]


def build_checkout_payload(
    amount: Decimal,
    product: str,
    currency: str,
    return_url: str,
    failed_return_url: str,
    customer_ip: Optional[str] = None,
    merchant_ntf_url: Optional[str] = None,
    notify_email: Optional[str] = None,
    notify_phone: Optional[str] = None,
) -> dict[str, Any]:
    """Map a resolved checkout into the vendor's session JSON."""
    billing_info = dict(PLACEHOLDER_BILLING_INFO)
    if customer_ip:
        billing_info["ip_address"] = customer_ip

    payload: dict[str, Any] = {
        "customer": {
            "email": PLACEHOLDER_EMAIL,
            "billing_info": billing_info,
        },
        "session_info": {
            "session_type": "payment",
            "session_methods": [dict(m) for m in SESSION_METHODS],
        },
        "checkout_items": [
            {
                "name": product,
                "quantity": 1,
                "description": ITEM_DESCRIPTION,
                "SKU": ITEM_SKU,
                "unit_price": amount_to_json(amount),
                "item_type": ITEM_TYPE,
                "image_url": ITEM_IMAGE_URL,
            }
        ],
        "convenience_fee": 0.0,
        "currency": currency.upper(),
        "udfs": build_udfs(),
        "return_url": return_url,
        "failed_return_url": failed_return_url,
    }

    if merchant_ntf_url:
        payload["merchant_ntf_url"] = merchant_ntf_url

    if notify_email or notify_phone:
        notification_info: dict[str, list[str]] = {}
        if notify_email:
            notification_info["email_addresses"] = [notify_email]
        if notify_phone:
            notification_info["phone_numbers"] = [notify_phone]
        payload["notification_info"] = notification_info

    return payload
