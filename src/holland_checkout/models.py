"""Data models for code redemption and checkout."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

DEFAULT_PRODUCT = "Holland Deposit"
DEFAULT_CURRENCY = "CAD"

# Accepted amounts lie in [1e-6, 1e13).
MIN_AMOUNT_EXPONENT = -6
MAX_AMOUNT_EXPONENT = 12


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def parse_positive_amount(value: Any) -> Optional[Decimal]:
    """Coerce ``value`` to a finite, positive Decimal.

    Returns None for missing, non-numeric, non-finite or non-positive input,
    and for magnitudes outside MIN_AMOUNT_EXPONENT..MAX_AMOUNT_EXPONENT.
    Booleans are rejected even though they are ints.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    if not MIN_AMOUNT_EXPONENT <= amount.adjusted() <= MAX_AMOUNT_EXPONENT:
        return None
    return amount


def amount_to_json(amount: Decimal) -> int | float:
    """Render an amount as a JSON number, keeping integers integral."""
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


@dataclass
class CodeConfig:
    """Persisted redemption configuration for one code.

    ``usage_count`` is telemetry only; it never gates a redemption.
    """
    amount: Decimal
    product: str = DEFAULT_PRODUCT
    currency: str = DEFAULT_CURRENCY
    allow_amount_override: bool = False
    token: Optional[str] = None
    usage_count: int = 0
    created_at: int = field(default_factory=now_ms)
    last_used_at: Optional[int] = None

    def __post_init__(self) -> None:
        self.currency = self.currency.upper()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "amount": amount_to_json(self.amount),
            "product": self.product,
            "currency": self.currency,
            "allow_amount_override": self.allow_amount_override,
            "token": self.token,
            "usage_count": self.usage_count,
            "created_at": self.created_at,
        }
        if self.last_used_at is not None:
            data["last_used_at"] = self.last_used_at
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "CodeConfig":
        """Build a CodeConfig from its serialized form.

        Raises ValueError when ``data`` does not describe a valid config.
        """
        if not isinstance(data, dict):
            raise ValueError(f"expected an object, got {type(data).__name__}")
        amount = parse_positive_amount(data.get("amount"))
        if amount is None:
            raise ValueError(f"invalid amount: {data.get('amount')!r}")
        product = data.get("product") or DEFAULT_PRODUCT
        currency = data.get("currency") or DEFAULT_CURRENCY
        if not isinstance(product, str) or not isinstance(currency, str):
            raise ValueError("product and currency must be strings")
        token = data.get("token")
        if token is not None and not isinstance(token, str):
            raise ValueError("token must be a string")
        try:
            usage_count = int(data.get("usage_count") or 0)
            created_at = int(data.get("created_at") or 0)
            last_used_at = data.get("last_used_at")
            last_used_at = int(last_used_at) if last_used_at is not None else None
        except (TypeError, ValueError) as e:
            raise ValueError(f"invalid counter or timestamp: {e}") from e
        return cls(
            amount=amount,
            product=product,
            currency=currency,
            allow_amount_override=bool(data.get("allow_amount_override")),
            token=token or None,
            usage_count=usage_count,
            created_at=created_at,
            last_used_at=last_used_at,
        )


@dataclass
class CheckoutSession:
    """Hosted checkout session returned by the vendor."""
    url: str
    session_id: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class RedemptionResult:
    """Outcome of a successful redemption."""
    code: str
    redirect_url: str
    amount: Decimal
    currency: str
    session_id: Optional[str] = None
