"""
Redemption code generation and admin registration.

Codes are short, unpredictable identifiers drawn from a 62-character
alphanumeric alphabet. Each character comes from ``secrets.choice``, which
samples uniformly (rejection sampling over the OS CSPRNG), so every code of
length n carries n * log2(62) bits of entropy with no modulo bias.
"""
from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from typing import Any, Optional

from holland_checkout.exceptions import InvalidAmountError, StoreError, ValidationError
from holland_checkout.models import (
    CodeConfig,
    DEFAULT_CURRENCY,
    DEFAULT_PRODUCT,
    parse_positive_amount,
)
from holland_checkout.store import CodeConfigStore

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.digits + string.ascii_lowercase + string.ascii_uppercase
DEFAULT_CODE_LENGTH = 8


def generate_code(length: int = DEFAULT_CODE_LENGTH, alphabet: str = CODE_ALPHABET) -> str:
    """Generate a random code of ``length`` characters from ``alphabet``."""
    if length <= 0:
        raise ValueError("code length must be positive")
    return "".join(secrets.choice(alphabet) for _ in range(length))


def _require_strings(**fields: Any) -> None:
    details = [
        {"field": name, "message": "must be a string"}
        for name, value in fields.items()
        if value is not None and not isinstance(value, str)
    ]
    if details:
        raise ValidationError(details=details)


@dataclass
class RegisteredCode:
    code: str
    short_url: str
    config: CodeConfig

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "shortUrl": self.short_url,
            "config": self.config.to_dict(),
        }


class CodeRegistry:
    """
    Registers redemption codes in a CodeConfigStore.

    Explicitly supplied codes overwrite any existing config (last write
    wins). Generated codes are re-drawn when they collide with a stored
    code, up to ``max_generation_attempts`` draws.
    """

    def __init__(
        self,
        store: CodeConfigStore,
        code_length: int = DEFAULT_CODE_LENGTH,
        max_generation_attempts: int = 3,
    ):
        self.store = store
        self.code_length = code_length
        self.max_generation_attempts = max(1, max_generation_attempts)

    async def _new_code(self) -> str:
        code = generate_code(self.code_length)
        for _ in range(self.max_generation_attempts - 1):
            if await self.store.get(code) is None:
                return code
            logger.warning("Generated code collided with an existing code, retrying")
            code = generate_code(self.code_length)
        return code

    async def register(
        self,
        amount: Any,
        base_url: str,
        product: Optional[str] = None,
        currency: Optional[str] = None,
        token: Optional[str] = None,
        allow_amount_override: Any = False,
        code: Optional[str] = None,
    ) -> RegisteredCode:
        """
        Validate and persist a code configuration.

        Args:
            amount: Default charge amount; must be a positive number
            base_url: ``{proto}://{host}`` used to build the short URL
            product: Display name (default "Holland Deposit")
            currency: Currency code, upper-cased (default "CAD")
            token: Optional code-scoped vendor credential
            allow_amount_override: Whether redeemers may override the amount
            code: Explicit code; generated when omitted

        Raises:
            InvalidAmountError: If amount is missing, not positive or out of range
            ValidationError: If product, currency, token or code is not a string
            StoreError: If the store could not be reached or did not acknowledge the write
        """
        parsed_amount = parse_positive_amount(amount)
        if parsed_amount is None:
            raise InvalidAmountError()
        _require_strings(product=product, currency=currency, token=token, code=code)

        config = CodeConfig(
            amount=parsed_amount,
            product=product or DEFAULT_PRODUCT,
            currency=(currency or DEFAULT_CURRENCY).upper(),
            allow_amount_override=bool(allow_amount_override),
            token=token or None,
        )
        code = code or await self._new_code()

        if not await self.store.set(code, config):
            raise StoreError(f"Store did not acknowledge registration of code {code}")
        logger.info(
            f"Registered code {code}: {config.amount} {config.currency} "
            f"override={'on' if config.allow_amount_override else 'off'}"
        )

        return RegisteredCode(
            code=code,
            short_url=f"{base_url.rstrip('/')}/c/{code}",
            config=config,
        )
