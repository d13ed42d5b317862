"""Direct checkout endpoints."""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

import pydantic
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from pydantic import AnyHttpUrl, BaseModel, Field, field_validator

from holland_checkout.api.dependencies import Dependencies, get_deps, request_base_url
from holland_checkout.api.middleware import get_client_ip
from holland_checkout.api.middleware.exceptions import validation_details
from holland_checkout.checkout import DirectCheckoutRequest
from holland_checkout.exceptions import ValidationError
from holland_checkout.models import parse_positive_amount

router = APIRouter(tags=["checkout"])


class CheckoutQuery(BaseModel):
    amount: Decimal = Field(gt=0)
    product: str = "Deposit"
    currency: str = "CAD"
    return_url: Optional[AnyHttpUrl] = None
    failed_return_url: Optional[AnyHttpUrl] = None
    token: Optional[str] = None

    @field_validator("product", mode="before")
    @classmethod
    def default_blank_product(cls, v):
        if not isinstance(v, str) or not v:
            return "Deposit"
        return v

    @field_validator("amount")
    @classmethod
    def amount_in_range(cls, v: Decimal) -> Decimal:
        if parse_positive_amount(v) is None:
            raise ValueError("amount is out of range")
        return v

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class CheckoutBody(BaseModel):
    amount: Decimal = Field(gt=0)
    product: str = Field(min_length=1)
    currency: str = "CAD"
    return_url: Optional[AnyHttpUrl] = None
    failed_return_url: Optional[AnyHttpUrl] = None
    token: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def amount_in_range(cls, v: Decimal) -> Decimal:
        if parse_positive_amount(v) is None:
            raise ValueError("amount is out of range")
        return v

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class CheckoutSessionResponse(BaseModel):
    url: str
    session_id: Optional[str] = None
    raw: dict = Field(default_factory=dict)


def _to_request(params: CheckoutQuery | CheckoutBody) -> DirectCheckoutRequest:
    return DirectCheckoutRequest(
        amount=params.amount,
        product=params.product,
        currency=params.currency,
        return_url=str(params.return_url) if params.return_url else None,
        failed_return_url=str(params.failed_return_url) if params.failed_return_url else None,
        token=params.token,
    )


@router.get("/checkout", status_code=status.HTTP_302_FOUND)
async def checkout_redirect(request: Request, deps: Dependencies = Depends(get_deps)):
    """Create a vendor session from query params and redirect to it."""
    try:
        params = CheckoutQuery.model_validate(dict(request.query_params))
    except pydantic.ValidationError as e:
        raise ValidationError(details=validation_details(e.errors())) from e

    session = await deps.checkout.create_checkout(
        _to_request(params),
        base_url=request_base_url(request, deps.settings),
        authorization=request.headers.get("authorization"),
        customer_ip=get_client_ip(request),
    )
    return RedirectResponse(url=session.url, status_code=status.HTTP_302_FOUND)


@router.post("/checkout", response_model=CheckoutSessionResponse)
async def checkout_json(
    body: CheckoutBody,
    request: Request,
    deps: Dependencies = Depends(get_deps),
):
    """Create a vendor session from a JSON body and return its URL."""
    session = await deps.checkout.create_checkout(
        _to_request(body),
        base_url=request_base_url(request, deps.settings),
        authorization=request.headers.get("authorization"),
        customer_ip=get_client_ip(request),
    )
    return CheckoutSessionResponse(url=session.url, session_id=session.session_id, raw=session.raw)
