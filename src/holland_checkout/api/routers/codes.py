"""Admin code registration endpoint."""
from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Request

from holland_checkout.api.dependencies import (
    Dependencies,
    get_deps,
    request_base_url,
    require_admin_key,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["codes"])


async def _read_body(request: Request) -> dict:
    """Parse the JSON body; anything unparsable counts as empty."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


@router.post("/codes", dependencies=[Depends(require_admin_key)])
async def register_code(request: Request, deps: Dependencies = Depends(get_deps)):
    """
    Register a redemption code.

    Body: ``{amount, product?, currency?, token?, allow_amount_override?, code?}``.
    Returns ``{code, shortUrl, config}``.
    """
    body = await _read_body(request)
    registered = await deps.registry.register(
        amount=body.get("amount"),
        base_url=request_base_url(request, deps.settings),
        product=body.get("product"),
        currency=body.get("currency"),
        token=body.get("token"),
        allow_amount_override=body.get("allow_amount_override", False),
        code=body.get("code"),
    )
    return registered.to_dict()
