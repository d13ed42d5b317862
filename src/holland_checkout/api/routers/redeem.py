"""Code redemption endpoints."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import RedirectResponse

from holland_checkout.api.dependencies import Dependencies, get_deps, request_base_url

router = APIRouter(tags=["redeem"])


async def _redeem(
    request: Request,
    deps: Dependencies,
    code: Optional[str],
    a: Optional[str],
    token: Optional[str],
) -> RedirectResponse:
    result = await deps.orchestrator.redeem(
        code,
        base_url=request_base_url(request, deps.settings),
        amount_override=a,
        token=token,
    )
    return RedirectResponse(url=result.redirect_url, status_code=status.HTTP_302_FOUND)


@router.get("/c/{path_code}", status_code=status.HTTP_302_FOUND)
async def redeem_short_link(
    path_code: str,
    request: Request,
    code: Optional[str] = Query(default=None),
    a: Optional[str] = Query(default=None, description="Amount override"),
    token: Optional[str] = Query(default=None),
    deps: Dependencies = Depends(get_deps),
):
    """Redeem a code from its short link; ``code`` in the query wins."""
    return await _redeem(request, deps, code or path_code, a, token)


@router.get("/redeem", status_code=status.HTTP_302_FOUND)
async def redeem_by_query(
    request: Request,
    code: Optional[str] = Query(default=None),
    a: Optional[str] = Query(default=None, description="Amount override"),
    token: Optional[str] = Query(default=None),
    deps: Dependencies = Depends(get_deps),
):
    """Redeem a code passed as the ``code`` query parameter."""
    return await _redeem(request, deps, code, a, token)
