"""Bearer credential resolution.

Callers pass candidate tokens in priority order; the first non-blank one
wins and is normalized to ``Bearer <token>`` form.

Redemption order: code-level token, caller ``token`` param, PAYPER_TOKEN.
Direct checkout order: caller ``token`` param, ``Authorization`` header.
"""
from __future__ import annotations

import re
from typing import Optional

_BEARER_PREFIX = re.compile(r"^Bearer\s+", re.IGNORECASE)


def normalize_bearer(candidate: Optional[str]) -> Optional[str]:
    """Trim a candidate and prefix ``Bearer `` unless already present.

    Blank or missing candidates return None.
    """
    if not candidate:
        return None
    trimmed = candidate.strip()
    if not trimmed:
        return None
    if _BEARER_PREFIX.match(trimmed):
        return trimmed
    return f"Bearer {trimmed}"


def resolve_bearer(*candidates: Optional[str]) -> Optional[str]:
    """Return the first usable candidate as a bearer credential, or None."""
    for candidate in candidates:
        bearer = normalize_bearer(candidate)
        if bearer:
            return bearer
    return None
