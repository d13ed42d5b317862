"""
Code configuration storage.

Two interchangeable backends implement CodeConfigStore:

- InMemoryCodeConfigStore: process-local dict, used when no remote store is
  configured. State is lost on restart and concurrent writers to the same
  code race (last write wins). Dev/local use only.
- UpstashCodeConfigStore: Upstash Redis over its REST protocol. Reads that
  miss remotely fall back to a volatile store so configs written before the
  remote credentials were added stay visible for the life of the process.

Use create_code_store() to pick one at startup.
"""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, Optional
from urllib.parse import quote

import httpx

from holland_checkout.exceptions import StoreError
from holland_checkout.models import CodeConfig

if TYPE_CHECKING:
    from holland_checkout.config import CheckoutSettings

logger = logging.getLogger(__name__)

KEY_PREFIX = "code:"


def code_key(code: str) -> str:
    return f"{KEY_PREFIX}{code}"


class CodeConfigStore(ABC):
    """Abstract interface for code configuration storage."""

    backend_name: str = "abstract"

    @abstractmethod
    async def get(self, code: str) -> Optional[CodeConfig]:
        """Get the config for a code, or None if unknown."""
        pass

    @abstractmethod
    async def set(self, code: str, config: CodeConfig) -> bool:
        """Store the config for a code. Returns True on success."""
        pass

    async def close(self) -> None:
        """Release any held resources."""
        return None


class InMemoryCodeConfigStore(CodeConfigStore):
    """
    In-memory code store for development and testing.

    Note: Not safe for production traffic. Nothing is persisted and there
    is no locking between concurrent writers.
    """

    backend_name = "memory"

    def __init__(self):
        self._configs: Dict[str, CodeConfig] = {}

    async def get(self, code: str) -> Optional[CodeConfig]:
        return self._configs.get(code_key(code))

    async def set(self, code: str, config: CodeConfig) -> bool:
        self._configs[code_key(code)] = config
        return True

    def __len__(self) -> int:
        return len(self._configs)


class UpstashCodeConfigStore(CodeConfigStore):
    """
    Upstash Redis REST backed code store.

    Protocol:
        GET  {base_url}/get/{key}          -> {"result": "<json>" | null}
        POST {base_url}/set/{key}/{value}  -> {"result": "OK"}

    Both calls carry ``Authorization: Bearer {token}``; key and value are
    URL-encoded path segments.
    """

    backend_name = "upstash"

    def __init__(
        self,
        base_url: str,
        token: str,
        fallback: Optional[InMemoryCodeConfigStore] = None,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.fallback = fallback if fallback is not None else InMemoryCodeConfigStore()
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def _call(self, method: str, path: str) -> dict:
        try:
            response = await self._client.request(method, path)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise StoreError(
                f"Upstash {method} failed with status {e.response.status_code}",
                details={"status": e.response.status_code},
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise StoreError(f"Upstash {method} failed: {e}") from e
        return data if isinstance(data, dict) else {}

    async def get(self, code: str) -> Optional[CodeConfig]:
        key = code_key(code)
        data = await self._call("GET", f"/get/{quote(key, safe='')}")
        raw = data.get("result")
        if raw:
            # Corrupt records read as unknown codes rather than errors.
            try:
                return CodeConfig.from_dict(json.loads(raw))
            except (TypeError, ValueError) as e:
                logger.warning(f"Ignoring malformed config stored under {key}: {e}")
                return None
        return await self.fallback.get(code)

    async def set(self, code: str, config: CodeConfig) -> bool:
        key = code_key(code)
        value = json.dumps(config.to_dict())
        data = await self._call(
            "POST",
            f"/set/{quote(key, safe='')}/{quote(value, safe='')}",
        )
        ok = data.get("result") == "OK"
        if not ok:
            logger.warning(f"Upstash set for {key} returned {data.get('result')!r}")
        return ok

    async def close(self) -> None:
        await self._client.aclose()


def create_code_store(
    settings: "CheckoutSettings",
    fallback: Optional[InMemoryCodeConfigStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> CodeConfigStore:
    """Select the store backend once, from configuration presence."""
    if fallback is None:
        fallback = InMemoryCodeConfigStore()
    if settings.remote_store_configured:
        logger.info("Using Upstash REST store for redemption codes")
        return UpstashCodeConfigStore(
            base_url=settings.upstash_redis_rest_url,
            token=settings.upstash_redis_rest_token,
            fallback=fallback,
            timeout=settings.store_timeout_seconds,
            transport=transport,
        )
    logger.info("No Upstash credentials set, using in-memory code store")
    return fallback
