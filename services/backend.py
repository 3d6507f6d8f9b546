"""Async REST client for the hosted rent-management backend."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import httpx

from core.settings import BACKEND, BackendSettings


class BackendError(Exception):
    """A remote mutation did not go through."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


def _filters(match: Mapping[str, Any]) -> Dict[str, str]:
    if not match:
        raise ValueError("refusing to touch rows without a filter")
    params: Dict[str, str] = {}
    for column, value in match.items():
        if isinstance(value, bool):
            value = "true" if value else "false"
        params[column] = f"eq.{value}"
    return params


class BackendClient:
    """Row-level insert/update/delete against ``<base_url>/rest/v1/<table>``."""

    def __init__(
        self,
        settings: BackendSettings = BACKEND,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not settings.base_url:
            raise ValueError("RENTDESK_BACKEND_URL must be configured")
        self._settings = settings
        self._client = httpx.AsyncClient(
            base_url=settings.base_url.rstrip("/") + settings.rest_prefix,
            timeout=settings.timeout_sec,
            transport=transport,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Prefer": "return=minimal",
        }
        if self._settings.api_key:
            headers["apikey"] = self._settings.api_key
            headers["Authorization"] = f"Bearer {self._settings.api_key}"
        return headers

    async def _send(self, method: str, table: str, **kwargs: Any) -> None:
        try:
            response = await self._client.request(method, f"/{table}", headers=self._headers(), **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            detail = exc.response.text[:300]
            raise BackendError(f"{method} {table} failed with {status}: {detail}", status) from exc
        except httpx.HTTPError as exc:
            raise BackendError(f"{method} {table} failed: {exc}") from exc

    async def insert(self, table: str, row: Mapping[str, Any]) -> None:
        await self._send("POST", table, json=dict(row))

    async def update(self, table: str, match: Mapping[str, Any], values: Mapping[str, Any]) -> None:
        await self._send("PATCH", table, params=_filters(match), json=dict(values))

    async def delete(self, table: str, match: Mapping[str, Any]) -> None:
        await self._send("DELETE", table, params=_filters(match))

    async def close(self) -> None:
        await self._client.aclose()


__all__ = ["BackendClient", "BackendError"]
