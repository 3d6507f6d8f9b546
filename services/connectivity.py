"""Online/offline tracking for the backend connection."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

import httpx

from core.settings import BACKEND, CONNECTIVITY


logger = logging.getLogger("rentdesk.sync.connectivity")

Listener = Callable[[bool], None]


class ConnectivityMonitor:
    """Keeps ``is_online`` current and tells listeners about transitions.

    Any HTTP response from ``probe_url`` counts as online, even an error
    status; only transport failures and timeouts count as offline. Without a
    probe URL the state only changes through ``set_online``.
    """

    def __init__(
        self,
        probe_url: Optional[str] = None,
        *,
        online: Optional[bool] = None,
        interval_sec: float = CONNECTIVITY.probe_interval_sec,
        timeout_sec: float = CONNECTIVITY.probe_timeout_sec,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sync_transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.probe_url = probe_url
        self.interval_sec = interval_sec
        self.timeout_sec = timeout_sec
        self._transport = transport
        self._listeners: List[Listener] = []
        self._running = False
        if online is None:
            online = self._probe_blocking(sync_transport)
        self._online = bool(online)

    @classmethod
    def for_backend(cls, **kwargs) -> "ConnectivityMonitor":
        url = BACKEND.base_url.rstrip("/") + BACKEND.rest_prefix + "/" if BACKEND.base_url else None
        return cls(url, **kwargs)

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def set_online(self, online: bool) -> None:
        online = bool(online)
        if online == self._online:
            return
        self._online = online
        if online:
            logger.info("Connectivity restored")
        else:
            logger.warning("Connectivity lost")
        for listener in list(self._listeners):
            try:
                listener(online)
            except Exception as exc:
                logger.error("Connectivity listener failed: %s", exc)

    # ------------------------------------------------------------------
    # probing
    def _probe_blocking(self, transport: Optional[httpx.BaseTransport]) -> bool:
        if not self.probe_url:
            return True
        try:
            with httpx.Client(timeout=self.timeout_sec, transport=transport) as client:
                client.head(self.probe_url)
        except httpx.HTTPError as exc:
            logger.info("Backend unreachable at startup: %s", exc)
            return False
        return True

    async def check(self) -> bool:
        if not self.probe_url:
            return self._online
        try:
            async with httpx.AsyncClient(timeout=self.timeout_sec, transport=self._transport) as client:
                await client.head(self.probe_url)
        except httpx.HTTPError as exc:
            logger.debug("Probe failed: %s", exc)
            self.set_online(False)
        else:
            self.set_online(True)
        return self._online

    async def run(self) -> None:
        """Probe until ``stop`` is called."""
        self._running = True
        while self._running:
            await self.check()
            await asyncio.sleep(self.interval_sec)

    def stop(self) -> None:
        self._running = False


__all__ = ["ConnectivityMonitor"]
