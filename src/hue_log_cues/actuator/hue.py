"""Minimal async client for the Philips Hue bridge REST API (v1)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from .base import LightState

logger = logging.getLogger(__name__)


class HueBridgeError(RuntimeError):
    """The bridge could not be reached or rejected a request."""


def _check_response(resp: httpx.Response) -> Any:
    """Return the decoded body, raising on HTTP or Hue-level errors."""
    if resp.status_code >= 400:
        raise HueBridgeError(f"Hue bridge returned {resp.status_code} for {resp.request.url}")
    try:
        data = resp.json()
    except ValueError as exc:
        raise HueBridgeError("Hue bridge returned a non-JSON response") from exc

    # Hue reports failures as [{"error": {...}}] with a 200 status.
    if isinstance(data, list):
        errors = [item["error"] for item in data if isinstance(item, dict) and "error" in item]
        if errors:
            desc = "; ".join(str(e.get("description", e)) for e in errors)
            raise HueBridgeError(f"Hue bridge error: {desc}")
    return data


class HueBridgeClient:
    """Send light commands to a bridge at ``host`` as ``user``.

    Transport errors are retried ``max_retries`` times with capped exponential
    backoff before :class:`HueBridgeError` is raised.
    """

    def __init__(
        self,
        host: str,
        user: str,
        *,
        timeout: float = 5.0,
        max_retries: int = 3,
        retry_delay: float = 0.25,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self.base_url = f"http://{host}/api/{user}"
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> HueBridgeClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def ping(self) -> dict[str, Any]:
        """Fetch the bridge config; fails if the bridge or user is not valid."""
        data = await self._request("GET", "/config")
        if not isinstance(data, dict):
            raise HueBridgeError("Unexpected config response from Hue bridge")
        return data

    async def set_light(self, light_id: int, state: LightState) -> None:
        await self._request("PUT", f"/lights/{light_id}/state", json=state.to_payload())

    async def set_group(self, group_id: int, state: LightState) -> None:
        await self._request("PUT", f"/groups/{group_id}/action", json=state.to_payload())

    async def _request(self, method: str, path: str, *, json: dict[str, Any] | None = None) -> Any:
        last_err: Exception | None = None
        for attempt in range(1, self.max_retries + 1):
            try:
                resp = await self._client.request(method, path, json=json)
            except httpx.TransportError as e:
                last_err = e
                if attempt >= self.max_retries:
                    break
                delay = min(2.0, self.retry_delay * 2 ** (attempt - 1))
                logger.warning(
                    "Hue bridge request failed (attempt %s/%s): %s", attempt, self.max_retries, e
                )
                await asyncio.sleep(delay)
                continue
            return _check_response(resp)

        raise HueBridgeError(
            f"Hue bridge unreachable after {self.max_retries} attempts: {last_err}"
        ) from last_err
