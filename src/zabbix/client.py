"""Minimal async Zabbix JSON-RPC client using httpx."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ZabbixError(Exception):
    """Raised when a Zabbix API call fails."""


class ZabbixAPIError(ZabbixError):
    """The server answered with a JSON-RPC error object."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(f"Zabbix API error {code}: {message} {data or ''}".rstrip())
        self.code = code
        self.message = message
        self.data = data


class ZabbixClient:
    """JSON-RPC 2.0 client for the Zabbix API.

    Use as an async context manager; an httpx client passed in via
    ``http`` is left open on exit.
    """

    def __init__(
        self, url: str, *, http: httpx.AsyncClient | None = None, timeout: float = 15
    ) -> None:
        self.url = url
        self.auth: str | None = None
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> ZabbixClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def rpc(self, method: str, params: Any) -> Any:
        """Call *method* and return its ``result`` member."""
        payload: dict[str, Any] = {"jsonrpc": "2.0", "method": method, "params": params, "id": 1}
        if self.auth is not None:
            payload["auth"] = self.auth

        try:
            resp = await self._http.post(self.url, json=payload)
        except httpx.HTTPError as exc:
            raise ZabbixError(f"Zabbix API request failed: {exc}") from exc

        if not resp.is_success:
            msg = f"Zabbix API HTTP error: {resp.status_code}: {resp.text[:200]}"
            raise ZabbixError(msg)

        try:
            body = resp.json()
        except ValueError as exc:
            msg = f"Unable to parse JSON-RPC response: {resp.text[:200]}"
            raise ZabbixError(msg) from exc

        if not isinstance(body, dict):
            raise ZabbixError(f"Unexpected JSON-RPC response: {resp.text[:200]}")

        error = body.get("error")
        if isinstance(error, dict):
            raise ZabbixAPIError(error.get("code", 0), error.get("message", ""), error.get("data"))
        if error:
            raise ZabbixError(f"Malformed JSON-RPC error: {error!r}"[:200])
        if "result" not in body:
            raise ZabbixError("Missing result in JSON-RPC response")
        return body["result"]

    async def login(self, user: str, password: str) -> None:
        """Log in, falling back to the pre-6.4 ``user`` parameter name."""
        try:
            token = await self.rpc("user.login", {"username": user, "password": password})
        except ZabbixAPIError as exc:
            text = str(exc)
            if "Invalid params" not in text and 'unexpected parameter "username"' not in text:
                raise
            logger.debug("user.login rejected 'username', retrying with legacy 'user'")
            token = await self.rpc("user.login", {"user": user, "password": password})
        self.auth = token
        logger.info("Logged in to Zabbix API as %s", user)
