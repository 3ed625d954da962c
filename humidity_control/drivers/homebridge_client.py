from __future__ import annotations

import logging
from typing import Any, List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from ..core.errors import InvalidValue, TransportError
from .schemas import HubAccessory, SetCharacteristicRequest

logger = logging.getLogger(__name__)

_ACCESSORIES = TypeAdapter(List[HubAccessory])


class HomebridgeClient:
    """Async client for the Homebridge UI REST API."""

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._username = username
        self._password = password
        self._token: Optional[str] = None
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "HomebridgeClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def login(self) -> None:
        try:
            resp = await self._client.post(
                "/api/auth/login",
                json={"username": self._username, "password": self._password},
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Homebridge login failed: {e}") from e

        if resp.is_error:
            raise TransportError(f"Homebridge login failed: {resp.status_code} {resp.text}")

        try:
            self._token = resp.json()["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            raise TransportError("Homebridge login response did not contain an access_token") from e
        logger.info("Authenticated with Homebridge UI.")

    async def _authorized_request(self, method: str, path: str, json: Any = None) -> httpx.Response:
        if self._token is None:
            await self.login()

        # A 401 gets exactly one re-login; a second 401 is an error.
        for attempt in range(2):
            try:
                resp = await self._client.request(
                    method,
                    path,
                    json=json,
                    headers={"Authorization": f"Bearer {self._token}"},
                )
            except httpx.HTTPError as e:
                raise TransportError(f"{method} {path} failed: {e}") from e

            if resp.status_code != 401:
                return resp
            if attempt == 0:
                logger.info("Token expired, re-authenticating...")
                await self.login()

        raise TransportError(f"{method} {path} still unauthorized after re-authenticating")

    async def list_accessories(self) -> list[HubAccessory]:
        resp = await self._authorized_request("GET", "/api/accessories")
        if resp.is_error:
            raise TransportError(f"Failed to list accessories: {resp.status_code} {resp.text}")

        try:
            return _ACCESSORIES.validate_python(resp.json())
        except (ValueError, ValidationError) as e:
            raise InvalidValue(f"Unexpected accessories payload: {e}") from e

    async def set_characteristic(self, accessory_id: str, characteristic_type: str, value: Any) -> None:
        body = SetCharacteristicRequest(characteristicType=characteristic_type, value=value)
        resp = await self._authorized_request(
            "PUT",
            f"/api/accessories/{accessory_id}",
            json=body.model_dump(),
        )
        if resp.is_error:
            raise TransportError(
                f"Failed to update {characteristic_type} on {accessory_id}: {resp.status_code} {resp.text}"
            )
        logger.debug("Set %s=%r on %s", characteristic_type, value, accessory_id)
