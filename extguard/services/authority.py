from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from extguard.results import NETWORK_ERROR_MESSAGE
from extguard.services.classifier import normalize_extension
from extguard.settings import Settings, get_settings

log = logging.getLogger(__name__)

FIXED_PATH = "/api/extensions/fixed"
CUSTOM_PATH = "/api/extensions/custom"


class AuthorityError(Exception):
    """The authority answered with a failure payload or a non-2xx status."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


class TransportError(Exception):
    """The authority could not be reached or replied with something unreadable."""

    def __init__(self, message: str = NETWORK_ERROR_MESSAGE):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class FixedExtensionRule:
    id: int
    extension: str
    description: str
    is_blocked: bool

    @classmethod
    def from_payload(cls, item: dict[str, Any]) -> FixedExtensionRule:
        return cls(
            id=item["id"],
            extension=normalize_extension(item["extension"]),
            description=item.get("description") or "",
            is_blocked=bool(item.get("blocked")),
        )


@dataclass(frozen=True)
class CustomExtensionRule:
    id: int
    extension: str

    @classmethod
    def from_payload(cls, item: dict[str, Any]) -> CustomExtensionRule:
        return cls(id=item["id"], extension=normalize_extension(item["extension"]))


def _segment(extension: str) -> str:
    return quote(normalize_extension(extension), safe="")


def _rules(rule_cls, payload: dict[str, Any], path: str) -> tuple:
    try:
        return tuple(rule_cls.from_payload(item) for item in payload.get("data") or [])
    except (KeyError, TypeError, AttributeError) as e:
        log.error(f"GET {path} returned a malformed rule list: {e!r}")
        raise TransportError() from e


class AuthorityClient:
    """Async client for the extension blocklist REST contract."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> AuthorityClient:
        settings = settings or get_settings()
        client = httpx.AsyncClient(
            base_url=settings.authority_url.rstrip("/"),
            timeout=settings.authority_timeout_seconds,
            transport=transport,
        )
        return cls(client)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AuthorityClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, json: Any = None) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            log.error(f"{method} {path} failed: {e}")
            raise TransportError() from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.is_error:
            message = NETWORK_ERROR_MESSAGE
            if isinstance(payload, dict) and payload.get("message"):
                message = payload["message"]
            raise AuthorityError(response.status_code, message)

        if not isinstance(payload, dict):
            log.error(f"{method} {path} returned an unreadable body")
            raise TransportError()

        if payload.get("success") is False:
            raise AuthorityError(
                payload.get("status", response.status_code),
                payload.get("message") or NETWORK_ERROR_MESSAGE,
            )
        return payload

    async def list_fixed(self) -> tuple[FixedExtensionRule, ...]:
        payload = await self._request("GET", FIXED_PATH)
        return _rules(FixedExtensionRule, payload, FIXED_PATH)

    async def set_fixed_blocked(self, extension: str, is_blocked: bool) -> Any:
        payload = await self._request(
            "PUT",
            FIXED_PATH,
            json={"extension": normalize_extension(extension), "isBlocked": is_blocked},
        )
        return payload.get("data")

    async def add_fixed(self, extension: str, description: str | None = None) -> Any:
        body: dict[str, Any] = {"extension": normalize_extension(extension)}
        if description is not None:
            body["description"] = description
        payload = await self._request("POST", FIXED_PATH, json=body)
        return payload.get("data")

    async def delete_fixed(self, rule_id: int) -> None:
        await self._request("DELETE", f"{FIXED_PATH}/{rule_id}")

    async def reset_fixed(self) -> None:
        await self._request("POST", f"{FIXED_PATH}/reset")

    async def list_custom(self) -> tuple[CustomExtensionRule, ...]:
        payload = await self._request("GET", CUSTOM_PATH)
        return _rules(CustomExtensionRule, payload, CUSTOM_PATH)

    async def add_custom(self, extension: str) -> Any:
        payload = await self._request(
            "POST", CUSTOM_PATH, json={"extension": normalize_extension(extension)}
        )
        return payload.get("data")

    async def delete_custom(self, rule_id: int) -> None:
        await self._request("DELETE", f"{CUSTOM_PATH}/{rule_id}")

    async def delete_all_custom(self) -> None:
        await self._request("DELETE", f"{CUSTOM_PATH}/all")

    async def delete_custom_by_extension(self, extension: str) -> None:
        await self._request("DELETE", f"{CUSTOM_PATH}/extension/{_segment(extension)}")

    async def is_blocked(self, extension: str) -> bool:
        payload = await self._request("GET", f"/api/extensions/check/{_segment(extension)}")
        return bool(payload.get("data"))

    async def classify(self, extension: str) -> str:
        payload = await self._request("GET", f"/api/extensions/type/{_segment(extension)}")
        kind = payload.get("data")
        if kind not in ("fixed", "custom"):
            raise AuthorityError(404, f"Extension not found: {normalize_extension(extension)}")
        return kind
