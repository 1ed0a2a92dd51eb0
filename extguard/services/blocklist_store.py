"""
Client-side cache of the extension blocklist.

The authority is the single source of truth: every successful write is
followed by a full reload of the affected list, and the cached tuple is
replaced in one step. Nothing is patched locally, so a failed call leaves
the cache exactly as it was.

Fixed and custom namespaces are assumed disjoint. The authority rejects an
extension that already lives in the other list; ``blocked_count`` relies on
that and would double-count an overlap.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Iterator, TypeVar

from extguard.results import Err, ErrorKind, Ok, Result
from extguard.services.authority import (
    AuthorityClient,
    AuthorityError,
    CustomExtensionRule,
    FixedExtensionRule,
    TransportError,
)
from extguard.services.classifier import normalize_extension

log = logging.getLogger(__name__)

T = TypeVar("T")

FIXED = "fixed"
CUSTOM = "custom"

_STATUS_KINDS = {404: ErrorKind.NOT_FOUND, 409: ErrorKind.CONFLICT}


def to_err(exc: AuthorityError | TransportError) -> Err:
    if isinstance(exc, TransportError):
        return Err(kind=ErrorKind.TRANSPORT, message=exc.message)
    return Err(kind=_STATUS_KINDS.get(exc.status, ErrorKind.AUTHORITY), message=exc.message)


class BlocklistStore:
    def __init__(self, authority: AuthorityClient):
        self.authority = authority
        self.reset()

    def reset(self) -> None:
        """Drop cached rules and return to the freshly constructed state."""
        self.fixed_extensions: tuple[FixedExtensionRule, ...] = ()
        self.custom_extensions: tuple[CustomExtensionRule, ...] = ()
        self.is_loading_fixed = False
        self.is_loading_custom = False

    # -- local queries -------------------------------------------------

    def blocked_fixed(self) -> list[FixedExtensionRule]:
        return [rule for rule in self.fixed_extensions if rule.is_blocked]

    def allowed_fixed(self) -> list[FixedExtensionRule]:
        return [rule for rule in self.fixed_extensions if not rule.is_blocked]

    def total_count(self) -> int:
        return len(self.fixed_extensions) + len(self.custom_extensions)

    def blocked_count(self) -> int:
        return len(self.blocked_fixed()) + len(self.custom_extensions)

    def is_blocked_locally(self, extension: str) -> bool:
        ext = normalize_extension(extension)
        if any(rule.extension == ext and rule.is_blocked for rule in self.fixed_extensions):
            return True
        return any(rule.extension == ext for rule in self.custom_extensions)

    # -- synchronization -----------------------------------------------

    @contextmanager
    def _loading(self, scope: str) -> Iterator[None]:
        flag = "is_loading_fixed" if scope == FIXED else "is_loading_custom"
        setattr(self, flag, True)
        try:
            yield
        finally:
            setattr(self, flag, False)

    async def _guarded(self, action: str, call: Callable[[], Awaitable[T]]) -> Result[T]:
        try:
            return Ok(await call())
        except (AuthorityError, TransportError) as e:
            log.warning(f"{action} failed: {e.message}")
            return to_err(e)

    async def _mutate(
        self, scope: str, action: str, call: Callable[[], Awaitable[Any]]
    ) -> Result[Any]:
        reload = self._fetch_fixed if scope == FIXED else self._fetch_custom

        async def write_then_reload() -> Any:
            data = await call()
            await reload()
            return data

        with self._loading(scope):
            return await self._guarded(action, write_then_reload)

    async def _fetch_fixed(self) -> tuple[FixedExtensionRule, ...]:
        rules = await self.authority.list_fixed()
        self.fixed_extensions = rules
        return rules

    async def _fetch_custom(self) -> tuple[CustomExtensionRule, ...]:
        rules = await self.authority.list_custom()
        self.custom_extensions = rules
        return rules

    async def load_fixed(self) -> Result[tuple[FixedExtensionRule, ...]]:
        with self._loading(FIXED):
            return await self._guarded("load fixed extensions", self._fetch_fixed)

    async def load_custom(self) -> Result[tuple[CustomExtensionRule, ...]]:
        with self._loading(CUSTOM):
            return await self._guarded("load custom extensions", self._fetch_custom)

    async def toggle_fixed(self, extension: str, is_blocked: bool) -> Result[Any]:
        return await self._mutate(
            FIXED,
            f"toggle {extension}",
            lambda: self.authority.set_fixed_blocked(extension, is_blocked),
        )

    async def add_fixed(self, extension: str, description: str | None = None) -> Result[Any]:
        return await self._mutate(
            FIXED,
            f"add fixed {extension}",
            lambda: self.authority.add_fixed(extension, description),
        )

    async def delete_fixed(self, rule_id: int) -> Result[Any]:
        return await self._mutate(
            FIXED, f"delete fixed #{rule_id}", lambda: self.authority.delete_fixed(rule_id)
        )

    async def reset_fixed(self) -> Result[Any]:
        return await self._mutate(FIXED, "reset fixed extensions", self.authority.reset_fixed)

    async def add_custom(self, extension: str) -> Result[Any]:
        return await self._mutate(
            CUSTOM, f"add custom {extension}", lambda: self.authority.add_custom(extension)
        )

    async def delete_custom(self, rule_id: int) -> Result[Any]:
        return await self._mutate(
            CUSTOM, f"delete custom #{rule_id}", lambda: self.authority.delete_custom(rule_id)
        )

    async def delete_all_custom(self) -> Result[Any]:
        return await self._mutate(
            CUSTOM, "delete all custom extensions", self.authority.delete_all_custom
        )

    async def check(self, extension: str) -> Result[bool]:
        """Ask the authority for the live blocked state; the cache is never consulted."""
        return await self._guarded(
            f"check {extension}", lambda: self.authority.is_blocked(extension)
        )

    async def classify_type(self, extension: str) -> Result[str]:
        return await self._guarded(
            f"classify {extension}", lambda: self.authority.classify(extension)
        )

    async def unblock(self, extension: str, type: str) -> Result[str]:
        """
        Unblock ``extension`` using the mechanism its category requires.

        Fixed rules are toggled off; custom rules are deleted, since a custom
        rule has no allowed state. ``Ok.data`` is the category used.
        """
        if type == FIXED:
            result = await self.toggle_fixed(extension, False)
        elif type == CUSTOM:
            result = await self._mutate(
                CUSTOM,
                f"unblock custom {extension}",
                lambda: self.authority.delete_custom_by_extension(extension),
            )
        else:
            return Err(kind=ErrorKind.VALIDATION, message=f"Unknown extension type: {type}")

        if isinstance(result, Err):
            return result
        return Ok(type)
