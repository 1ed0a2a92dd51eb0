from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any

from extguard.results import Err, ErrorKind, Ok, Result
from extguard.services.blocklist_store import BlocklistStore
from extguard.services.classifier import classify, normalize_extension

log = logging.getLogger(__name__)

CHECK_FAILED_MESSAGE = "Test failed. Please check the server."
UNBLOCK_FAILED_MESSAGE = "Unblock failed. Please check the server."


@dataclass(frozen=True)
class CheckOutcome:
    filename: str
    extension: str
    is_blocked: bool


class ExtensionChecker:
    """Test a file name against the live blocklist, and unblock it on request."""

    def __init__(self, store: BlocklistStore):
        self.store = store
        self.is_checking = False
        self.is_unblocking = False
        self.last_outcome: CheckOutcome | None = None

    async def check(self, raw: str) -> Result[CheckOutcome]:
        classified = classify(raw)
        if isinstance(classified, Err):
            return classified

        extension = classified.data
        self.is_checking = True
        try:
            result = await self.store.check(extension)
        except Exception:
            log.exception(f"Checking {extension!r} raised")
            return Err(kind=ErrorKind.AUTHORITY, message=CHECK_FAILED_MESSAGE)
        finally:
            self.is_checking = False

        if isinstance(result, Err):
            self.last_outcome = None
            return result

        outcome = CheckOutcome(filename=raw.strip(), extension=extension, is_blocked=result.data)
        self.last_outcome = outcome
        return Ok(outcome)

    async def unblock(self, extension: str) -> Result[dict[str, Any]]:
        """Look up which list holds ``extension`` and lift the block through it."""
        ext = normalize_extension(extension)
        self.is_unblocking = True
        try:
            kind = await self.store.classify_type(ext)
            if isinstance(kind, Err):
                return kind
            result = await self.store.unblock(ext, kind.data)
        except Exception:
            log.exception(f"Unblocking {ext!r} raised")
            return Err(kind=ErrorKind.AUTHORITY, message=UNBLOCK_FAILED_MESSAGE)
        finally:
            self.is_unblocking = False

        if isinstance(result, Err):
            return result

        if self.last_outcome is not None and self.last_outcome.extension == ext:
            self.last_outcome = replace(self.last_outcome, is_blocked=False)
        log.info(f"Unblocked {ext} via {kind.data} rule")
        return Ok({"extension": ext, "type": kind.data})
