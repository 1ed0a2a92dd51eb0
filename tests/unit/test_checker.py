"""Unit tests for the file-name check / unblock workflow."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from extguard.results import Err, ErrorKind, Ok
from extguard.services.checker import (
    CHECK_FAILED_MESSAGE,
    CheckOutcome,
    ExtensionChecker,
)
from extguard.services.classifier import ValidationReason

pytestmark = pytest.mark.anyio


@pytest.fixture
def mock_store():
    store = MagicMock()
    store.check = AsyncMock()
    store.classify_type = AsyncMock()
    store.unblock = AsyncMock()
    return store


@pytest.fixture
def checker(mock_store):
    return ExtensionChecker(mock_store)


class TestCheck:
    async def test_file_name_is_checked_by_extension(self, checker, mock_store):
        mock_store.check.return_value = Ok(True)

        result = await checker.check("virus.exe")

        mock_store.check.assert_awaited_once_with("exe")
        assert result == Ok(CheckOutcome(filename="virus.exe", extension="exe", is_blocked=True))
        assert checker.last_outcome.is_blocked is True

    async def test_case_is_normalized(self, checker, mock_store):
        mock_store.check.return_value = Ok(False)
        await checker.check("Document.PDF")
        mock_store.check.assert_awaited_once_with("pdf")

    async def test_last_extension_of_multi_dot_name(self, checker, mock_store):
        mock_store.check.return_value = Ok(False)
        await checker.check("archive.tar.gz")
        mock_store.check.assert_awaited_once_with("gz")

    async def test_bare_extension(self, checker, mock_store):
        mock_store.check.return_value = Ok(True)
        await checker.check("exe")
        mock_store.check.assert_awaited_once_with("exe")

    @pytest.mark.parametrize(
        "raw, reason",
        [
            ("", ValidationReason.EMPTY_INPUT),
            ("   ", ValidationReason.EMPTY_INPUT),
            ("file.", ValidationReason.TRAILING_DOT),
            ("file." + "a" * 21, ValidationReason.TOO_LONG),
        ],
    )
    async def test_invalid_input_never_reaches_store(self, checker, mock_store, raw, reason):
        result = await checker.check(raw)

        assert isinstance(result, Err)
        assert result.reason is reason
        mock_store.check.assert_not_awaited()

    async def test_store_error_is_passed_through(self, checker, mock_store):
        mock_store.check.return_value = Err(kind=ErrorKind.AUTHORITY, message="server error")

        result = await checker.check("test.ext")

        assert result == Err(kind=ErrorKind.AUTHORITY, message="server error")
        assert checker.last_outcome is None

    async def test_unexpected_exception_becomes_failure_message(self, checker, mock_store):
        mock_store.check.side_effect = RuntimeError("boom")

        result = await checker.check("test.ext")

        assert isinstance(result, Err)
        assert result.message == CHECK_FAILED_MESSAGE
        assert checker.is_checking is False

    async def test_is_checking_while_awaiting(self, checker, mock_store):
        seen = []

        async def check(_):
            seen.append(checker.is_checking)
            return Ok(False)

        mock_store.check.side_effect = check
        await checker.check("test.ext")

        assert seen == [True]
        assert checker.is_checking is False


class TestUnblock:
    async def test_fixed_extension(self, checker, mock_store):
        mock_store.classify_type.return_value = Ok("fixed")
        mock_store.unblock.return_value = Ok("fixed")

        result = await checker.unblock("exe")

        mock_store.classify_type.assert_awaited_once_with("exe")
        mock_store.unblock.assert_awaited_once_with("exe", "fixed")
        assert result == Ok({"extension": "exe", "type": "fixed"})

    async def test_custom_extension(self, checker, mock_store):
        mock_store.classify_type.return_value = Ok("custom")
        mock_store.unblock.return_value = Ok("custom")

        result = await checker.unblock("custom")

        mock_store.unblock.assert_awaited_once_with("custom", "custom")
        assert result.data == {"extension": "custom", "type": "custom"}

    async def test_outcome_flips_to_allowed(self, checker, mock_store):
        mock_store.check.return_value = Ok(True)
        mock_store.classify_type.return_value = Ok("fixed")
        mock_store.unblock.return_value = Ok("fixed")

        await checker.check("blocked.exe")
        await checker.unblock("exe")

        assert checker.last_outcome.is_blocked is False

    async def test_unknown_extension_is_not_unblocked(self, checker, mock_store):
        mock_store.classify_type.return_value = Err(kind=ErrorKind.NOT_FOUND, message="missing")

        result = await checker.unblock("jpg")

        assert isinstance(result, Err)
        mock_store.unblock.assert_not_awaited()

    async def test_unblock_failure_is_reported(self, checker, mock_store):
        mock_store.classify_type.return_value = Ok("fixed")
        mock_store.unblock.return_value = Err(kind=ErrorKind.AUTHORITY, message="unblock failed")

        result = await checker.unblock("exe")

        assert result.message == "unblock failed"
        assert checker.is_unblocking is False
