"""Tests for the scrape operation: text, SESSION_INVALID, ElementNotFound."""

from unittest.mock import AsyncMock

import pytest
from patchright.async_api import TimeoutError as PlaywrightTimeoutError

from src.core.config import DEFAULT_COUNTER_SELECTOR, AccountConfig, SettlePolicy
from src.core.errors import ElementNotFound
from src.core.schemas import SESSION_INVALID
from src.scrape.operation import scrape

ACCOUNT = AccountConfig(id="acme", subdomain="acme", username_env="E", password_env="P")
TARGET = "https://dashboard.ultimate.ai/bot/abc/conversations?startDate=2026-01-08"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_page(
    *,
    lands_on: str | None = None,
    counter_text: str | None = "1,234",
    element_missing: bool = False,
) -> AsyncMock:
    page = AsyncMock()
    page.url = "https://acme.zendesk.com/agent"

    async def _goto(url: str) -> None:
        page.url = lands_on or url

    page.goto = AsyncMock(side_effect=_goto)

    if element_missing:
        page.wait_for_selector = AsyncMock(
            side_effect=PlaywrightTimeoutError("Timeout 8000ms exceeded."),
        )
    else:
        element = AsyncMock()
        element.text_content = AsyncMock(return_value=counter_text)
        page.wait_for_selector = AsyncMock(return_value=element)
    return page


async def _scrape(
    page: AsyncMock,
    diagnostics: AsyncMock | None = None,
    timeout_ms: int = 8000,
) -> object:
    return await scrape(
        page, ACCOUNT, TARGET, DEFAULT_COUNTER_SELECTOR, timeout_ms,
        policy=SettlePolicy(), diagnostics=diagnostics or AsyncMock(),
    )


# ---------------------------------------------------------------------------
# TestSuccess
# ---------------------------------------------------------------------------


class TestSuccess:
    async def test_returns_text_verbatim(self) -> None:
        page = _make_page(counter_text="  1,234 conversations\n")
        assert await _scrape(page) == "  1,234 conversations\n"

    async def test_waits_for_selector_with_timeout(self) -> None:
        page = _make_page()
        await _scrape(page, timeout_ms=5000)
        page.wait_for_selector.assert_awaited_once_with(DEFAULT_COUNTER_SELECTOR, timeout=5000)

    async def test_settles_before_checking(self) -> None:
        page = _make_page()
        order: list[str] = []
        page.wait_for_load_state = AsyncMock(side_effect=lambda state: order.append("load"))
        element = AsyncMock()
        element.text_content = AsyncMock(return_value="7")

        def _wait_for_selector(selector: str, *, timeout: int) -> AsyncMock:
            order.append("selector")
            return element

        page.wait_for_selector = AsyncMock(side_effect=_wait_for_selector)
        await _scrape(page)
        assert order == ["load", "selector"]

    async def test_empty_text_content(self) -> None:
        page = _make_page(counter_text=None)
        assert await _scrape(page) == ""


# ---------------------------------------------------------------------------
# TestSessionInvalid
# ---------------------------------------------------------------------------


class TestSessionInvalid:
    async def test_redirect_to_login_returns_sentinel(self) -> None:
        page = _make_page(lands_on="https://acme.zendesk.com/auth/v2/login/signin")
        assert await _scrape(page) is SESSION_INVALID

    async def test_no_selector_wait_when_logged_out(self) -> None:
        page = _make_page(lands_on="https://acme.zendesk.com/auth/v2/login/signin")
        await _scrape(page)
        page.wait_for_selector.assert_not_awaited()


# ---------------------------------------------------------------------------
# TestElementNotFound
# ---------------------------------------------------------------------------


class TestElementNotFound:
    async def test_timeout_raises_element_not_found(self) -> None:
        page = _make_page(element_missing=True)
        with pytest.raises(ElementNotFound) as exc_info:
            await _scrape(page)
        assert exc_info.value.url == TARGET
        assert exc_info.value.selector == DEFAULT_COUNTER_SELECTOR
        assert exc_info.value.timeout_ms == 8000
        assert isinstance(exc_info.value.__cause__, PlaywrightTimeoutError)

    async def test_diagnostics_captured_before_raising(self) -> None:
        page = _make_page(element_missing=True)
        diagnostics = AsyncMock()
        with pytest.raises(ElementNotFound):
            await _scrape(page, diagnostics)
        diagnostics.capture.assert_awaited_once_with(page, "error", html=True)

    async def test_session_left_open(self) -> None:
        page = _make_page(element_missing=True)
        with pytest.raises(ElementNotFound):
            await _scrape(page)
        page.close.assert_not_awaited()

    async def test_navigation_error_propagates_unchanged(self) -> None:
        page = _make_page()
        page.goto = AsyncMock(side_effect=RuntimeError("net::ERR_ABORTED"))
        with pytest.raises(RuntimeError, match="ERR_ABORTED"):
            await _scrape(page)
