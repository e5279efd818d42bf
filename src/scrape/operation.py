"""Read one element's text from a page behind the login.

Outcomes:
  - text           the element's textContent, verbatim
  - SESSION_INVALID we were redirected to login (expected; re-acquire)
  - ElementNotFound page loaded, session fine, element never showed (raise)
"""

import logging
from typing import Any

from patchright.async_api import TimeoutError as PlaywrightTimeoutError

from src.auth.probe import auth_state_of
from src.browser.actions import goto_and_settle
from src.browser.diagnostics import Diagnostics
from src.core.config import AccountConfig, SettlePolicy
from src.core.errors import ElementNotFound
from src.core.schemas import SESSION_INVALID, AuthState, ScrapeResult

logger = logging.getLogger(__name__)


async def scrape(
    page: Any,
    account: AccountConfig,
    url: str,
    selector: str,
    timeout_ms: int,
    *,
    policy: SettlePolicy,
    diagnostics: Diagnostics,
) -> ScrapeResult:
    """Navigate to ``url`` and return the text of ``selector``.

    The session is left open in every outcome; closing it is the caller's job.
    """
    await goto_and_settle(page, url, policy)
    await diagnostics.screenshot(page, "redirect_destination")

    if auth_state_of(page, account) is AuthState.AT_LOGIN:
        logger.warning("Logged out of '%s' while opening %s", account.id, url)
        return SESSION_INVALID

    try:
        element = await page.wait_for_selector(selector, timeout=timeout_ms)
    except PlaywrightTimeoutError as e:
        logger.error("Selector '%s' not found on '%s'", selector, url)
        await diagnostics.capture(page, "error", html=True)
        raise ElementNotFound(url, selector, timeout_ms) from e

    text = await element.text_content() if element is not None else None
    logger.debug("Scraped %r from %s", text, url)
    return text or ""
