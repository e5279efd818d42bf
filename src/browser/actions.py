"""Reusable browser actions: settling a page after navigation.

Design rules:
  - Never inspect page state straight after goto()/click(). Settle first.
  - All waits go through the page (wait_for_timeout / wait_for_load_state)
    so a fake page can record them instead of sleeping.
"""

import logging
from typing import Any

from src.core.config import SettlePolicy

logger = logging.getLogger(__name__)


async def settle(page: Any, policy: SettlePolicy, *, extra_ms: int = 0) -> None:
    """Wait for redirects, the load event and a grace period, in that order.

    Args:
        page: Browser page object (patchright Page or mock).
        policy: Wait durations and which load state to wait for.
        extra_ms: Added to the grace period (e.g. for heavy post-login pages).
    """
    await page.wait_for_timeout(policy.redirect_wait_ms)
    await page.wait_for_load_state(policy.load_state)
    grace = policy.grace_ms + max(extra_ms, 0)
    await page.wait_for_timeout(grace)
    logger.debug("Page settled at %s (grace %d ms)", page.url, grace)


async def goto_and_settle(
    page: Any,
    url: str,
    policy: SettlePolicy,
    *,
    extra_ms: int = 0,
) -> None:
    """Navigate and settle. Navigation errors propagate."""
    logger.debug("Navigating to %s", url)
    await page.goto(url)
    await settle(page, policy, extra_ms=extra_ms)
