"""Session probe: is this page authenticated, or were we sent to the login page?

The target site exposes no inspectable token, so validity is observed from
where navigation ends up. The state is derived on every call and never cached.
"""

import logging
from typing import Any

from src.browser.actions import goto_and_settle
from src.browser.diagnostics import Diagnostics
from src.core.config import AccountConfig, SettlePolicy
from src.core.schemas import AuthState

logger = logging.getLogger(__name__)


def is_login_url(url: str, account: AccountConfig) -> bool:
    """True if ``url`` starts with the account's login page URL."""
    return url.startswith(account.login_url)


def auth_state_of(page: Any, account: AccountConfig) -> AuthState:
    """Passive check of the page's current URL. No navigation."""
    if is_login_url(page.url, account):
        return AuthState.AT_LOGIN
    return AuthState.AUTHENTICATED


async def check_auth(
    page: Any,
    account: AccountConfig,
    policy: SettlePolicy,
    diagnostics: Diagnostics | None = None,
) -> AuthState:
    """Navigate to the landing page, settle, and report where we ended up.

    Navigation errors propagate to the caller.
    """
    await goto_and_settle(page, account.landing_url, policy)
    if diagnostics is not None:
        await diagnostics.screenshot(page, "page_for_login_check")
    state = auth_state_of(page, account)
    logger.debug("Auth probe for '%s': %s (%s)", account.id, state.value, page.url)
    return state
