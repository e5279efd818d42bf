"""Interactive login: credentials, then an optional 2FA challenge.

Steps (each a suspension point):
  1. Open the login page (unless the probe already landed there)
  2. Fill email + password, submit, settle
  3. Still on the login page? That is the 2FA challenge: ask the code
     provider once, fill, click verify, settle
  4. Open the post-login page and confirm we are no longer at login

No automatic retries: a rejected password or code needs a human.
"""

import asyncio
import logging
import os
import threading
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from src.auth.probe import auth_state_of
from src.browser.actions import goto_and_settle, settle
from src.browser.diagnostics import Diagnostics
from src.core.config import AccountConfig, SettlePolicy
from src.core.errors import AuthFailure
from src.core.schemas import AuthState

logger = logging.getLogger(__name__)

CodeProvider = Callable[[AccountConfig], Awaitable[str]]


async def prompt_two_factor_code(account: AccountConfig) -> str:
    """Ask the operator for the 2FA code on the terminal.

    input() runs on a daemon thread so the browser's event loop keeps going.
    Nothing joins that thread: if the caller stops waiting (timeout), a
    still-blocked read cannot hold up interpreter shutdown.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[str] = loop.create_future()

    def _deliver(line: str | None, error: Exception | None) -> None:
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(line or "")

    def _read() -> None:
        try:
            line = input(f"2FA code for '{account.id}': ")
        except Exception as e:  # EOFError on a closed stdin
            result: tuple[str | None, Exception | None] = (None, e)
        else:
            result = (line, None)
        try:
            loop.call_soon_threadsafe(_deliver, *result)
        except RuntimeError:
            logger.debug("2FA prompt answered after the event loop closed")

    threading.Thread(target=_read, name="2fa-prompt", daemon=True).start()
    code = await future
    return code.strip()


def resolve_credentials(
    account: AccountConfig,
    source: Mapping[str, str],
) -> tuple[str, str]:
    """Look up (username, password) by the variable names the account declares.

    Raises:
        ValueError: If either variable is missing or empty.
    """
    missing = [
        name for name in (account.username_env, account.password_env)
        if not source.get(name)
    ]
    if missing:
        msg = f"Missing credential environment variable(s) for '{account.id}': {', '.join(missing)}"
        raise ValueError(msg)
    return source[account.username_env], source[account.password_env]


class LoginFlow:
    """Drives the login form for one account on an already-open page."""

    def __init__(
        self,
        policy: SettlePolicy,
        diagnostics: Diagnostics,
        *,
        code_provider: CodeProvider = prompt_two_factor_code,
        credentials: Mapping[str, str] | None = None,
        two_factor_timeout_s: float | None = None,
    ) -> None:
        self._policy = policy
        self._diagnostics = diagnostics
        self._code_provider = code_provider
        self._credentials = credentials
        self._two_factor_timeout_s = two_factor_timeout_s

    async def perform(self, page: Any, account: AccountConfig) -> None:
        """Log in on ``page``. Raises AuthFailure if we end up at login anyway."""
        source = self._credentials if self._credentials is not None else os.environ
        email, password = resolve_credentials(account, source)
        logger.info("Logging in to '%s' as %s", account.id, email)

        if auth_state_of(page, account) is not AuthState.AT_LOGIN:
            await goto_and_settle(page, account.login_url, self._policy)
        await self._diagnostics.screenshot(page, "login")

        await page.fill(account.email_selector, email)
        await page.fill(account.password_selector, password)
        await page.click(account.submit_selector)

        await settle(page, self._policy)
        await self._diagnostics.capture(page, "after_credentials", html=True)

        if auth_state_of(page, account) is AuthState.AT_LOGIN:
            logger.info("2FA required for '%s'", account.id)
            await self._submit_two_factor(page, account)

        await goto_and_settle(
            page,
            account.post_login_url,
            self._policy,
            extra_ms=self._policy.post_login_extra_ms,
        )
        await self._diagnostics.capture(page, "after_login", html=True)

        if auth_state_of(page, account) is AuthState.AT_LOGIN:
            raise AuthFailure(account.id, "login was not accepted", url=page.url)
        logger.info("Logged in to '%s'", account.id)

    async def _submit_two_factor(self, page: Any, account: AccountConfig) -> None:
        code = await self._request_code(account)
        await page.fill(account.two_factor_selector, code)
        await page.get_by_role("button", name=account.two_factor_button_name).click()
        await settle(page, self._policy)
        await self._diagnostics.screenshot(page, "after_2fa")

    async def _request_code(self, account: AccountConfig) -> str:
        if self._two_factor_timeout_s is None:
            return await self._code_provider(account)
        try:
            return await asyncio.wait_for(
                self._code_provider(account), timeout=self._two_factor_timeout_s,
            )
        except asyncio.TimeoutError:
            raise AuthFailure(
                account.id,
                f"no 2FA code entered within {self._two_factor_timeout_s:g}s",
            ) from None
