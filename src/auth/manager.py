"""Session manager: reuse a stored cookie jar, log in only when it has gone stale.

Data flow:
  1. Start a fresh browser session
  2. Inject the account's stored cookies, if any
  3. Probe the landing page
  4. Authenticated -> return (fast path)
  5. At login -> one LoginFlow attempt, persist cookies, return
"""

import logging
from collections.abc import Callable

from pydantic import ValidationError

from src.auth.login import LoginFlow
from src.auth.probe import check_auth
from src.browser.cookie_store import CookieStore
from src.browser.diagnostics import Diagnostics
from src.browser.session import BrowserSession
from src.core.config import AccountConfig, BrowserConfig, SettlePolicy
from src.core.schemas import AuthState

logger = logging.getLogger(__name__)

SessionFactory = Callable[[AccountConfig], BrowserSession]


class SessionManager:
    """Hands out authenticated browser sessions, one per call.

    The caller owns the returned session and must close it.

    Usage::

        manager = SessionManager(browser_cfg, settle_policy, store, login_flow, diagnostics)
        session = await manager.acquire_session(account)
        try:
            ...
        finally:
            await session.close()
    """

    def __init__(
        self,
        browser_config: BrowserConfig,
        policy: SettlePolicy,
        cookie_store: CookieStore,
        login_flow: LoginFlow,
        diagnostics: Diagnostics,
        *,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self._browser_config = browser_config
        self._policy = policy
        self._cookie_store = cookie_store
        self._login_flow = login_flow
        self._diagnostics = diagnostics
        self._session_factory = session_factory or self._default_factory
        self.login_count = 0

    def _default_factory(self, account: AccountConfig) -> BrowserSession:
        return BrowserSession(self._browser_config, account_id=account.id)

    async def acquire_session(self, account: AccountConfig) -> BrowserSession:
        """Return a started session believed to be authenticated.

        Raises:
            AuthFailure: The single login attempt was rejected.
            ValueError: Credentials are not configured.
        On any error the browser is closed before the exception propagates.
        """
        session = self._session_factory(account)
        await session.start()
        try:
            await self._authenticate(session, account)
        except BaseException:
            await session.close()
            raise
        return session

    async def _authenticate(self, session: BrowserSession, account: AccountConfig) -> None:
        jar = self._cookie_store.load(account.id)
        if jar:
            await session.add_cookies(jar)

        state = await check_auth(session.page, account, self._policy, self._diagnostics)
        if state is AuthState.AUTHENTICATED:
            logger.info("Already logged in to '%s' via cookies", account.id)
            return

        logger.info("Not logged in to '%s', proceeding with login", account.id)
        self.login_count += 1
        await self._login_flow.perform(session.page, account)

        try:
            jar = await session.cookies()
        except ValidationError as e:
            logger.warning("Could not capture cookies for '%s': %s", account.id, e)
            return
        self._cookie_store.save(account.id, jar)
