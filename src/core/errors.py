"""Exception taxonomy for session acquisition and scraping.

An invalidated session mid-scrape is *not* an exception; see
``src.core.schemas.SESSION_INVALID``.
"""


class ScraperError(Exception):
    """Base class for errors raised by the scraper core."""


class AuthFailure(ScraperError):
    """Credentials or 2FA code rejected. Needs a human before retrying."""

    def __init__(self, account_id: str, message: str, *, url: str | None = None) -> None:
        self.account_id = account_id
        self.url = url
        detail = f"[{account_id}] {message}"
        if url:
            detail += f" (still at {url})"
        super().__init__(detail)


class ElementNotFound(ScraperError):
    """Page loaded with a valid session but the expected element never appeared."""

    def __init__(self, url: str, selector: str, timeout_ms: int) -> None:
        self.url = url
        self.selector = selector
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Selector '{selector}' not found on '{url}' within {timeout_ms} ms",
        )
