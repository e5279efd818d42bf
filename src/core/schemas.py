"""Core data models: cookies, auth state, scrape results."""

import enum
from datetime import datetime
from typing import Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class CookieRecord(BaseModel):
    """One browser cookie, in the shape the browser context reports it.

    Frozen (and therefore hashable) so jars can be compared as sets.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    value: str
    domain: str
    path: str = "/"
    expires: float = -1
    http_only: bool = Field(default=False, alias="httpOnly")
    secure: bool = False
    same_site: Literal["Strict", "Lax", "None"] = Field(default="Lax", alias="sameSite")

    def to_browser(self) -> dict[str, Any]:
        """Dict with the browser's camelCase keys, ready for add_cookies()."""
        return self.model_dump(by_alias=True)


CookieJar = list[CookieRecord]

COOKIE_JAR_ADAPTER: TypeAdapter[list[CookieRecord]] = TypeAdapter(list[CookieRecord])


class AuthState(enum.Enum):
    """Derived from the page URL on demand. Never cached."""

    AUTHENTICATED = "authenticated"
    AT_LOGIN = "at_login"


class _SessionInvalid:
    """Sentinel returned by scrape() when the server logged us out."""

    _instance: "_SessionInvalid | None" = None

    def __new__(cls) -> "_SessionInvalid":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "SESSION_INVALID"


SESSION_INVALID: Final = _SessionInvalid()

ScrapeResult = str | _SessionInvalid


class MetricReading(BaseModel):
    """Outcome of one scrape target within a run."""

    model_config = ConfigDict(frozen=True)

    target: str
    account_id: str
    url: str
    value: str | None = None
    status: Literal["ok", "session_invalid"] = "ok"
    scraped_at: datetime = Field(default_factory=datetime.now)
