"""Configuration models and YAML loader for the dashboard metric scraper."""

import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_COUNTER_SELECTOR = '[data-tour-id="conversation__conversation-counter"]'

_ACCOUNT_ID_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class SettlePolicy(BaseModel):
    """How long to wait for a page to settle after navigation.

    redirect wait -> load event -> grace period (client-side rendering).
    """

    redirect_wait_ms: int = Field(default=500, ge=0)
    load_state: Literal["load", "domcontentloaded", "networkidle"] = "load"
    grace_ms: int = Field(default=500, ge=0)
    post_login_extra_ms: int = Field(default=2000, ge=0)


class BrowserConfig(BaseModel):
    """Browser session configuration."""

    headless: bool = True
    timeout_ms: int = Field(default=30000, ge=1000)
    cookies_dir: str = "cache"


class DiagnosticsConfig(BaseModel):
    """Where screenshots and HTML dumps go."""

    enabled: bool = True
    screenshots_dir: str = "screenshots"
    html_dir: str = "html_pages"


class AccountConfig(BaseModel):
    """One target account on a password + 2FA protected site.

    Credentials are never stored here, only the names of the environment
    variables that hold them.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    subdomain: str
    base_url: str | None = None
    username_env: str
    password_env: str
    login_path: str = "/auth"
    landing_path: str = "/agent"
    post_login_path: str | None = None
    email_selector: str = 'input[type="email"]'
    password_selector: str = 'input[type="password"]'
    submit_selector: str = '[type="submit"]'
    two_factor_selector: str = "input"
    two_factor_button_name: str = "Verify"

    @field_validator("id")
    @classmethod
    def id_is_filename_safe(cls, v: str) -> str:
        if not _ACCOUNT_ID_RE.match(v):
            msg = "account id must be non-empty and contain only letters, digits, '.', '_' or '-'"
            raise ValueError(msg)
        return v

    @field_validator("subdomain", "username_env", "password_env")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "must not be empty"
            raise ValueError(msg)
        return v.strip()

    @property
    def root_url(self) -> str:
        if self.base_url:
            return self.base_url.rstrip("/")
        return f"https://{self.subdomain}.zendesk.com"

    @property
    def login_url(self) -> str:
        return self.root_url + self.login_path

    @property
    def landing_url(self) -> str:
        return self.root_url + self.landing_path

    @property
    def post_login_url(self) -> str:
        return self.root_url + (self.post_login_path or self.landing_path)


class ScrapeTarget(BaseModel):
    """A single page/element to read for an account."""

    name: str
    account_id: str
    url: str
    selector: str = DEFAULT_COUNTER_SELECTOR
    timeout_ms: int = Field(default=8000, ge=1)
    sheet_range: str | None = None

    def resolve_url(self, date: str) -> str:
        """Substitute the ``{date}`` placeholder, if present."""
        return self.url.replace("{date}", date)


class SheetsConfig(BaseModel):
    """Spreadsheet publishing configuration."""

    enabled: bool = False
    spreadsheet_id: str = ""
    credentials_path: str = "credentials.json"
    value_input_option: Literal["RAW", "USER_ENTERED"] = "USER_ENTERED"

    @model_validator(mode="after")
    def spreadsheet_required_when_enabled(self) -> "SheetsConfig":
        if self.enabled and not self.spreadsheet_id:
            msg = "spreadsheet_id is required when sheets publishing is enabled"
            raise ValueError(msg)
        return self


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    settle: SettlePolicy = Field(default_factory=SettlePolicy)
    diagnostics: DiagnosticsConfig = Field(default_factory=DiagnosticsConfig)
    accounts: list[AccountConfig] = Field(default_factory=list, validate_default=True)
    targets: list[ScrapeTarget] = Field(default_factory=list)
    sheets: SheetsConfig = Field(default_factory=SheetsConfig)
    max_session_reacquire: int = Field(default=1, ge=0)
    two_factor_timeout_s: float | None = Field(default=None, gt=0)

    @field_validator("accounts")
    @classmethod
    def at_least_one_account(cls, v: list[AccountConfig]) -> list[AccountConfig]:
        if not v:
            msg = "at least one account must be configured"
            raise ValueError(msg)
        ids = [a.id for a in v]
        if len(ids) != len(set(ids)):
            msg = "account ids must be unique"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def targets_reference_accounts(self) -> "Settings":
        known = {a.id for a in self.accounts}
        for target in self.targets:
            if target.account_id not in known:
                msg = f"target '{target.name}' references unknown account '{target.account_id}'"
                raise ValueError(msg)
        return self

    def account(self, account_id: str) -> AccountConfig:
        """Look up an account by id. Raises KeyError if unknown."""
        for account in self.accounts:
            if account.id == account_id:
                return account
        raise KeyError(account_id)

    def targets_for(self, account_id: str) -> list[ScrapeTarget]:
        return [t for t in self.targets if t.account_id == account_id]

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
