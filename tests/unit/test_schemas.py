"""Tests for core schemas: CookieRecord, AuthState, SESSION_INVALID, MetricReading."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from src.core.schemas import (
    COOKIE_JAR_ADAPTER,
    SESSION_INVALID,
    AuthState,
    CookieRecord,
    MetricReading,
)


def _browser_cookie(**overrides: object) -> dict[str, object]:
    cookie: dict[str, object] = {
        "name": "_zendesk_session",
        "value": "abc",
        "domain": "acme.zendesk.com",
        "path": "/",
        "expires": 1767225600.5,
        "httpOnly": True,
        "secure": True,
        "sameSite": "Lax",
    }
    cookie.update(overrides)
    return cookie


class TestCookieRecord:
    def test_parses_browser_shape(self) -> None:
        c = CookieRecord.model_validate(_browser_cookie())
        assert c.http_only is True
        assert c.same_site == "Lax"
        assert c.expires == 1767225600.5

    def test_to_browser_uses_camel_case(self) -> None:
        c = CookieRecord.model_validate(_browser_cookie())
        assert c.to_browser() == _browser_cookie()

    def test_extra_browser_keys_ignored(self) -> None:
        c = CookieRecord.model_validate(_browser_cookie(partitionKey="x"))
        assert "partitionKey" not in c.to_browser()

    def test_session_cookie_defaults(self) -> None:
        c = CookieRecord(name="a", value="b", domain="x.com")
        assert c.expires == -1
        assert c.path == "/"
        assert c.secure is False

    def test_invalid_same_site(self) -> None:
        with pytest.raises(ValidationError):
            CookieRecord.model_validate(_browser_cookie(sameSite="Sometimes"))

    def test_hashable_for_set_comparison(self) -> None:
        a = CookieRecord.model_validate(_browser_cookie())
        b = CookieRecord.model_validate(_browser_cookie())
        assert {a} == {b}

    def test_jar_adapter(self) -> None:
        jar = COOKIE_JAR_ADAPTER.validate_python([_browser_cookie(), _browser_cookie(name="b")])
        assert [c.name for c in jar] == ["_zendesk_session", "b"]


class TestAuthState:
    def test_values(self) -> None:
        assert AuthState.AUTHENTICATED.value == "authenticated"
        assert AuthState.AT_LOGIN.value == "at_login"


class TestSessionInvalid:
    def test_falsy_and_not_a_string(self) -> None:
        assert not SESSION_INVALID
        assert not isinstance(SESSION_INVALID, str)
        assert SESSION_INVALID != ""

    def test_singleton(self) -> None:
        assert type(SESSION_INVALID)() is SESSION_INVALID

    def test_repr(self) -> None:
        assert repr(SESSION_INVALID) == "SESSION_INVALID"


class TestMetricReading:
    def test_defaults(self) -> None:
        r = MetricReading(target="t", account_id="acme", url="https://x/", value="42")
        assert r.status == "ok"
        assert isinstance(r.scraped_at, datetime)

    def test_session_invalid_has_no_value(self) -> None:
        r = MetricReading(target="t", account_id="acme", url="https://x/", status="session_invalid")
        assert r.value is None

    def test_frozen(self) -> None:
        r = MetricReading(target="t", account_id="acme", url="https://x/", value="1")
        with pytest.raises(ValidationError):
            r.value = "2"  # type: ignore[misc]
