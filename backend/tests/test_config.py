"""
CallScreen - Configuration Tests

Run with: pytest tests/test_config.py -v
"""

import pytest

from callscreen.config import ScreeningConfig, Settings
from callscreen.core.decision import DEFAULT_NEGATIVE_RATINGS
from callscreen.core.exceptions import (
    CallScreenError,
    ConfigurationError,
    InvalidCallEventError,
    TelephonyDisabledError,
    TelephonyError,
    ValidationError,
)


class TestSettings:

    def test_defaults(self):
        config = Settings().screening_config()

        assert config.min_votes == 4
        assert config.negative_ratings == DEFAULT_NEGATIVE_RATINGS
        assert config.country_code == "49"
        assert config.timeout_seconds == 6.0
        assert config.notify_username == "3CX PhoneBlock"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PHONEBLOCK_MIN_VOTES", "7")
        monkeypatch.setenv("PHONEBLOCK_NEGATIVE_RATINGS", "g_fraud, ,e_advertising")
        monkeypatch.setenv("GENERIC_WEBHOOK_URL", "https://hooks.test/call")

        config = Settings().screening_config()

        assert config.min_votes == 7
        assert config.negative_ratings == frozenset({"G_FRAUD", "E_ADVERTISING"})
        assert config.compact_endpoint == "https://hooks.test/call"

    def test_blank_webhooks_disable_channels(self):
        config = Settings(discord_webhook_url="  ", generic_webhook_url="").screening_config()
        assert config.rich_endpoint is None
        assert config.compact_endpoint is None

    def test_api_base_trailing_slash(self):
        config = Settings(phoneblock_api_base="https://phoneblock.test/api/").screening_config()
        assert config.api_base == "https://phoneblock.test/api"

    def test_is_production(self):
        assert Settings(app_env="Production").is_production
        assert not Settings(app_env="testing").is_production


class TestScreeningConfig:

    def test_ratings_are_upper_cased(self):
        config = ScreeningConfig(api_base="x", bearer_token="t", negative_ratings=frozenset({"d_poll"}))
        assert config.negative_ratings == frozenset({"D_POLL"})

    @pytest.mark.parametrize(
        "overrides",
        [
            {"min_votes": -1},
            {"timeout_seconds": 0},
            {"country_code": "+49"},
        ],
    )
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ConfigurationError) as exc_info:
            ScreeningConfig(api_base="x", bearer_token="t", **overrides)

        assert exc_info.value.to_dict()["error"] == "CONFIGURATION_ERROR"

    def test_is_immutable(self):
        config = ScreeningConfig(api_base="x", bearer_token="t")
        with pytest.raises(AttributeError):
            config.min_votes = 1


class TestErrorTaxonomy:
    """Errors exist only for the HTTP and configuration boundaries."""

    def _all_subclasses(self, cls):
        found = set()
        for sub in cls.__subclasses__():
            found.add(sub)
            found |= self._all_subclasses(sub)
        return found

    def test_hierarchy(self):
        assert self._all_subclasses(CallScreenError) == {
            TelephonyError,
            TelephonyDisabledError,
            ValidationError,
            InvalidCallEventError,
            ConfigurationError,
        }

    @pytest.mark.parametrize(
        "error, code, status",
        [
            (InvalidCallEventError("bad body"), "INVALID_CALL_EVENT", 400),
            (TelephonyDisabledError("off"), "TELEPHONY_DISABLED", 503),
            (ConfigurationError("bad value"), "CONFIGURATION_ERROR", 500),
        ],
    )
    def test_codes_and_status(self, error, code, status):
        assert error.status_code == status
        assert error.to_dict() == {"error": code, "message": str(error), "details": {}}
