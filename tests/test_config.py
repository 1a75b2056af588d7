"""
Tests for Configuration
=======================
"""

import pytest

from app.config import AgentSettings, BrowserbaseSettings, Settings, SlackSettings, validate_environment
from app.errors import ConfigurationError


class TestValidateEnvironment:
    def test_valid(self):
        validate_environment(Settings())

    def test_missing_api_key(self):
        settings = Settings()
        settings.browserbase = BrowserbaseSettings(browserbase_api_key="", browserbase_project_id="proj")

        with pytest.raises(ConfigurationError, match="BROWSERBASE_API_KEY"):
            validate_environment(settings)

    def test_missing_project_id(self):
        settings = Settings()
        settings.browserbase = BrowserbaseSettings(browserbase_api_key="key", browserbase_project_id="")

        with pytest.raises(ConfigurationError, match="BROWSERBASE_PROJECT_ID"):
            validate_environment(settings)


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.openai.computer_use_model == "computer-use-preview"
        assert settings.browserbase.viewport_width == 1024
        assert settings.browserbase.viewport_height == 768

    def test_slack_enabled_requires_both_values(self):
        assert SlackSettings(slack_bot_token="xoxb", slack_signing_secret="s").enabled
        assert not SlackSettings(slack_bot_token="xoxb", slack_signing_secret="").enabled

    def test_max_steps_cannot_be_negative(self):
        with pytest.raises(ValueError):
            AgentSettings(max_steps=-1)
