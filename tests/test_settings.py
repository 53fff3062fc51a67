"""
Tests for RetouchSettings.
"""

from pathlib import Path

import pytest

from RS_Libs.settings import RetouchSettings


class TestRetouchSettings:
    """Tests for RetouchSettings dataclass."""

    def test_defaults(self):
        settings = RetouchSettings()

        assert settings.model == "gemini-2.5-flash-image"
        assert settings.max_retries == 2
        assert settings.cooldown_seconds == 60
        assert not settings.has_api_key

    def test_validation(self):
        with pytest.raises(ValueError):
            RetouchSettings(max_retries=0)
        with pytest.raises(ValueError):
            RetouchSettings(cooldown_seconds=-5)

    def test_from_env(self):
        settings = RetouchSettings.from_env({
            "API_KEY": "abc",
            "RETOUCH_MODEL": "custom-model",
            "RETOUCH_OUTPUT_DIR": "/tmp/out",
            "RETOUCH_LOG_LEVEL": "debug",
        })

        assert settings.api_key == "abc"
        assert settings.has_api_key
        assert settings.model == "custom-model"
        assert settings.output_path == Path("/tmp/out")
        assert settings.log_level == "DEBUG"

    def test_from_env_falls_back_to_gemini_key(self):
        settings = RetouchSettings.from_env({"GEMINI_API_KEY": "xyz"})

        assert settings.api_key == "xyz"

    def test_undefined_key_is_unset(self):
        assert not RetouchSettings(api_key="undefined").has_api_key

    def test_to_dict_hides_api_key(self):
        data = RetouchSettings(api_key="secret").to_dict()

        assert data["api_key"] is None
        assert data["model"] == "gemini-2.5-flash-image"

    def test_from_dict_ignores_unknown_keys(self):
        settings = RetouchSettings.from_dict({"model": "m", "output_dir": "out", "extra": 1})

        assert settings.model == "m"
        assert settings.output_dir == "out"
