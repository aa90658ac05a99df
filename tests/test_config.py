"""Tests for environment-driven settings."""

from flowbuilder.config import DEFAULT_NAMESPACE
from flowbuilder.config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("FLOWBUILDER_CONFIG", "FLOWBUILDER_NAMESPACE", "FLOWBUILDER_LEFT_DELIM", "FLOWBUILDER_RIGHT_DELIM"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings.from_env()
        assert settings.config_path is None
        assert settings.namespace == DEFAULT_NAMESPACE
        assert (settings.left_delim, settings.right_delim) == ("{{", "}}")

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("FLOWBUILDER_CONFIG", "/etc/flowbuilder.yaml")
        monkeypatch.setenv("FLOWBUILDER_NAMESPACE", "edge")
        monkeypatch.setenv("FLOWBUILDER_LEFT_DELIM", "[[")
        monkeypatch.setenv("FLOWBUILDER_RIGHT_DELIM", "]]")
        settings = Settings.from_env()
        assert settings.config_path == "/etc/flowbuilder.yaml"
        assert settings.namespace == "edge"
        assert (settings.left_delim, settings.right_delim) == ("[[", "]]")
