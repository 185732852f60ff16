"""Tests for environment configuration."""

from pathlib import Path

from reelboard import config


class TestEnvNormalization:
    """Test placeholder and blank handling."""

    def test_blank_and_placeholder_values_are_unset(self, monkeypatch):
        for value in ("", "  ", "none", "null", "your_path_here", '""'):
            monkeypatch.setenv("REELBOARD_DB_PATH", value)
            assert config.get_db_path() == config.DEFAULT_DB_PATH

    def test_quotes_stripped(self, monkeypatch):
        monkeypatch.setenv("REELBOARD_DB_PATH", "'/tmp/board.db'")
        assert config.get_db_path() == Path("/tmp/board.db")

    def test_memory_db_passed_through(self, monkeypatch):
        monkeypatch.setenv("REELBOARD_DB_PATH", ":memory:")
        assert str(config.get_db_path()) == ":memory:"


class TestSettings:
    """Test typed getters."""

    def test_cors_origins_split(self, monkeypatch):
        monkeypatch.setenv("REELBOARD_CORS_ORIGINS", "https://a.example, https://b.example,")
        assert config.get_cors_origins() == ["https://a.example", "https://b.example"]

    def test_cors_default(self, monkeypatch):
        monkeypatch.delenv("REELBOARD_CORS_ORIGINS", raising=False)
        assert config.get_cors_origins() == list(config.DEFAULT_CORS_ORIGINS)

    def test_http_timeout(self, monkeypatch):
        monkeypatch.setenv("REELBOARD_HTTP_TIMEOUT", "30")
        assert config.get_http_timeout() == 30.0

        monkeypatch.setenv("REELBOARD_HTTP_TIMEOUT", "soon")
        assert config.get_http_timeout() == config.DEFAULT_HTTP_TIMEOUT
