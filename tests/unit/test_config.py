"""Unit tests for configuration management."""

import pytest

from src.utils.config import Config

CONFIG_VARS = [
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "TEMPERATURE",
    "MAX_OUTPUT_TOKENS",
    "BATCH_SIZE",
    "BATCH_COUNT",
    "UPSTREAM_TIMEOUT_SECONDS",
    "STREAM_DELAY_MS",
    "PORT",
    "CORS_ORIGINS",
    "DATABASE_URL",
    "STORE_DB_FILE",
    "IN_MEMORY_STORE",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in CONFIG_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestConfigInitialization:
    """Test Config class initialization and environment variable loading."""

    def test_config_loads_default_values(self, clean_env):
        """Test that Config uses default values when env vars not set."""
        config = Config()

        assert config.GEMINI_API_KEY == ""
        assert config.GEMINI_MODEL == "gemini-2.5-flash"
        assert config.TEMPERATURE == 0.8
        assert config.MAX_OUTPUT_TOKENS == 2000
        assert config.BATCH_SIZE == 3
        assert config.BATCH_COUNT == 2
        assert config.UPSTREAM_TIMEOUT_SECONDS is None
        assert config.STREAM_DELAY_MS == 0
        assert config.PORT == 7777
        assert config.CORS_ORIGINS == ["*"]
        assert config.DATABASE_URL is None
        assert config.IN_MEMORY_STORE is False

    def test_config_loads_from_environment(self, clean_env):
        """Test that Config loads values from environment variables."""
        clean_env.setenv("GEMINI_API_KEY", "test_gemini_key")
        clean_env.setenv("GEMINI_MODEL", "custom-model")
        clean_env.setenv("TEMPERATURE", "0.3")
        clean_env.setenv("MAX_OUTPUT_TOKENS", "4096")
        clean_env.setenv("BATCH_SIZE", "2")
        clean_env.setenv("BATCH_COUNT", "4")
        clean_env.setenv("UPSTREAM_TIMEOUT_SECONDS", "12.5")
        clean_env.setenv("STREAM_DELAY_MS", "100")
        clean_env.setenv("PORT", "8888")
        clean_env.setenv("IN_MEMORY_STORE", "yes")

        config = Config()

        assert config.GEMINI_API_KEY == "test_gemini_key"
        assert config.GEMINI_MODEL == "custom-model"
        assert config.TEMPERATURE == 0.3
        assert config.MAX_OUTPUT_TOKENS == 4096
        assert config.BATCH_SIZE == 2
        assert config.BATCH_COUNT == 4
        assert config.UPSTREAM_TIMEOUT_SECONDS == 12.5
        assert config.STREAM_DELAY_MS == 100
        assert config.PORT == 8888
        assert config.IN_MEMORY_STORE is True

    def test_cors_origins_are_split_and_trimmed(self, clean_env):
        """Test that CORS_ORIGINS is split on commas and trimmed."""
        clean_env.setenv("CORS_ORIGINS", "http://localhost:3000, https://recipes.example.com ,")

        config = Config()

        assert config.CORS_ORIGINS == ["http://localhost:3000", "https://recipes.example.com"]


class TestDerivedValues:
    """Test computed configuration properties."""

    def test_total_recipes(self, clean_env):
        """Test that total_recipes is batch size times batch count."""
        assert Config().total_recipes == 6

        clean_env.setenv("BATCH_COUNT", "3")
        assert Config().total_recipes == 9

    def test_database_url_defaults_to_sqlite_file(self, clean_env):
        """Test that the store defaults to a SQLite file URL."""
        clean_env.setenv("STORE_DB_FILE", "data/store.db")

        assert Config().database_url == "sqlite:///data/store.db"

    def test_database_url_prefers_explicit_url(self, clean_env):
        """Test that DATABASE_URL wins over the SQLite file."""
        clean_env.setenv("DATABASE_URL", "postgresql://user:pass@db:5432/recipes")

        assert Config().database_url == "postgresql://user:pass@db:5432/recipes"


class TestConfigValidation:
    """Test Config validation logic."""

    def test_validate_accepts_defaults(self, clean_env):
        """Test that default values pass validation."""
        Config().validate()

    def test_validate_does_not_require_api_key(self, clean_env):
        """The service starts without a key; generation reports it per request."""
        config = Config()

        config.validate()
        assert config.GEMINI_API_KEY == ""

    @pytest.mark.parametrize(
        "name,value,fragment",
        [
            ("TEMPERATURE", "2.5", "TEMPERATURE"),
            ("TEMPERATURE", "-0.1", "TEMPERATURE"),
            ("MAX_OUTPUT_TOKENS", "100", "MAX_OUTPUT_TOKENS"),
            ("BATCH_SIZE", "0", "BATCH_SIZE"),
            ("BATCH_COUNT", "0", "BATCH_COUNT"),
            ("UPSTREAM_TIMEOUT_SECONDS", "-1", "UPSTREAM_TIMEOUT_SECONDS"),
            ("STREAM_DELAY_MS", "-5", "STREAM_DELAY_MS"),
        ],
    )
    def test_validate_rejects_out_of_range_values(self, clean_env, name, value, fragment):
        """Test that validate() rejects out-of-range values."""
        clean_env.setenv(name, value)

        with pytest.raises(ValueError) as exc:
            Config().validate()
        assert fragment in str(exc.value)

    def test_require_api_key_raises_when_missing(self, clean_env):
        """Test that require_api_key() raises ValueError without a key."""
        with pytest.raises(ValueError) as exc:
            Config().require_api_key()
        assert "GEMINI_API_KEY" in str(exc.value)

    def test_require_api_key_returns_key(self, clean_env):
        """Test that require_api_key() returns the configured key."""
        clean_env.setenv("GEMINI_API_KEY", "abc")

        assert Config().require_api_key() == "abc"
