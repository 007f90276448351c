from family_activities.configs.settings import Settings, get_settings


def test_settings_default_values():
    """Test default values for settings."""
    settings = Settings(_env_file=None)
    assert settings.ENV == "development"
    assert settings.DEBUG is False
    assert settings.LOG_LEVEL == "INFO"
    assert settings.MAX_EVENT_BLOCKS == 15


def test_normalization_defaults():
    """Test the Seattle-area normalization defaults."""
    settings = Settings(_env_file=None)
    assert settings.DEFAULT_CITY == "Seattle"
    assert settings.DEFAULT_STATE == "WA"
    assert settings.DEFAULT_REGION == "Seattle Metro"
    assert settings.DEFAULT_TIMEZONE == "America/Los_Angeles"
    assert settings.DEFAULT_CURRENCY == "USD"


def test_env_prefix(monkeypatch):
    """Test that ACTIVITY_-prefixed environment variables override defaults."""
    monkeypatch.setenv("ACTIVITY_MAX_EVENT_BLOCKS", "3")
    monkeypatch.setenv("ACTIVITY_DEFAULT_CITY", "Tacoma")
    monkeypatch.setenv("ACTIVITY_JSON_LOGS", "true")
    settings = Settings(_env_file=None)
    assert settings.MAX_EVENT_BLOCKS == 3
    assert settings.DEFAULT_CITY == "Tacoma"
    assert settings.JSON_LOGS is True


def test_paths():
    """Test that paths are correctly resolved."""
    settings = Settings(_env_file=None)
    assert settings.BASE_DIR.name == "family_activities"
    assert settings.EXTRACTION_CONFIG_PATH.name == "extraction.yaml"
    assert settings.EXTRACTION_CONFIG_PATH.exists()


def test_get_settings_cached():
    """Test that get_settings returns a singleton."""
    assert get_settings() is get_settings()
