import pytest

import config


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    monkeypatch.setattr(config, "load_dotenv", lambda *a, **kw: False)
    for name in (
        "SUPABASE_URL",
        "SUPABASE_SECRET_KEY",
        "VENUES_CSV_URL",
        "GEMINI_API_KEY",
        "GEMINI_MODEL",
        "LLM_TIMEOUT_SECONDS",
        "GOOGLE_MAPS_API_KEY",
        "REGION_CITY",
        "USE_DRAFT_ON_EXTRACTION_FAILURE",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


def test_defaults():
    settings = config.get_settings()
    assert settings.region_city == "Atlanta"
    assert settings.gemini_model == "gemini-1.5-flash"
    assert settings.llm_timeout_seconds == 60.0
    assert settings.use_draft_on_extraction_failure is True
    assert settings.log_level == "INFO"
    assert settings.gemini_api_key == ""


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("REGION_CITY", "Austin")
    monkeypatch.setenv("LLM_TIMEOUT_SECONDS", "15")
    monkeypatch.setenv("USE_DRAFT_ON_EXTRACTION_FAILURE", "false")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("VENUES_CSV_URL", "https://sheets.example.com/export.csv")

    settings = config.get_settings()
    assert settings.region_city == "Austin"
    assert settings.llm_timeout_seconds == 15.0
    assert settings.use_draft_on_extraction_failure is False
    assert settings.log_level == "DEBUG"
    assert settings.venues_csv_url == "https://sheets.example.com/export.csv"


def test_missing_keys_are_logged(caplog):
    with caplog.at_level("WARNING", logger="config"):
        config.get_settings()
    assert "GEMINI_API_KEY" in caplog.text
    assert "GOOGLE_MAPS_API_KEY" in caplog.text


def test_settings_are_cached():
    assert config.get_settings() is config.get_settings()
