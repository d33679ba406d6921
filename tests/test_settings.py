from backend.app.core.settings import Settings, get_settings


def test_settings_defaults():
    settings = get_settings()
    assert settings.app_name == "MINIQUARE CRM"
    assert settings.environment == "development"
    assert isinstance(settings.secret_key, str) and settings.secret_key
    assert isinstance(settings.database_url, str) and settings.database_url
    assert settings.reminder_max_delay_hours == 24
    assert settings.reminder_bell is False


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("MINIQUARE_REMINDER_MAX_DELAY_HOURS", "6")
    monkeypatch.setenv("MINIQUARE_REMINDER_BELL", "yes")
    monkeypatch.setenv("MINIQUARE_DEFAULT_TIMEZONE", "Europe/London")
    settings = Settings()
    assert settings.reminder_max_delay_hours == 6
    assert settings.reminder_bell is True
    assert settings.default_timezone == "Europe/London"
