import os


def _env(name: str, default: str) -> str:
    return os.getenv(f"MINIQUARE_{name}", default)


class Settings:
    def __init__(self):
        self.app_name = "MINIQUARE CRM"
        self.api_version = "1.0.0"
        self.environment = _env("ENVIRONMENT", "development")
        self.secret_key = _env("SECRET_KEY", "CHANGE_ME")
        self.access_token_expire_minutes = int(_env("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
        self.database_url = _env("DATABASE_URL", "sqlite:///./miniquare.db")
        self.log_level = _env("LOG_LEVEL", "INFO")
        self.default_timezone = _env("DEFAULT_TIMEZONE", "UTC")
        # Timers longer than this are re-evaluated instead of armed natively.
        self.reminder_max_delay_hours = float(_env("REMINDER_MAX_DELAY_HOURS", "24"))
        self.reminder_sweep_seconds = float(_env("REMINDER_SWEEP_SECONDS", "300"))
        self.reminder_bell = _env("REMINDER_BELL", "false").lower() in {"1", "true", "yes"}


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
