from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://vitality:vitality@db:5432/vitality"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://myapp.com,https://api.myapp.com"
    CORS_ORIGINS: str = "*"

    # Calendar policy. Users without a timezone resolve "today" here.
    DEFAULT_TIMEZONE: str = "UTC"
    # datetime.weekday() of the first day of the week (0 = Monday).
    WEEK_START_DAY: int = 0

    # Engine tuning
    STREAK_MAX_LOOKBACK_DAYS: int = 3650
    VITALITY_MAX_CATCH_UP_DAYS: int = 60
    HEALTH_RECOVERY_PER_DAY: int = 12

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
