from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "postgresql+asyncpg://localhost:5432/goalflow"
    goalflow_api_key: str | None = None
    log_level: str = "INFO"

    # Goal defaults
    goal_timeframe_weeks: int = 12  # Every onboarding goal starts as a 12-week program
    default_unit_system: str = "metric"  # "metric" | "imperial" (used when the profile has no weight unit)

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
