from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/duekeeper.db"
    catalog_cache_path: str = "./data/card-benefits.json"
    near_expiry_window_days: int = 5
    default_reminder_lead_days: int = 5
    annual_reminder_days_before: int = 30
    reminder_horizon_months: int = 12
    timezone: str | None = None  # IANA name, e.g. "America/New_York"; None = local

    model_config = {"env_prefix": "DUEKEEPER_", "case_sensitive": False}


settings = Settings()
