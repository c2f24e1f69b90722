from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        extra="ignore"  # Ignore extra fields in .env
    )

    database_url: str

    sendgrid_api_key: Optional[str] = None
    sendgrid_from_email: Optional[str] = None

    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    refresh_token_expire_days: int = 7
    reset_code_expire_minutes: int = 10

    frontend_url: Optional[List[str]] = None

    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_bucket: str = "images"

    # Trash retention
    trash_retention_days: int = 30
    trash_sweep_interval_seconds: int = 86400
    trash_sweep_enabled: bool = True


settings = Settings()
