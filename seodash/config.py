from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )
    # MongoDB (empty URI = in-memory store)
    mongo_uri: str = ""
    mongo_db_name: str = "seodash"
    # App
    app_secret_key: str = "change_me_in_production"
    jwt_algorithm: str = "HS256"
    environment: str = "development"
    app_url: str = "http://localhost:5173"
    log_level: str = "INFO"
    # Reports
    reports_dir: str = "reports"
    # Rate limiting
    rate_limit_per_minute: int = 10
    # WordPress application password encryption (Fernet key)
    # Generate: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
    credential_encryption_key: str = ""
    # Scheduled scans
    scheduler_poll_minutes: int = 15


@lru_cache()
def get_settings() -> Settings:
    return Settings()
