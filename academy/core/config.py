# academy/core/config.py
"""Application configuration using Pydantic."""
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    database_url: str = 'sqlite+aiosqlite:///./academy.db'
    redis_url: str = 'redis://localhost:6379/0'

    app_name: str = 'academy'
    app_version: str = '1.0.0'
    environment: str = 'development'
    log_level: str = 'info'
    allowed_origins: List[str] = ['*']

    # Course catalog caching (never used for capacity decisions)
    cache_enabled: bool = True
    cache_ttl_seconds: int = 60

    session_ttl_hours: int = 12
    transaction_max_retries: int = 8
    transaction_retry_backoff: float = 0.05

    # First superadmin, created at startup when both are set
    superadmin_email: Optional[str] = None
    superadmin_password: Optional[str] = None

    model_config = {
        'env_file': '.env',
        'extra': 'ignore'
    }

settings = Settings()
