# ba_digital/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./ba_digital.db"
    SQL_ECHO: bool = False
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"

    # Root folder blob store (signature & supporting documents)
    UPLOAD_ROOT: str = "./uploads"

    # Simulated payment gateway
    PAYMENT_SUCCESS_RATE: float = 0.95

    LOG_LEVEL: str = "INFO"

    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]
    ALLOWED_HOSTS: List[str] = ["*"]

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding='utf-8', extra='ignore')

settings = Settings()
