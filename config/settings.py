# config/settings.py
import os
import sys
from typing import Literal, Optional
from dotenv import load_dotenv
from pydantic import ValidationError, Field, field_validator
from pydantic_settings import BaseSettings
from util.enums import Environment


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(default=Environment.DEV.value, validation_alias="APP_ENV")
    HOST: str = Field(default="127.0.0.1", validation_alias="HOST")
    PORT: int = Field(default=8000, validation_alias="PORT")

    # Storage
    STORAGE_BACKEND: Literal["local", "redis"] = Field(
        default="local", validation_alias="STORAGE_BACKEND"
    )
    STORAGE_PATH: str = Field(default="restic-data", validation_alias="STORAGE_PATH")
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0", validation_alias="REDIS_URL"
    )
    REDIS_NAMESPACE: str = Field(default="restic", validation_alias="REDIS_NAMESPACE")
    READ_CHUNK_BYTES: int = Field(
        default=64 * 1024, gt=0, validation_alias="READ_CHUNK_BYTES"
    )

    # Policy
    APPEND_ONLY: bool = Field(default=False, validation_alias="APPEND_ONLY")
    DEBUG: bool = Field(default=False, validation_alias="DEBUG")
    METRICS_ENABLED: bool = Field(default=False, validation_alias="METRICS_ENABLED")
    HTPASSWD_FILE: Optional[str] = Field(default=None, validation_alias="HTPASSWD_FILE")
    # Entries with no recognised hash prefix are compared as plain text only when set.
    HTPASSWD_PLAINTEXT: bool = Field(default=False, validation_alias="HTPASSWD_PLAINTEXT")

    # Logging knobs
    LOGGER_NAME: str = "restic-rest"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    @field_validator("HTPASSWD_FILE")
    @classmethod
    def _htpasswd_must_exist(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        if not os.path.isfile(v):
            raise ValueError(f"htpasswd file not found: {v}")
        return v


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
