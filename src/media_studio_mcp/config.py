from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    GOOGLE_API_KEY: str = ""
    GOOGLE_IMAGEN_MODEL: str = "imagen-3.0-generate-002"
    GOOGLE_VEO_MODEL: str = "veo-2.0-generate-001"
    STORAGE_DIR: Path = Path("./storage")
    MEDIA_STUDIO_POLL_INTERVAL_SECONDS: float = 10.0
    MEDIA_STUDIO_POLL_MAX_WAIT_SECONDS: float = 600.0
    MEDIA_STUDIO_FETCH_TIMEOUT_SECONDS: float = 30.0
    MEDIA_STUDIO_LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
