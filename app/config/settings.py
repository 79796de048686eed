# config/settings.py
from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    # API
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Frame Layout Service"

    # CORS
    ALLOWED_HOSTS: List[str] = ["*"]

    # Canvas (logical size, never changed by zoom/pan)
    CANVAS_WIDTH: int = 1200
    CANVAS_HEIGHT: int = 800

    # View-only zoom clamp
    ZOOM_MIN: float = 0.1
    ZOOM_MAX: float = 10.0

    # Image sources
    REQUEST_TIMEOUT: int = 30

    # Template store
    DATABASE_URL: str = "sqlite+aiosqlite:///./templates.db"

    # Env
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    @property
    def database_url(self) -> str:
        return self.DATABASE_URL

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
