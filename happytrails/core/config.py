from pathlib import Path

from pydantic_settings import BaseSettings

PACKAGE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    PROJECT_NAME: str = "Happy Trails"

    # Server
    PORT: int = 8000
    ENVIRONMENT: str = "development"

    # Signs the session cookie that carries each visitor's identity
    SECRET_KEY: str = "dev_secret_key"
    SESSION_COOKIE: str = "happytrails_session"

    # Persistence: "local" keeps everything in a JSON file, "supabase" delegates
    BACKEND: str = "local"
    LOCAL_STORAGE_PATH: str = "data/local_storage.json"

    # Marketing content
    SITE_CONFIG_PATH: str = str(PACKAGE_DIR / "data" / "site_config.json")

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""

    # Logging
    LOG_FILE: str = "logs/errors.log"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
