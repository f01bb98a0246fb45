# topup/core/config.py

import os
from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

DB_USER = os.getenv("DB_USER", "postgres")
DB_PASSWORD = os.getenv("DB_PASSWORD", "")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "topup")
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+psycopg2://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)
APP_ENV = os.getenv("APP_ENV", "development")
IS_PRODUCTION = APP_ENV == "production"
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", 30))
AUTO_CREATE_TABLES = os.getenv("AUTO_CREATE_TABLES", "true").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR")

DIGIFLAZZ_USERNAME = os.getenv("DIGIFLAZZ_USERNAME", "demo_username")
DIGIFLAZZ_API_KEY = os.getenv("DIGIFLAZZ_API_KEY", "demo_api_key")
DIGIFLAZZ_BASE_URL = os.getenv("DIGIFLAZZ_BASE_URL", "https://api.digiflazz.com/v1")
USE_MOCK_DIGIFLAZZ = os.getenv("USE_MOCK_DIGIFLAZZ", "false" if IS_PRODUCTION else "true").lower() == "true"
PROVIDER_TIMEOUT_SECONDS = float(os.getenv("PROVIDER_TIMEOUT_SECONDS", 15))

MIN_PASSWORD_LENGTH = 8
REFERRAL_CODE_ATTEMPTS = 10
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class ProviderSettings(BaseModel):
    username: str
    api_key: str
    base_url: str = "https://api.digiflazz.com/v1"
    use_mock: bool = True
    timeout: float = 15.0


def load_provider_settings() -> ProviderSettings:
    """Snapshot of the provider credentials, built once at startup."""
    return ProviderSettings(
        username=DIGIFLAZZ_USERNAME,
        api_key=DIGIFLAZZ_API_KEY,
        base_url=DIGIFLAZZ_BASE_URL,
        use_mock=USE_MOCK_DIGIFLAZZ,
        timeout=PROVIDER_TIMEOUT_SECONDS
    )
