from dotenv import load_dotenv
import json
import os
from typing import Final # So that my variables are immutable

# Load environment variables from .env file
load_dotenv(dotenv_path=".env")

# Database configuration
DATABASE_URL: Final[str] = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./pizzadesk.db")
ORDER_COUNTER_NAME: Final[str] = os.getenv("ORDER_COUNTER_NAME", "orders")

# JWT configuration
SECRET_KEY: Final[str] = os.getenv("SECRET_KEY", "your-secret-key-here")  # Change in production!
ALGORITHM: Final[str] = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES: Final[int] = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480"))
TOKEN_REFRESH_THRESHOLD_MINUTES: Final[int] = int(os.getenv("TOKEN_REFRESH_THRESHOLD_MINUTES", "60"))
BCRYPT_ROUNDS: Final[int] = int(os.getenv("BCRYPT_ROUNDS", "12"))
DEBUG: Final[bool] = os.getenv("DEBUG", "False").lower() in ("true", "1", "t")  # Convert to boolean

# API / logging
API_VERSION: Final[str] = os.getenv("API_VERSION", "v1")
LANG: Final[str] = os.getenv("LANG_CODE", "en")
LOGLEVEL: Final[str] = os.getenv("LOGLEVEL", "INFO").upper()
CORS_ORIGINS: Final[list[str]] = [
    origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()
]

# Rate limiting
LOGIN_RATE_LIMIT: Final[str] = os.getenv("LOGIN_RATE_LIMIT", "10/minute")
RATE_LIMIT_ENABLED: Final[bool] = os.getenv("RATE_LIMIT_ENABLED", "True").lower() in ("true", "1", "t")

# Push notifications (Firebase Admin SDK, service account credentials)
FIREBASE_PROJECT_ID: Final[str] = os.getenv("FIREBASE_PROJECT_ID", "")
FIREBASE_CLIENT_EMAIL: Final[str] = os.getenv("FIREBASE_CLIENT_EMAIL", "")
# .env files usually carry the key with literal "\\n" sequences
FIREBASE_PRIVATE_KEY: Final[str] = os.getenv("FIREBASE_PRIVATE_KEY", "").replace("\\n", "\n")
FCM_TIMEOUT_SECONDS: Final[float] = float(os.getenv("FCM_TIMEOUT_SECONDS", "10"))
PUSH_ICON: Final[str] = os.getenv("PUSH_ICON", "/icons/icon-192x192.png")
# Public https origin of the web app; click links in pushes are built from it
APP_BASE_URL: Final[str] = os.getenv("APP_BASE_URL", "").rstrip("/")
# Public web-push client keys, served unauthenticated to the browser
FIREBASE_WEB_CONFIG: Final[dict] = json.loads(os.getenv("FIREBASE_WEB_CONFIG", "{}"))
