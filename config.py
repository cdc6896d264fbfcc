import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file)
else:
    data = dict()

KB = 1024


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./authguard.db")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    CACHE_BACKEND = data.get("CACHE_BACKEND", "redis")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")

    # Public URL of the web app; used in email links and as the default trusted origin
    APP_BASE_URL = data.get("APP_BASE_URL", "http://localhost:3000")
    APP_ORIGINS = data.get("APP_ORIGINS", [])

    # Sessions
    SESSION_COOKIE_NAME = data.get("SESSION_COOKIE_NAME", "nexus_session")
    SESSION_COOKIE_SECURE = bool(data.get("SESSION_COOKIE_SECURE", False))
    SESSION_TTL_DAYS = data.get("SESSION_TTL_DAYS", 7)
    BCRYPT_ROUNDS = data.get("BCRYPT_ROUNDS", 12)

    # Only these proxy headers are trusted for the client address
    REAL_IP_HEADER = data.get("REAL_IP_HEADER", "x-real-ip")
    FORWARDED_FOR_HEADER = data.get("FORWARDED_FOR_HEADER", "x-forwarded-for")

    # Rate limiting
    RATE_LIMIT_NAMESPACE = data.get("RATE_LIMIT_NAMESPACE", "nexus:ratelimit")
    RATE_LIMIT_FAIL_OPEN = bool(data.get("RATE_LIMIT_FAIL_OPEN", False))
    FORGOT_PASSWORD_RATE_LIMIT = data.get(
        "FORGOT_PASSWORD_RATE_LIMIT", {"max_requests": 5, "window_ms": 10 * 60 * 1000}
    )
    RESET_PASSWORD_RATE_LIMIT = data.get(
        "RESET_PASSWORD_RATE_LIMIT", {"max_requests": 6, "window_ms": 10 * 60 * 1000}
    )
    RESEND_VERIFICATION_RATE_LIMIT = data.get(
        "RESEND_VERIFICATION_RATE_LIMIT", {"max_requests": 3, "window_ms": 10 * 60 * 1000}
    )
    LOGIN_MAX_FAILED_ATTEMPTS = data.get("LOGIN_MAX_FAILED_ATTEMPTS", 5)
    LOGIN_ATTEMPT_WINDOW_MINUTES = data.get("LOGIN_ATTEMPT_WINDOW_MINUTES", 15)

    # Request body caps per route prefix (bytes)
    MAX_REQUEST_SIZE = data.get(
        "MAX_REQUEST_SIZE",
        {"/auth": 8 * KB, "/health": 1 * KB, "default": 100 * KB},
    )

    # Tokens
    RESET_TOKEN_TTL_MS = data.get("RESET_TOKEN_TTL_MS", 60 * 60 * 1000)
    VERIFY_TOKEN_TTL_MS = data.get("VERIFY_TOKEN_TTL_MS", 24 * 60 * 60 * 1000)

    AUTH_REGISTRATION_ENABLED = bool(data.get("AUTH_REGISTRATION_ENABLED", True))

    # Email delivery (Resend HTTP API)
    RESEND_API_KEY = data.get("RESEND_API_KEY", "")
    RESEND_FROM = data.get("RESEND_FROM", "MetaDJ Nexus <noreply@metadjnexus.ai>")
    RESEND_API_URL = data.get("RESEND_API_URL", "https://api.resend.com/emails")
