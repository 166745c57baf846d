import os


def _split(value: str):
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    DEBUG = os.getenv("FLASK_ENV") == "development"
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    PORT = os.getenv("PORT", 3000)
    DEFAULT_ROOMS = _split(os.getenv("DEFAULT_ROOMS", "General,Tech,Random"))
    MESSAGE_STORE_LIMIT = int(os.getenv("MESSAGE_STORE_LIMIT", 10000))
    MAX_HTTP_BUFFER_SIZE = int(float(os.getenv("MAX_HTTP_BUFFER_SIZE", 1e9)))
    PING_TIMEOUT = int(os.getenv("PING_TIMEOUT", 60))
    PING_INTERVAL = int(os.getenv("PING_INTERVAL", 25))
