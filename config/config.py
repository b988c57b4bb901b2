import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "attendance-manager-secret"

    # MongoDB
    MONGO_URI = os.environ.get("MONGODB_URI", "mongodb://localhost:27017")
    MONGO_DB = os.environ.get("MONGODB_DB", "attendance_manager")
    MONGO_TIMEOUT_MS = int(os.environ.get("MONGODB_TIMEOUT_MS", "5000"))

    # Identity provider (Clerk Backend API)
    IDENTITY_API_URL = os.environ.get("CLERK_API_URL", "https://api.clerk.com")
    IDENTITY_SECRET_KEY = os.environ.get("CLERK_SECRET_KEY", "")
    IDENTITY_TIMEOUT = float(os.environ.get("CLERK_TIMEOUT", "10"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Dev helpers
    AUTO_INIT_DB = bool(int(os.environ.get("AUTO_INIT_DB", "0")))


def mongo_config(**overrides) -> dict:
    config = {
        "uri": Config.MONGO_URI,
        "database": Config.MONGO_DB,
        "timeout_ms": Config.MONGO_TIMEOUT_MS,
    }
    config.update(overrides)
    return config


def identity_config(**overrides) -> dict:
    config = {
        "api_url": Config.IDENTITY_API_URL,
        "secret_key": Config.IDENTITY_SECRET_KEY,
        "timeout": Config.IDENTITY_TIMEOUT,
    }
    config.update(overrides)
    return config
