import os
from datetime import timedelta


def _int_env(name, default):
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False
    ENV = os.getenv("FLASK_ENV", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-secret-change-me")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=_int_env("JWT_ACCESS_TOKEN_HOURS", 12))

    # receipts are capped at 5 MiB; the request limit leaves room for the form fields
    RECEIPT_MAX_BYTES = 5 * 1024 * 1024
    MAX_CONTENT_LENGTH = 6 * 1024 * 1024

    RECEIPTS_BUCKET = os.getenv("RECEIPTS_BUCKET", "comprobantes")
    PURCHASES_TABLE = "purchases"
    STORAGE_ROOT = os.getenv("STORAGE_ROOT")
    PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL")

    TIMEZONE = os.getenv("TIMEZONE", "America/La_Paz")
    TICKET_URL = os.getenv("TICKET_URL", "https://superticket.bo/Sabor-a-Moda/")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    STREAM_HEARTBEAT_SECONDS = _int_env("STREAM_HEARTBEAT_SECONDS", 15)

    @staticmethod
    def init_app(app):
        os.makedirs(app.instance_path, exist_ok=True)

        if not app.config.get("SQLALCHEMY_DATABASE_URI"):
            if os.getenv("DATABASE_URL"):
                app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL")
            else:
                app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{os.path.join(app.instance_path, 'app.db')}"

        if not app.config.get("STORAGE_ROOT"):
            app.config["STORAGE_ROOT"] = os.path.join(app.instance_path, "storage")
        os.makedirs(app.config["STORAGE_ROOT"], exist_ok=True)
