"""
Core configuration module for the TrekDesk site backend.
Settings are loaded from environment variables (and .env).
"""

from pydantic_settings import BaseSettings
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Defaults are suitable for local development against SQLite.
    """

    # Application
    app_name: str = "TrekDesk"
    app_version: str = "1.0.0"
    environment: str = "production"
    debug: bool = False

    # Database
    database_url: str = "sqlite:///./trekdesk.db"
    database_pool_size: int = 10
    database_max_overflow: int = 20
    database_pool_recycle: int = 1800  # Recycle connections after 30 min
    database_pool_pre_ping: bool = True

    # API Configuration
    api_prefix: str = "/api/v1"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_workers: int = 2

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # "text" or "json"

    # CORS - restrict to known frontend origins (extend via .env)
    cors_origins: list = ["http://localhost:3000", "http://127.0.0.1:3000"]
    cors_allow_credentials: bool = False
    cors_allow_methods: list = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    cors_allow_headers: list = ["Content-Type", "Accept", "X-API-Key", "X-Request-ID"]

    # Dashboard writes require X-API-Key == admin_api_key (MUST be set via .env)
    admin_api_key: str = "CHANGE-ME-IN-DOTENV"

    # Package catalog
    catalog_page_size: int = 12
    catalog_default_max_price: int = 100000

    # Object store (Cloudinary)
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    media_folder: str = "trekdesk"
    max_image_bytes: int = 10 * 1024 * 1024
    max_document_bytes: int = 50 * 1024 * 1024

    # Enquiries dashboard
    enquiry_page_size_max: int = 100

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
