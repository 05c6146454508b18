"""
Application configuration settings
"""

from pydantic_settings import BaseSettings
from pydantic import computed_field
from functools import lru_cache
from typing import List, Set, Optional
from urllib.parse import quote_plus


class Settings(BaseSettings):
    # Database Configuration (Individual Parameters)
    db_host: str
    db_port: int
    db_name: str
    db_user: str
    db_password: str
    db_driver: str = "postgresql"  # Only this has a default since it's unlikely to change
    db_url: Optional[str] = None  # Full URL override (e.g. sqlite for local runs)

    @computed_field
    @property
    def database_url(self) -> str:
        """Compile database URL from individual parameters"""
        if self.db_url:
            return self.db_url
        # For Cloud SQL Unix sockets, don't include the socket path in the URL
        # It will be passed via connect_args in database.py
        encoded_user = quote_plus(self.db_user)
        encoded_password = quote_plus(self.db_password)

        if self.db_host.startswith('/cloudsql/'):
            return f"{self.db_driver}://{encoded_user}:{encoded_password}@/{self.db_name}"
        return f"{self.db_driver}://{encoded_user}:{encoded_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    # Security (Required from environment)
    secret_key: str
    algorithm: str
    access_token_expire_minutes: int
    refresh_token_expire_days: int

    # Application
    app_name: str
    debug: bool

    # CORS - loaded from environment
    allowed_origins: str

    # Email/SMTP Configuration (Optional - for email verification)
    smtp_host: Optional[str] = None
    smtp_port: Optional[int] = None
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from_email: Optional[str] = None
    require_email_verification: bool = False

    # Image storage: "github" (repository contents API + jsDelivr) or "s3"
    storage_backend: str = "github"

    # GitHub storage
    github_token: Optional[str] = None
    github_username: Optional[str] = None
    github_repo: Optional[str] = None
    github_branch: str = "main"
    github_api_url: str = "https://api.github.com"

    # AWS S3 Configuration (only needed when storage_backend is "s3")
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    s3_bucket_name: Optional[str] = None
    s3_base_url: Optional[str] = None

    # File uploads
    max_upload_size: int = 5 * 1024 * 1024
    allowed_image_extensions: str = "jpg,jpeg,png,gif,webp"

    # Material detection (Roboflow workflow)
    roboflow_workflow_url: str = "https://serverless.roboflow.com/infer/workflows/scrapx/detect-count-and-visualize-3"
    roboflow_api_key: Optional[str] = None
    detection_timeout_seconds: float = 30.0

    # Maps / geocoding
    google_maps_api_key: Optional[str] = None
    geocoder_user_agent: str = "scrapx"
    default_latitude: float = 13.0827  # Chennai
    default_longitude: float = 80.2707

    # RECYCLE token rewards (Sepolia testnet)
    reward_rpc_url: Optional[str] = None
    reward_token_address: Optional[str] = None
    reward_treasury_private_key: Optional[str] = None
    reward_chain_id: int = 11155111
    reward_token_amount: int = 1

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
    log_to_file: bool = False
    log_file_path: str = "logs/scrapx.log"
    log_max_size_mb: int = 10
    log_backup_count: int = 5
    log_to_console: bool = True
    log_verbosity: str = "minimal"  # "minimal" or "full" - minimal only logs errors and important calls

    def get_allowed_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.allowed_origins.split(',') if origin.strip()]

    def get_allowed_image_extensions(self) -> Set[str]:
        """Parse image extensions from comma-separated string"""
        return {ext.strip() for ext in self.allowed_image_extensions.split(',') if ext.strip()}

    def rewards_configured(self) -> bool:
        return bool(self.reward_rpc_url and self.reward_token_address and self.reward_treasury_private_key)

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_settings():
    return Settings()


settings = get_settings()
