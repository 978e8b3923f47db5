"""
Configuration management using environment variables.
Handles database, security, image host and logging settings with validation and defaults.
"""

from typing import List, Optional
from pathlib import Path

from pydantic import Field, validator
from pydantic_settings import BaseSettings


class BookSwapConfig(BaseSettings):
    """
    Configuration class for the BookSwap API.
    Uses pydantic BaseSettings for environment variable management.
    """

    # Server Settings
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, description="Bind port")
    debug: bool = Field(default=False, description="Enable debug mode")

    # MongoDB Configuration
    mongodb_url: str = Field(default="mongodb://localhost:27017", description="MongoDB connection URI")
    mongodb_database: str = Field(default="book-exchange-data", description="Database name")
    mongodb_max_pool_size: int = Field(default=10, description="Connection pool size")
    mongodb_connect_timeout_ms: int = Field(default=5000, description="Connect timeout")
    mongodb_socket_timeout_ms: int = Field(default=30000, description="Idle socket timeout")

    # Security Settings
    jwt_secret: str = Field(default="fallback_secret_change_in_production", description="Token signing secret")
    jwt_algorithm: str = Field(default="HS256", description="Token signing algorithm")
    access_token_expire_minutes: int = Field(default=60 * 24 * 7, description="Token lifetime")
    salt_rounds: int = Field(default=12, description="bcrypt cost factor")

    # Login lockout
    max_login_attempts: int = Field(default=5, description="Failed logins before lockout")
    lockout_window_minutes: int = Field(default=15, description="Lockout window")

    # Rate Limiting
    rate_limit_requests: int = Field(default=100, description="Requests per window per client")
    rate_limit_window_seconds: int = Field(default=15 * 60, description="Rate limit window")

    # Cloudinary Configuration
    cloudinary_name: Optional[str] = Field(default=None, description="Cloudinary cloud name")
    cloudinary_api_key: Optional[str] = Field(default=None, description="Cloudinary API key")
    cloudinary_api_secret: Optional[str] = Field(default=None, description="Cloudinary API secret")

    # CORS Settings
    cors_origins: List[str] = Field(default=["*"], description="Allowed CORS origins")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log output format")
    log_file: Optional[str] = Field(default=None, description="Optional log file")

    @validator('salt_rounds')
    def validate_salt_rounds(cls, v):
        """Ensure the bcrypt cost factor is within the supported range."""
        if v < 4 or v > 31:
            raise ValueError('salt_rounds must be between 4 and 31')
        return v

    @validator('mongodb_max_pool_size')
    def validate_pool_size(cls, v):
        """Ensure pool size is reasonable."""
        if v < 1 or v > 100:
            raise ValueError('mongodb_max_pool_size must be between 1 and 100')
        return v

    @validator('max_login_attempts', 'lockout_window_minutes', 'rate_limit_requests', 'rate_limit_window_seconds')
    def validate_positive(cls, v):
        """Ensure limits are positive."""
        if v < 1:
            raise ValueError('value must be at least 1')
        return v

    @validator('log_level')
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @validator('log_format')
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore extra fields from .env
    }

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def has_image_host_credentials(self) -> bool:
        """Check whether all Cloudinary credentials are configured."""
        return bool(self.cloudinary_name and self.cloudinary_api_key and self.cloudinary_api_secret)


# Global configuration instance
config = BookSwapConfig()
