"""SongCart Configuration"""

import os
from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "SongCart"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Cart storage
    storage_backend: str = "memory"  # "memory" or "file"
    storage_dir: str = "data/carts"

    # Rate limiting for cart writes
    cart_rate_limit: int = 30
    cart_rate_window_seconds: int = 60
    rate_limit_sweep_interval: float = 60.0

    # Retry policy for catalog requests
    retry_max_attempts: int = 3
    retry_initial_delay: float = 1.0
    retry_use_backoff: bool = True

    # Apple Music Configuration
    apple_music_base_url: str = "https://api.music.apple.com/v1"
    apple_music_storefront: str = "us"
    apple_team_id: Optional[str] = None
    apple_key_id: Optional[str] = None
    apple_private_key: Optional[str] = None  # Can also be a file path
    apple_private_key_path: Optional[str] = None
    apple_token_ttl_seconds: int = 15777000  # ~6 months, Apple's maximum

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    def get_private_key(self) -> Optional[str]:
        """Get Apple Music signing key from file or inline"""
        if self.apple_private_key:
            # Keys pasted into .env usually carry escaped newlines
            return self.apple_private_key.replace("\\n", "\n")

        if self.apple_private_key_path and os.path.exists(self.apple_private_key_path):
            with open(self.apple_private_key_path, "r") as f:
                return f.read()

        return None

    @property
    def apple_music_configured(self) -> bool:
        """Check if Apple Music credentials are configured"""
        return all([
            self.apple_team_id,
            self.apple_key_id,
            self.get_private_key(),
        ])


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
