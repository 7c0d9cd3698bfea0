import os
from typing import Optional

import yaml
from pydantic import BaseModel, HttpUrl, Field

class JellyfinConfig(BaseModel):
    """Jellyfin Connection Settings."""
    base_url: HttpUrl
    api_key: str
    user_id: str

    @property
    def server_url(self) -> str:
        """Base URL without the trailing slash pydantic adds."""
        return str(self.base_url).rstrip("/")

class IntegrationConfig(BaseModel):
    """Discord Settings."""
    discord_client_id: str
    discord_asset_name: Optional[str] = "jellyfin_logo"

    @property
    def placeholder(self) -> str:
        return self.discord_asset_name or "jellyfin_logo"

class ImageConfig(BaseModel):
    """Album Art Upload Settings."""
    upload_url: HttpUrl = Field(default="https://catbox.moe/user/api.php", validate_default=True)
    upload_filename: str = "cover.jpg"
    default_content_type: str = "image/jpeg"
    fetch_timeout: float = 10
    upload_timeout: float = 30
    send_token: bool = False # Attach the API key when downloading artwork

class Settings(BaseModel):
    """Master configuration model."""
    jellyfin: JellyfinConfig
    integration: IntegrationConfig
    image: ImageConfig = Field(default_factory=ImageConfig)
    general: dict = Field(default_factory=dict) # Catch all for general settings like cache/poll

    @property
    def poll_interval(self) -> float:
        return float(self.general.get("poll_interval_seconds", 15))

    @property
    def cache_file(self) -> str:
        return self.general.get("cache_file", "album_art_cache.json")

    @property
    def log_file(self) -> Optional[str]:
        return self.general.get("log_file", "jellyrpc.log")

    @property
    def log_level(self) -> str:
        return str(self.general.get("log_level", "INFO"))


def load_config(path: str = "config.yaml") -> Settings:
    """Loads and validates configuration from a YAML file."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"Configuration file not found at: {path}. Use config.yaml.example to create one.")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return Settings(**data)
