"""Application configuration using pydantic settings with structured sections."""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080
    reload: bool = False


class DatabaseSettings(BaseModel):
    url: str = Field(default="sqlite+aiosqlite:///./catalog.db", alias="url")
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None


class StorageSettings(BaseModel):
    photo_dir: Path = Field(default=Path("public/photo"))
    staging_dir: Path = Field(default=Path("storage/staging"))
    public_url_prefix: str = "/photo"


class CacheSettings(BaseModel):
    enabled: bool = True
    ttl_seconds: float = Field(default=300, gt=0)
    check_period_seconds: float = Field(default=600, gt=0)


class UploadSettings(BaseModel):
    max_files: int = Field(default=10, ge=0)
    max_file_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    allowed_extensions: list[str] = Field(
        default_factory=lambda: [".jpg", ".jpeg", ".png", ".gif", ".webp"]
    )
    allowed_mime_types: list[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"]
    )
    # Reject kept image references that the product does not currently own.
    strict_kept_images: bool = False


class CatalogSettings(BaseModel):
    default_page_size: int = Field(default=12, ge=1)
    max_page_size: int = Field(default=100, ge=1)


class NotifierSettings(BaseModel):
    queue_size: int = Field(default=100, ge=1)


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "Catalog Server"
    api_prefix: str = "/api"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    server: ServerSettings = ServerSettings()
    database: DatabaseSettings = DatabaseSettings()
    storage: StorageSettings = StorageSettings()
    cache: CacheSettings = CacheSettings()
    uploads: UploadSettings = UploadSettings()
    catalog: CatalogSettings = CatalogSettings()
    notifier: NotifierSettings = NotifierSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def host(self) -> str:
        return self.server.host

    @property
    def port(self) -> int:
        return self.server.port


@lru_cache()
def get_settings() -> Settings:
    return Settings()
