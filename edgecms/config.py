from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    # Application settings
    app_name: str = "EdgeCMS"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # Logging
    log_level: str = "INFO"
    log_format: str = "plain"  # "plain" or "json"

    # Database settings
    database_url: str = "sqlite+aiosqlite:///./edgecms.db"

    # Artifact storage ("local" or "s3")
    artifact_backend: str = "local"
    artifact_local_path: str = "artifacts"
    s3_bucket: str | None = None
    s3_endpoint_url: str | None = None  # set for Cloudflare R2 / MinIO
    s3_region: str | None = None
    s3_access_key_id: str | None = None
    s3_secret_access_key: str | None = None

    # Publishing
    snapshot_cache_control: str = "public, immutable, max-age=31536000"  # 1 year
    public_cache_max_age: int = 1800
    trusted_origins: str = "*"
    translation_batch_size: int = 25

    # Workflows
    resume_workflows_on_startup: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
