"""Configuration settings for the metadata API server."""

import os
from dataclasses import dataclass
from typing import Optional


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_path: str = "/app/data/metadata.db"
    host: str = "0.0.0.0"
    port: int = 8000
    environment: str = "development"
    bucket_name: str = ""
    region_name: str = "us-east-1"
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    endpoint_url: Optional[str] = None
    create_bucket: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        Returns:
            Settings populated from METADATA_API_* and AWS_* variables
        """
        return cls(
            database_path=os.environ.get("METADATA_API_DATABASE_PATH", "/app/data/metadata.db"),
            host=os.environ.get("METADATA_API_HOST", "0.0.0.0"),
            port=int(os.environ.get("METADATA_API_PORT", "8000")),
            environment=os.environ.get("METADATA_API_ENV", "development"),
            bucket_name=os.environ.get("AWS_S3_BUCKET_NAME", ""),
            region_name=os.environ.get("AWS_REGION", "us-east-1"),
            access_key_id=os.environ.get("AWS_ACCESS_KEY_ID") or None,
            secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY") or None,
            endpoint_url=os.environ.get("AWS_S3_ENDPOINT_URL") or None,
            create_bucket=_env_flag("AWS_S3_CREATE_BUCKET"),
        )
