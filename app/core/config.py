from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    # DB URL (환경변수: DATABASE_URL)
    database_url: Optional[str] = Field(
        default="sqlite:///./dev.db",
        validation_alias="DATABASE_URL",
    )
    # 기본 설정들
    environment: str = Field(default="local")
    log_level: str = Field(default="INFO")
    secret_key: str = Field(default="CHANGE_ME_SECRET")
    access_token_exp_minutes: int = Field(default=1440)  # 24시간
    refresh_token_exp_days: int = Field(default=14)
    jwt_algorithm: str = Field(default="HS256")

    # 외부 메타데이터 조회 (Jikan)
    jikan_base_url: str = Field(default="https://api.jikan.moe/v4")
    jikan_timeout_seconds: float = Field(default=10.0)

    fcm_service_account_json_path: Optional[str] = None

    # CORS
    cors_origins: str = Field(default="*")  # comma separated list for production

    # AWS/S3
    aws_access_key_id: Optional[str] = Field(
        default=None,
        validation_alias="AWS_ACCESS_KEY_ID",
    )
    aws_secret_access_key: Optional[str] = Field(
        default=None,
        validation_alias="AWS_SECRET_ACCESS_KEY",
    )
    aws_region: Optional[str] = Field(
        default=None,
        validation_alias="AWS_REGION",
    )
    s3_bucket: Optional[str] = Field(
        default=None,
        validation_alias="S3_BUCKET",
    )
    s3_public_base_url: Optional[str] = Field(
        default=None,
        validation_alias="S3_PUBLIC_BASE_URL",
    )  # e.g., https://cdn.example.com/
    upload_max_bytes: int = Field(default=10 * 1024 * 1024)

    # 실시간 채널
    realtime_replay_size: int = Field(default=500)
    realtime_tick_seconds: float = Field(default=0.25)
    realtime_queue_size: int = Field(default=1000)
    admin_report_channel: str = Field(default="admin_report_notification")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="forbid",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
