from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"

    database_url: str = "sqlite+pysqlite:///./booking.db"
    db_storage_timeout_seconds: int = 10

    jwt_secret_key: str = "change_me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    auth_rate_limit_window_seconds: int = 60
    auth_register_max_attempts: int = 10
    auth_login_max_attempts: int = 20

    default_timezone: str = "America/New_York"
    booking_duration_tolerance_seconds: int = 60
    public_booking_max_requests: int = 5
    public_booking_rate_limit_window_seconds: int = 60
    public_availability_max_requests: int = 30
    public_availability_rate_limit_window_seconds: int = 60
    rate_limit_backend: str = "memory"
    rate_limit_redis_url: str = "redis://redis:6379/2"
    cors_allow_origins: list[str] = ["*"]

    reminder_lookahead_minutes: int = 120
    pending_booking_expire_minutes: int = 1440
    celery_expiration_interval_minutes: int = 5
    celery_reminder_interval_minutes: int = 10
    celery_broker_url: str = "redis://redis:6379/0"
    celery_result_backend: str = "redis://redis:6379/1"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
