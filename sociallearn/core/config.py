from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SOCIALLEARN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "SocialLearn Index"
    debug: bool = False
    log_level: str = "INFO"
    api_v1_prefix: str = "/api/v1"

    database_url: str = "sqlite:///./sociallearn.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10

    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    default_admin_email: str = "admin@sociallearn.local"
    default_admin_password: str = "Admin12345"
    default_admin_name: str = "Platform Admin"

    homepage_top_n: int = 5
    bulk_upload_max_bytes: int = 10 * 1024 * 1024
    bulk_upload_error_limit: int = 10


settings = Settings()
