from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-me"


class Settings(BaseSettings):
    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"
    cors_allow_origins: list[str] = ["*"]
    api_version_prefix: str = "/api/v1"

    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "student_records"
    mongodb_collection: str = "students"
    student_store_backend: str = "mongo"
    store_timeout_ms: int = 5000

    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60
    password_hash_rounds: int = 29000

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


def validate_runtime_config(config: Settings) -> None:
    if config.app_env.lower() == "production" and config.jwt_secret == DEFAULT_JWT_SECRET:
        raise RuntimeError("JWT_SECRET must be set in production.")
    if config.store_timeout_ms <= 0:
        raise RuntimeError("STORE_TIMEOUT_MS must be a positive number of milliseconds.")


settings = Settings()
