from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "dev"
    auth_mode: str = "none"  # none | forwardauth
    root_path: str = ""
    log_level: str = "INFO"

    postgres_db: str = "feature_tracker"
    postgres_user: str = "tracker_user"
    postgres_password: str = "tracker_pass"
    postgres_host: str = "db"
    postgres_port: int = 5432

    # Roadmap board
    roadmap_enabled: bool = True
    merge_allow_duplicate_target: bool = True

    # Contention handling for board and merge transactions
    db_retry_attempts: int = 3
    db_retry_backoff_ms: int = 50
    db_retry_backoff_max_ms: int = 1000
    db_lock_timeout_ms: int = 2000

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


settings = Settings()
