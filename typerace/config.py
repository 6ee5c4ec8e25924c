from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    secret_key: str = "dev-secret-change-me"
    database_url: str = "sqlite:///./data/typerace.db"

    # Session token settings
    jwt_algorithm: str = "HS512"
    token_ttl_seconds: int = 60 * 60  # 1 hour
    token_sweep_interval_seconds: float = 1.0

    admin_usernames: list[str] = ["admin"]
    min_password_length: int = 4

    # Origins allowed to call the API from a browser (the static frontend)
    cors_origins: list[str] = ["http://localhost:8080"]

    class Config:
        env_file = ".env"


settings = Settings()
