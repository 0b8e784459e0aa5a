from __future__ import annotations

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_SECRET_KEY = "change-me"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    environment: str = "dev"
    secret_key: str = _DEFAULT_SECRET_KEY

    database_url: str = "sqlite:///./rwandabill.db"

    access_token_exp_minutes: int = 60 * 24

    # Anonymous super-admin signup is only honoured while no super-admin exists.
    allow_super_admin_bootstrap: bool = True
    init_super_admin_email: str | None = None
    init_super_admin_password: str | None = None
    init_super_admin_full_name: str = "Super Admin"

    cors_origins: list[str] = [
        "http://localhost:8080",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    @model_validator(mode="after")
    def _check_secret_key(self) -> Settings:
        if self.environment == "prod" and self.secret_key == _DEFAULT_SECRET_KEY:
            raise ValueError("SECRET_KEY must be set in production")
        return self


settings = Settings()
