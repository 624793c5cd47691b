from pydantic import model_validator
from pydantic_settings import BaseSettings

_DEV_SECRET_KEY = "dev-secret-key-change-in-production"


class Settings(BaseSettings):
    # App
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "text"  # "text" or "json"
    secret_key: str = _DEV_SECRET_KEY
    access_token_expire_minutes: int = 480

    # Data source ("mock" = in-memory seed data, "http" = core insurance API)
    data_source: str = "mock"
    core_api_url: str = "http://localhost:8000/api"
    core_api_timeout_seconds: float = 30.0
    mock_latency_ms: int = 0

    # Session persistence ("redis" or "memory")
    session_backend: str = "redis"
    redis_url: str = "redis://localhost:6379/0"
    session_key_prefix: str = "console:session"
    session_ttl_seconds: int = 8 * 3600
    session_cookie_name: str = "console_session"
    session_cookie_secure: bool = False

    # Security
    allowed_origins: str = "http://localhost:3000,http://localhost:5173,http://localhost"
    rate_limit_enabled: bool = True
    login_rate_limit_per_minute: int = 10
    demo_login_enabled: bool = True

    model_config = {"env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _validate_production(self):
        if self.environment == "production":
            if self.secret_key == _DEV_SECRET_KEY:
                raise ValueError(
                    "Production requires a non-default SECRET_KEY"
                )
            if self.data_source == "mock":
                raise ValueError(
                    "Production must not serve the mock data source"
                )
            if self.session_backend == "memory":
                raise ValueError(
                    "Production requires the redis session backend"
                )
            if self.demo_login_enabled:
                raise ValueError(
                    "Production must disable demo login (DEMO_LOGIN_ENABLED=false)"
                )
        return self


settings = Settings()
