from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str
    port: int
    debug: bool
    cors_origins: list[str] = []
    frontend_url: str  # Base URL used in confirmation and recovery links, e.g. https://blogs.example.com
    # Token signing; access and refresh tokens use independent secrets
    jwt_access_secret: str
    jwt_refresh_secret: str
    jwt_algorithm: str = "HS256"
    access_token_ttl_seconds: int = 60 * 60
    refresh_token_ttl_seconds: int = 7 * 24 * 60 * 60
    confirmation_code_ttl_seconds: int = 24 * 60 * 60
    recovery_code_ttl_seconds: int = 24 * 60 * 60
    bcrypt_rounds: int = 12
    cookie_secure: bool = True  # Secure flag on the refresh token cookie, disable only for plain HTTP development
    # Outgoing mail
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    email_from: str = "no-reply@localhost"
    # Per client IP and endpoint
    rate_limit_max_requests: int = 5
    rate_limit_window_seconds: int = 10

    model_config = {
        "env_file": [".env"],
        "env_prefix": "BLOGGERS_",
        "extra": "ignore",
    }
