from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    server_host: str = "0.0.0.0"
    server_port: int = 8080
    # Optional full database URL override (useful for tests)
    database_url: str = ""
    db_host: str = "db"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_name: str = "salesdash"
    # Database connection pool settings (ignored for sqlite)
    db_pool_size: int = 20
    db_max_overflow: int = 30
    db_pool_recycle: int = 3600  # Recycle connections after 1 hour
    db_pool_pre_ping: bool = True
    jwt_secret: str = "changeme"
    # Access token lifetime (seconds). Default: 1 day, matching the dashboard session cookie
    access_token_ttl_seconds: int = 86400
    auth_cookie_name: str = "auth_token"
    # Effective permission sets are cached per user for this long
    permission_cache_ttl_seconds: int = 300
    # Redis (empty -> process-local in-memory cache)
    redis_url: str = ""
    # Where gated pages send users that fail a permission check
    access_denied_url: str = "/access-denied"
    login_url: str = "/login"
    # Seed system permissions/roles during startup
    seed_on_startup: bool = True
    # Optional bootstrap administrator created by the seed when both are set
    admin_email: str = ""
    admin_password: str = ""
    admin_name: str = "Administrator"


# module-level settings instance for convenience across the app
settings = Settings()
