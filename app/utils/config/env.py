from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "product-hunt"
    environment: str = "local"
    debug: bool = True
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:5173"]

    mongo_port: int = 27017
    mongo_host: str = "localhost"
    mongo_db: str = "products_hunt"
    mongo_password: str | None = None
    mongo_params: str | None = None
    mongo_user: str | None = None

    jwt_algorithm: str = "HS256"
    jwt_secret_key: str = "very-secret-key"
    session_token_expires_hours: int = 5
    token_cookie_name: str = "token"

    redis_db: int = 0
    redis_port: int = 6379
    redis_host: str = "localhost"
    redis_password: str | None = None

    vote_rate_limit_seconds: int = 2
    review_rate_limit_seconds: int = 30
    vote_reconcile_interval_seconds: int = 3600

    payment_api_base: str = "https://api.stripe.com"
    payment_secret_key: str = ""
    payment_currency: str = "usd"
    payment_timeout_seconds: float = 10.0

    default_page_size: int = 6
    max_page_size: int = 50

    model_config = SettingsConfigDict(env_file=(".env",), case_sensitive=True)

    @property
    def mongo_uri(self) -> str:
        auth = ""
        if self.mongo_user and self.mongo_password:
            auth = f"{self.mongo_user}:{self.mongo_password}@"
        params = self.mongo_params or "retryWrites=true&w=majority"
        return f"mongodb+srv://{auth}{self.mongo_host}/{self.mongo_db}?{params}"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cookie_secure(self) -> bool:
        return self.is_production

    @property
    def cookie_samesite(self) -> str:
        # Cross-site client in production needs "none", which browsers only accept with secure
        return "none" if self.is_production else "strict"


settings = Settings()
