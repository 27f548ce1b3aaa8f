"""Application configuration using pydantic-settings."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_env: str = "development"
    app_debug: bool = True

    # Marketplace backend (authoritative category store)
    marketplace_api_base_url: str = "http://localhost:5000/api/v1"
    marketplace_api_token: str = ""  # forwarded as a bearer token when set
    marketplace_timeout: float = 15.0  # seconds per request

    # Category tree
    category_page_size: int = 50  # tree view loads a larger page than the list views
    category_sort_by: str = "sortOrder"

    # CORS
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def admin_api_url(self) -> str:
        return f"{self.marketplace_api_base_url.rstrip('/')}/admin"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
