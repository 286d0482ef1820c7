from pydantic_settings import BaseSettings

from app.services.errors import ConfigurationError


class Settings(BaseSettings):
    # Firecrawl (content enrichment)
    firecrawl_api_key: str = ""
    firecrawl_base_url: str = "https://api.firecrawl.dev"
    firecrawl_scrape_limit: str = "5"  # coerced by the enrichment stage

    # SearxNG
    searxng_base_url: str = ""
    searxng_api_key: str = ""
    searxng_language: str = ""
    searxng_safesearch: str = ""
    searxng_general_category: str = "general"
    searxng_news_category: str = "news"
    searxng_images_category: str = "images"

    # OpenAI-compatible generation
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_api_mode: str = "responses"  # responses | chat | completions
    generation_temperature: float = 0.7
    generation_max_retries: int = 2

    # Answer pipeline
    context_char_budget: int = 2000
    http_timeout_seconds: float = 30.0
    transient_event_backlog: int = 32

    # App
    cors_origins: str = "http://localhost:3000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    @property
    def searxng_root(self) -> str:
        return self.searxng_base_url.strip().rstrip("/")

    @property
    def firecrawl_root(self) -> str:
        return self.firecrawl_base_url.strip().rstrip("/")

    def require_configured(self) -> None:
        """Raise ConfigurationError for the first missing credential or endpoint."""
        if not self.firecrawl_api_key.strip():
            raise ConfigurationError("Firecrawl API key not configured")
        if not self.openai_api_key.strip():
            raise ConfigurationError("OpenAI API key not configured")
        if not self.searxng_root:
            raise ConfigurationError("SearxNG base URL not configured")


settings = Settings()
