"""
Purpose:
- Centralized configuration using pydantic-settings.
- Reads from environment variables and optional .env file.
- Keeps API keys, timeouts and storage location tunable without code changes.
"""

# --- Purpose: robust settings with env-file support and safe handling of extra keys.
from typing import Optional
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Pydantic v2 config (env file + ignore unexpected env vars)
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",          # <-- prevents crashes if extra env vars exist
    )

    # API host/port
    host: str = Field(default="0.0.0.0", description="Bind address for FastAPI/Uvicorn")
    port: int = Field(default=8000, description="Port for FastAPI/Uvicorn")

    # CORS
    cors_allow_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed origins for browser apps"
    )

    # Storage
    database_url: str = Field(
        default="sqlite:///./data/websum.db",
        description="SQLAlchemy URL for searches, results and user profiles"
    )

    log_level: str = Field(default="INFO")

    # --- Search config ---
    # SerpAPI key; SERP_API_KEY wins over SEARCH_API_KEY. Absent -> built-in sample results.
    serpapi_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SERP_API_KEY", "SEARCH_API_KEY", "serpapi_api_key"),
    )
    search_max_results: int = Field(default=5, ge=1, le=10, description="Candidates fetched per search")
    search_timeout: float = Field(default=12.0)

    # --- Scraper config ---
    scrape_timeout: float = Field(default=10.0, description="Hard timeout per page fetch (seconds)")
    scrape_max_chars: int = Field(default=8000, description="Cap on extracted text handed to the summarizer")
    scrape_user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
        )
    )

    # --- OpenAI summarizer ---
    # These can come from env (.env or shell): OPENAI_API_KEY, OPENAI_KEY
    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY", "OPENAI_KEY", "openai_api_key"),
    )
    openai_model: str = Field(default="gpt-3.5-turbo")
    openai_max_tokens: int = Field(default=300)
    openai_temperature: float = Field(default=0.3)
    summary_prompt_chars: int = Field(default=4000, description="Content budget inside the prompt")

    # ---- Accounts ----
    free_searches_limit: int = Field(default=10, description="Monthly searches for new free-tier profiles")

settings = Settings()
