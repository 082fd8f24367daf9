from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_name: str = "benchscrape"
    log_level: str = "INFO"

    # Gemini
    google_ai_api_key: str = ""  # falls back to GEMINI_API_KEY / GOOGLE_API_KEY via the SDK
    extraction_model: str = "gemini-3-flash-preview"
    reconcile_model: str = "gemini-3-pro-preview"
    llm_timeout_ms: int | None = None  # None = SDK default
    extraction_temperature: float | None = None  # None = model default, keeps runs independent

    # Pipeline
    num_extractions: int = 5
    results_dir: str = "results"
    strict_validation: bool = False  # validate the reconciled report before writing

    # Attachment downloads
    http_user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
