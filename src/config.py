"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "trancheready"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = 3000

    # Evidence packs, one directory per run
    runs_dir: str = "runs"
    max_upload_bytes: int = 50 * 1024 * 1024

    organisation_name: str = "Your Organisation"
    default_sector: str = "generic"

    # Optional case narratives (OpenAI-compatible chat completions API)
    openai_api_key: str | None = None
    narrative_base_url: str = "https://api.openai.com/v1"
    narrative_model: str = "gpt-4o-mini"
    narrative_timeout_seconds: float = 15.0

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}


settings = Settings()
