from pathlib import Path

from pydantic_settings import BaseSettings

ROOT_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    # General
    app_name: str = "LLM Chat Router"
    environment: str = "dev"

    # Default system instruction injected when the client sends none
    system_prompt: str = (
        "You are a helpful, friendly assistant. "
        "Provide concise and accurate responses."
    )

    # Primary backend: Workers AI REST API
    cloudflare_account_id: str | None = None
    cloudflare_api_token: str | None = None
    workers_ai_model: str = "@cf/meta/llama-3.3-70b-instruct-fp8-fast"

    # Secondary backend: Gemini generateContent
    gemini_api_key: str | None = None
    gemini_endpoint: str = (
        "https://generativelanguage.googleapis.com/v1beta/models/"
        "gemini-2.0-flash:generateContent"
    )

    # Upstream timeouts (seconds)
    upstream_connect_timeout: float = 10.0
    upstream_read_timeout: float = 60.0

    # Paths
    public_dir: Path = ROOT_DIR / "public"
    log_dir: Path = ROOT_DIR / "logs"

    class Config:
        env_file = ".env"


settings = Settings()
