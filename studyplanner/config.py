from pydantic_settings import BaseSettings
from typing import Optional
from pathlib import Path

# Get the project root directory (parent of studyplanner folder)
PROJECT_ROOT = Path(__file__).parent.parent

class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""
    database_url: str = f"sqlite:///{PROJECT_ROOT / 'studyplanner.db'}"

    # AI Provider Configuration
    ai_provider: str = "ollama"  # "ollama" or "claude"

    # Ollama settings (for local development)
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2:latest"

    # Claude API settings (for production)
    claude_api_key: str = ""
    claude_model: str = "claude-3-5-sonnet-20241022"

    llm_timeout_seconds: float = 120.0

    # Tokens are issued by the hosted auth provider, we only verify them
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_audience: Optional[str] = None

    # Object storage
    storage_dir: str = str(PROJECT_ROOT / "storage")
    max_upload_bytes: int = 50 * 1024 * 1024  # 50 MB

    # Text extraction limits
    min_text_chars: int = 50
    max_extracted_chars: int = 50000
    material_excerpt_chars: int = 3000
    materials_per_subject: int = 2

    # Identity used by the CLI and the Streamlit app
    local_user_id: str = "local-user"

    log_level: str = "INFO"

    class Config:
        env_file = str(PROJECT_ROOT / ".env")

settings = Settings()
