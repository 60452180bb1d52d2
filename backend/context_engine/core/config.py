"""
Application configuration.
Values loaded from environment variables or a local .env file.
"""
from typing import List
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Server
    HOST: str = "127.0.0.1"
    PORT: int = 3000

    # Chunking
    # CHUNK_OVERLAP must stay below MAX_CHUNK_SIZE or chunking cannot advance
    MAX_CHUNK_SIZE: int = 1000
    CHUNK_OVERLAP: int = 200

    # Embedding
    EMBEDDING_DIMENSION: int = 768

    # Search
    SEARCH_DEFAULT_LIMIT: int = 10

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or console

    # Search Debug Logging - logs query text and per-result scores
    # WARNING: query text may contain sensitive data
    SEARCH_DEBUG_LOG: bool = False
    # Maximum length of query/content text to log (0 = unlimited)
    SEARCH_DEBUG_LOG_MAX_LENGTH: int = 200

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
