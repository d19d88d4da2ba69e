"""Application settings loaded from environment variables via pydantic-settings.

Settings are read from (highest priority first):

  1. Environment variables, e.g. ``OPENAI_API_KEY=sk-abc123``
  2. A ``.env`` file in the working directory
  3. The defaults declared below

Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY`` automatically.
:func:`sqldocs.config.loader.load_settings` adds ``config/config.yaml`` as
a layer between the ``.env`` file and the defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sqldocs.models.chunking import ChunkingStrategy

EmbeddingProviderName = Literal["auto", "openai", "fastembed", "nomic", "hash", "none"]


class Settings(BaseSettings):
    """sqldocs settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Embedding providers ===
    # "auto" tries OpenAI (if a key is set), then fastembed, then Nomic/Ollama,
    # and runs keyword-only when none is available.  "hash" is never picked
    # automatically.
    embedding_provider: EmbeddingProviderName = "auto"
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoints (TogetherAI, Azure proxies, ...)
    openai_embedding_model: str = ""
    fastembed_model: str = ""
    ollama_base_url: str = "http://localhost:11434"

    # === Documentation corpus ===
    docs_dir: str = "./data/docs"

    # === Retrieval ===
    use_vector_search: bool = True
    semantic_weight: float = 0.7
    keyword_weight: float = 0.3
    default_max_docs: int = Field(default=3, gt=0)

    # === Chunking ===
    chunk_large_docs: bool = True
    chunking_strategy: ChunkingStrategy = ChunkingStrategy.PARAGRAPH
    max_chunk_size: int = Field(default=1000, gt=0)
    min_chunk_size: int = Field(default=100, ge=0)
    chunk_overlap: int = Field(default=200, ge=0)

    # === Caching ===
    snapshot_cache_dir: str = "./.sqldocs-cache"
    snapshot_cache_ttl: int = 7 * 24 * 60 * 60  # seconds
    query_cache_size: int = 512
    query_cache_ttl: int = 3600

    # === App ===
    app_env: str = "development"
    log_level: str = "INFO"
