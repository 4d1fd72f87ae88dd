from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ACCESS_SECRET = "change-me-docsearch-access-token-secret"


class Settings(BaseSettings):

    model_config = SettingsConfigDict(env_prefix="DOCSEARCH_", env_file=".env", extra="ignore")

    # Embeddings: "openai" (HTTP provider) or "local" (sentence-transformers)
    embedding_backend: str = "openai"
    embedding_api_key: str = ""
    embedding_base_url: str = "https://api.openai.com/v1"
    embedding_model: str = "text-embedding-3-small"
    embedding_timeout: float = 30.0
    local_embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"

    # Summary and query enhancement hooks
    llm_enabled: bool = False
    llm_base_url: str = "http://localhost:11434/v1"
    llm_api_key: str = "ollama"
    llm_model: str = "qwen2.5:7b"
    llm_max_tokens: int = 64
    llm_temperature: float = 0.3
    summary_max_chars: int = 1500

    # Scheduler
    batch_size: int = 5
    batch_pause: float = 0.1

    # Search
    min_query_length: int = 3
    debounce_seconds: float = 0.8

    # Ingestion
    ingest_concurrency: int = 4
    embed_on_add: bool = False

    # Storage
    store_path: str = "./data/documents.json"
    persist_on_mutate: bool = True
    persist_delay: float = 0.5

    # Resource access
    access_secret: str = DEFAULT_ACCESS_SECRET
    access_roots: list[str] = []

    log_level: str = "INFO"


settings = Settings()
