from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class Settings:
    # Default DB path used by the CLI.
    db_path: str = os.getenv("HOMEGRAPH_DB_PATH", "./data/household.db")

    # Recency window applied to tasks, events, spending and visits.
    window_days: int = int(os.getenv("HOMEGRAPH_WINDOW_DAYS", "180"))

    # "", "anthropic", "openai", "ollama" or "none". Empty means pick from credentials.
    llm_provider: str = os.getenv("HOMEGRAPH_LLM_PROVIDER", "")
    llm_timeout_s: float = float(os.getenv("HOMEGRAPH_LLM_TIMEOUT_S", "60"))

    # Anthropic
    anthropic_api_key: str = os.getenv("ANTHROPIC_API_KEY", "")
    anthropic_model: str = os.getenv("HOMEGRAPH_ANTHROPIC_MODEL", "claude-sonnet-4-20250514")

    # OpenAI (or any compatible /chat/completions endpoint)
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
    openai_model: str = os.getenv("HOMEGRAPH_OPENAI_MODEL", "gpt-4o-mini")
    openai_base_url: str = os.getenv("HOMEGRAPH_OPENAI_BASE_URL", "https://api.openai.com/v1")

    # Ollama; only used when a model is named.
    ollama_base_url: str = os.getenv("HOMEGRAPH_OLLAMA_BASE_URL", "http://localhost:11434")
    ollama_model: str = os.getenv("HOMEGRAPH_OLLAMA_MODEL", "")

    log_level: str = os.getenv("HOMEGRAPH_LOG_LEVEL", "WARNING")
