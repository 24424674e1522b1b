"""
infrastructure.config - Typed, injectable configuration.

A frozen dataclass that can be constructed from the environment or passed
explicitly in tests. No module-level globals.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Centralized configuration for the DMD companion.

    Construct via from_env() or pass explicitly in tests.
    """
    project_root: Path

    # ── Centralized LLM Provider ────────────────────────────────
    # One setting controls every LLM call. Allowed: "openai", "groq", "ollama"
    llm_provider: str = "ollama"

    # Model names; only the one matching llm_provider is used.
    llm_model_ollama: str = "llama3.2"
    llm_model_openai: str = "gpt-4.1-mini"
    llm_model_groq: str = "llama-3.3-70b-versatile"
    llm_temperature: float = 0.3

    # Connection details
    ollama_base_url: str = "http://localhost:11434/"
    groq_api_key: str = ""
    openai_api_key: str = ""

    # Answer / UI language: "zh" or "en"
    language: str = "zh"

    # Content providers
    disease_term: str = "Duchenne Muscular Dystrophy"
    pubmed_base_url: str = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
    pubmed_api_key: str = ""
    pubmed_email: str = ""
    pubmed_max_results: int = 15
    trials_base_url: str = "https://clinicaltrials.gov/api/v2/studies"
    trials_page_size: int = 25
    request_timeout: float = 30.0

    # Persistence
    db_path: str = "dmd_companion.db"
    current_user_key: str = "dmd_current_user"
    user_key_prefix: str = "dmd_db_"

    # Simulated latency of the account operations (seconds)
    simulate_latency: bool = True
    login_latency: float = 0.6
    logout_latency: float = 0.2
    profile_save_latency: float = 0.3

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

    @property
    def active_llm_model(self) -> str:
        """Return the model name for the currently active LLM provider."""
        if self.llm_provider == "openai":
            return self.llm_model_openai
        elif self.llm_provider == "groq":
            return self.llm_model_groq
        return self.llm_model_ollama

    @classmethod
    def from_env(cls, project_root: Optional[Path] = None) -> Settings:
        """Build Settings from the environment (and a .env file if present)."""
        from dotenv import load_dotenv
        load_dotenv()

        root = project_root or Path(__file__).resolve().parent.parent.parent

        return cls(
            project_root=root,

            llm_provider=os.getenv("LLM_PROVIDER", "ollama"),
            llm_model_ollama=os.getenv("LLM_MODEL_OLLAMA", "llama3.2"),
            llm_model_openai=os.getenv("LLM_MODEL_OPENAI", "gpt-4.1-mini"),
            llm_model_groq=os.getenv("LLM_MODEL_GROQ", "llama-3.3-70b-versatile"),
            llm_temperature=float(os.getenv("LLM_TEMPERATURE", "0.3")),
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/"),
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),

            language=os.getenv("PORTAL_LANGUAGE", "zh"),

            pubmed_api_key=os.getenv("PUBMED_API_KEY", ""),
            pubmed_email=os.getenv("PUBMED_EMAIL", ""),
            pubmed_max_results=int(os.getenv("PUBMED_MAX_RESULTS", "15")),
            trials_page_size=int(os.getenv("TRIALS_PAGE_SIZE", "25")),
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "30")),

            db_path=os.getenv("DB_PATH", str(root / "dmd_companion.db")),
            simulate_latency=_env_bool("SIMULATE_LATENCY", True),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
