"""
Run the DMD Companion CLI.

Usage:
    python run_cli.py [--lang zh|en] [COMMAND] [OPTIONS]

Commands:
    login       Sign in with one of the demo accounts (DMDsetup#1 .. DMDsetup#9)
    logout      Sign out (profile and saved inquiries are kept)
    whoami      Show the currently logged-in user
    profile     Show your patient profile
    setup       Fill in or edit your patient profile
    articles    Recent PubMed articles        (--months 1|3|12)
    trials      Recruiting / active clinical trials
    drugs       FDA-approved DMD therapies
    interpret   AI analysis + follow-up chat  (article|trial|drug ID)
    inquiries   List saved inquiries
    inquiry     Show one saved inquiry
    forget      Delete one saved inquiry

Examples:
    python run_cli.py login
    python run_cli.py setup
    python run_cli.py articles --months 3
    python run_cli.py interpret drug Elevidys

Environment variables (all optional):
    LLM_PROVIDER        "openai", "groq", or "ollama"
    LLM_MODEL_OPENAI    Model name when LLM_PROVIDER=openai (default: gpt-4.1-mini)
    LLM_MODEL_GROQ      Model name when LLM_PROVIDER=groq (default: llama-3.3-70b-versatile)
    LLM_MODEL_OLLAMA    Model name when LLM_PROVIDER=ollama (default: llama3.2)
    OPENAI_API_KEY      Required when LLM_PROVIDER=openai
    GROQ_API_KEY        Required when LLM_PROVIDER=groq
    OLLAMA_BASE_URL     Ollama server URL (default: http://localhost:11434/)
    PORTAL_LANGUAGE     Answer language, "zh" or "en" (default: zh)
    PUBMED_API_KEY      NCBI API key (raises the E-utilities rate limit)
    PUBMED_EMAIL        Contact e-mail sent to NCBI
    REQUEST_TIMEOUT     Seconds per upstream HTTP request (default: 30)
    DB_PATH             SQLite database file path (default: dmd_companion.db)
    SIMULATE_LATENCY    Set to 0 to skip the simulated account-service delays
    LOG_LEVEL           Logging level (default: INFO)
"""

import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

from adapters.cli.main import main

if __name__ == "__main__":
    main()
