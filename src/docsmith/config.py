import json
import os

from .logging_config import get_logger

logger = get_logger(__name__)
config: dict = None


class ConfigurationError(ValueError):
    """Raised when configuration names something that cannot be built."""


def _merge_section(target: dict, overlay: dict) -> None:
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            target[key].update(value)
        else:
            target[key] = value


def _initialise_config(path: str = "config.json") -> dict:
    """Get application configuration.

    Loads configuration from a JSON file and also optionally from env vars
    """

    config = {
        "log_level": "INFO",
        "log_file": None,
        "llm": {
            "model": "gpt-4o-mini",
            "base_url": "http://127.0.0.1:5000/v1",
            "api_key": "not-needed",
            "max_tokens": 16384,
            "temperature": 0.2,
            "drafting_model": None,
        },
        "embeddings": {
            "provider": "local",
            "model": "sentence-transformers/all-MiniLM-L6-v2",
            "base_url": None,
        },
        "rag": {
            "chunk_size": 1500,
            "batch_size": 20,
            "top_k": 5,
            "persist_dir": ".docsmith_index",
        },
        "orchestration": {
            "turn_budget": 15,
        },
    }

    # Attempt to load config.json; allow missing files
    try:
        with open(path, "r", encoding="utf-8") as f:
            _merge_section(config, json.load(f))
    except Exception as e:
        logger.debug("Could not load %s: %s (using defaults)", path, e)

    if os.getenv("DOCSMITH_LLM_BASE_URL"):
        config["llm"]["base_url"] = os.getenv("DOCSMITH_LLM_BASE_URL")
    if os.getenv("DOCSMITH_LLM_MODEL"):
        config["llm"]["model"] = os.getenv("DOCSMITH_LLM_MODEL")
    if os.getenv("DOCSMITH_EMBEDDING_PROVIDER"):
        config["embeddings"]["provider"] = os.getenv("DOCSMITH_EMBEDDING_PROVIDER").lower()
    if os.getenv("DOCSMITH_EMBEDDING_MODEL"):
        config["embeddings"]["model"] = os.getenv("DOCSMITH_EMBEDDING_MODEL")
    if os.getenv("DOCSMITH_TURN_BUDGET"):
        try:
            config["orchestration"]["turn_budget"] = int(os.getenv("DOCSMITH_TURN_BUDGET"))
        except ValueError:
            logger.warning("Ignoring non-integer DOCSMITH_TURN_BUDGET=%r", os.getenv("DOCSMITH_TURN_BUDGET"))

    # Log level from env (default INFO)
    if os.getenv("DOCSMITH_LOG_LEVEL"):
        config["log_level"] = os.getenv("DOCSMITH_LOG_LEVEL").upper()
    if os.getenv("DOCSMITH_LOG_FILE") is not None:
        config["log_file"] = os.getenv("DOCSMITH_LOG_FILE")

    # Derive verbose/debug from log level for LangChain
    config["verbose"] = config["log_level"] == "DEBUG"
    config["debug"] = config["log_level"] == "DEBUG"

    return config

config = _initialise_config()
