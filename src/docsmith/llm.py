"""Chat model configuration for an OpenAI-compatible endpoint."""

from typing import Optional

from langchain_core.globals import set_debug, set_verbose
from langchain_openai import ChatOpenAI

from .config import config
from .logging_config import get_logger

logger = get_logger(__name__)


def get_llm(
    model: Optional[str] = None,
    base_url: Optional[str] = None,
    temperature: Optional[float] = None,
    verbose: Optional[bool] = None,
    debug: Optional[bool] = None,
) -> ChatOpenAI:
    """Get a configured ChatOpenAI instance.

    The server must return tool calls in the ``tool_calls`` property of the
    response so LangChain can surface them on the AIMessage.

    Args:
        model: Model name; defaults to config["llm"]["model"]
        base_url: OpenAI-compatible API base URL
        temperature: Sampling temperature (low for factual extraction)
        verbose: Enable LangChain verbose output
        debug: Enable LangChain debug output

    Returns:
        Configured ChatOpenAI instance
    """
    settings = config["llm"]
    verbose = config["verbose"] if verbose is None else verbose
    debug = config["debug"] if debug is None else debug

    llm = ChatOpenAI(
        model=model or settings["model"],
        base_url=base_url or settings["base_url"],
        api_key=settings.get("api_key") or "not-needed",
        max_tokens=settings["max_tokens"],
        temperature=settings["temperature"] if temperature is None else temperature,
        verbose=verbose,
    )

    if verbose:
        set_verbose(True)
    if debug:
        set_debug(True)
        logger.info("LangChain debug logging enabled")

    return llm


def get_drafting_llm() -> ChatOpenAI:
    """Faster model for drafting and refinement; falls back to the analysis model."""
    return get_llm(model=config["llm"].get("drafting_model"), temperature=0.7)
