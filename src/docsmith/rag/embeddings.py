"""Embedding engines behind LangChain's ``Embeddings`` interface.

``embed_documents`` is the batch call (same length, same order as its input);
``embed_query`` is the single-string call used for retrieval.
"""

from typing import Optional

from langchain_core.embeddings import Embeddings

from ..config import ConfigurationError, config
from ..logging_config import get_logger

logger = get_logger(__name__)


class SentenceTransformerEmbeddings(Embeddings):
    """Local embeddings from a sentence-transformers model.

    The model is loaded on first use, so constructing this is cheap.
    Default all-MiniLM-L6-v2:
    - Fast (runs on CPU)
    - 384-dimensional embeddings
    - Good for code and technical text
    """

    def __init__(self, model_name: str = "sentence-transformers/all-MiniLM-L6-v2"):
        self.model_name = model_name
        self._model = None

    def _get_model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer

            logger.info("Loading embedding model %s (first time only)...", self.model_name)
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        embeddings = self._get_model().encode(texts, show_progress_bar=len(texts) > 50)
        return embeddings.tolist()

    def embed_query(self, text: str) -> list[float]:
        return self.embed_documents([text])[0]


def get_embeddings(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    base_url: Optional[str] = None,
) -> Embeddings:
    """Build the configured embedding engine.

    Args:
        provider: "local" (sentence-transformers) or "openai" (OpenAI-compatible API)
        model: Model name; defaults to config["embeddings"]["model"]
        base_url: API base URL for the openai provider

    Returns:
        An Embeddings instance

    Raises:
        ConfigurationError: If the provider is unknown
    """
    settings = config["embeddings"]
    provider = (provider or settings["provider"]).lower()
    model = model or settings["model"]

    if provider == "local":
        return SentenceTransformerEmbeddings(model)
    if provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        kwargs = {"model": model}
        url = base_url or settings.get("base_url")
        if url:
            kwargs["base_url"] = url
        return OpenAIEmbeddings(**kwargs)
    raise ConfigurationError(f"Unknown embedding provider: {provider!r}")
