"""Cosine-similarity retrieval over an in-memory VectorChunk index."""

import math
from typing import Sequence

from langchain_core.embeddings import Embeddings

from ..logging_config import get_logger
from ..models import VectorChunk

logger = get_logger(__name__)

DEFAULT_TOP_K = 5


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """dot(a, b) / (|a| * |b|).

    A zero-magnitude vector has no direction, so its similarity to anything
    is 0.0. Vectors of different length are not comparable and also score 0.0.
    """
    if len(a) != len(b):
        return 0.0
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))


def rank(query_vector: Sequence[float], index: Sequence[VectorChunk]) -> list[tuple[VectorChunk, float]]:
    """Score every chunk against the query, best first.

    ``sorted`` is stable, so chunks with equal scores keep their index order.
    """
    scored = [(chunk, cosine_similarity(query_vector, chunk.embedding)) for chunk in index]
    return sorted(scored, key=lambda pair: pair[1], reverse=True)


class RetrievalEngine:
    """Ranks a vector index against a text query."""

    def __init__(self, embeddings: Embeddings):
        self.embeddings = embeddings

    def retrieve(
        self,
        query: str,
        index: Sequence[VectorChunk],
        top_k: int = DEFAULT_TOP_K,
    ) -> list[VectorChunk]:
        """Return the ``top_k`` chunks most similar to ``query``.

        An empty index returns [] without calling the embedding engine. A
        missing query vector, or a failed embedding call, also returns []:
        the caller simply has no grounding for this step.
        """
        if not index or top_k <= 0:
            return []

        try:
            query_vector = self.embeddings.embed_query(query)
        except Exception as e:
            logger.warning("Query embedding failed: %s", e)
            return []

        if not query_vector:
            logger.warning("No embedding returned for query: %s", query[:80])
            return []

        return [chunk for chunk, _ in rank(query_vector, index)[:top_k]]


def format_contexts_for_prompt(
    chunks: Sequence[VectorChunk],
    max_chars: int = 16000,
) -> str:
    """Format retrieved chunks for inclusion in a generation prompt.

    Args:
        chunks: Retrieved chunks, most relevant first
        max_chars: Budget for the rendered text

    Returns:
        Formatted string; empty when there is nothing to ground on
    """
    if not chunks:
        return ""

    lines = []
    total_chars = 0

    for i, chunk in enumerate(chunks, 1):
        header = f"--- {i}. {chunk.source_file} ({chunk.type.value.lower()}) ---"

        if total_chars + len(header) + len(chunk.text) > max_chars:
            lines.append(f"... ({len(chunks) - i + 1} more snippets truncated)")
            break

        lines.append(header)
        lines.append(chunk.text)
        total_chars += len(header) + len(chunk.text)

    return "\n".join(lines)
