"""Deterministic embedding engine for tests."""

from typing import Callable, Optional

from langchain_core.embeddings import Embeddings


class ScriptedEmbeddings(Embeddings):
    """Embeddings that come from a lookup table, recording every call.

    Texts missing from ``vectors`` are embedded with ``default``; a ``default``
    of None makes missing texts map to an empty vector ("no result").

    Args:
        vectors: Exact text -> vector mapping
        default: Fallback function for unmapped texts
        fail_batches: 1-based numbers of ``embed_documents`` calls that raise
    """

    def __init__(
        self,
        vectors: Optional[dict[str, list[float]]] = None,
        default: Optional[Callable[[str], list[float]]] = lambda text: [float(len(text)), 1.0],
        fail_batches: tuple[int, ...] = (),
    ):
        self.vectors = dict(vectors or {})
        self.default = default
        self.fail_batches = set(fail_batches)
        self.document_calls: list[list[str]] = []
        self.query_calls: list[str] = []

    def _vector(self, text: str) -> list[float]:
        if text in self.vectors:
            return list(self.vectors[text])
        if self.default is None:
            return []
        return self.default(text)

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls.append(list(texts))
        if len(self.document_calls) in self.fail_batches:
            raise RuntimeError(f"quota exceeded on batch {len(self.document_calls)}")
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.query_calls.append(text)
        return self._vector(text)

    @property
    def call_count(self) -> int:
        return len(self.document_calls) + len(self.query_calls)
