"""Chunk, embed and retrieve: semantic grounding over repository text."""

from .chunker import TextChunk, chunk_text, chunk_record, chunk_records
from .embeddings import SentenceTransformerEmbeddings, get_embeddings
from .indexer import EmbeddingIndexer, IndexResult, index_reference_repo
from .retriever import RetrievalEngine, cosine_similarity, format_contexts_for_prompt

__all__ = [
    "TextChunk",
    "chunk_text",
    "chunk_record",
    "chunk_records",
    "SentenceTransformerEmbeddings",
    "get_embeddings",
    "EmbeddingIndexer",
    "IndexResult",
    "index_reference_repo",
    "RetrievalEngine",
    "cosine_similarity",
    "format_contexts_for_prompt",
]
