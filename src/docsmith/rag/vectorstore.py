"""Persistence of VectorChunk indexes in a ChromaDB collection."""

from pathlib import Path
from typing import Iterable, Optional

import chromadb
from chromadb.config import Settings

from ..logging_config import get_logger
from ..models import ChunkType, VectorChunk

logger = get_logger(__name__)

COLLECTION_NAME = "vector_chunks"


def get_vectorstore(persist_dir: str | Path) -> chromadb.Collection:
    """Get or create the ChromaDB collection that stores chunks.

    Args:
        persist_dir: Directory to persist the ChromaDB database

    Returns:
        ChromaDB Collection instance
    """
    persist_dir = Path(persist_dir)
    persist_dir.mkdir(parents=True, exist_ok=True)

    client = chromadb.PersistentClient(
        path=str(persist_dir),
        settings=Settings(
            anonymized_telemetry=False,
            allow_reset=True,
        )
    )

    # Embeddings are supplied by us; the space only matters for chroma's own queries
    return client.get_or_create_collection(
        name=COLLECTION_NAME,
        metadata={"hnsw:space": "cosine"},
    )


def save_chunks(collection: chromadb.Collection, chunks: Iterable[VectorChunk]) -> int:
    """Upsert chunks into the collection.

    Returns:
        Number of chunks written
    """
    chunks = list(chunks)
    if not chunks:
        return 0

    collection.upsert(
        ids=[c.id for c in chunks],
        documents=[c.text for c in chunks],
        embeddings=[list(c.embedding) for c in chunks],
        metadatas=[{"source_file": c.source_file, "type": c.type.value} for c in chunks],
    )
    return len(chunks)


def load_chunks(collection: chromadb.Collection) -> list[VectorChunk]:
    """Read every stored chunk back as VectorChunks, in the order they were indexed.

    Chroma stores embeddings as float32, so reloaded vectors match the saved
    ones to about seven significant digits, not exactly.
    """
    results = collection.get(include=["documents", "metadatas", "embeddings"])
    ids = results.get("ids") or []
    documents = results.get("documents")
    metadatas = results.get("metadatas")
    embeddings = results.get("embeddings")
    if documents is None or metadatas is None or embeddings is None:
        return []

    chunks = []
    for i, chunk_id in enumerate(ids):
        metadata = metadatas[i] or {}
        try:
            chunk_type = ChunkType(metadata.get("type", ChunkType.MAIN.value))
        except ValueError:
            logger.warning("Chunk %s has unknown type %r, treating as MAIN", chunk_id, metadata.get("type"))
            chunk_type = ChunkType.MAIN
        chunks.append(VectorChunk(
            id=chunk_id,
            text=documents[i] or "",
            source_file=metadata.get("source_file", ""),
            embedding=tuple(float(v) for v in embeddings[i]),
            type=chunk_type,
        ))
    chunks.sort(key=lambda c: _index_order(c.id))
    return chunks


def _index_order(chunk_id: str) -> tuple:
    """Sort key for ids of the form TYPE_<run ms>_<offset>: run, then position."""
    tag, _, rest = chunk_id.partition("_")
    stamp, _, offset = rest.partition("_")
    if stamp.isdigit() and offset.isdigit():
        return (0, int(stamp), int(offset), tag)
    return (1, 0, 0, chunk_id)


def delete_chunks_by_source(
    collection: chromadb.Collection,
    source_file: str,
    chunk_type: Optional[ChunkType] = None,
) -> None:
    """Delete the chunks that came from one file, optionally only those of one type."""
    if chunk_type is None:
        collection.delete(where={"source_file": source_file})
    else:
        collection.delete(where={"$and": [{"source_file": source_file}, {"type": chunk_type.value}]})


def get_store_stats(collection: chromadb.Collection) -> dict:
    """Count stored chunks overall, per type and per source file."""
    results = collection.get(include=["metadatas"])
    by_type: dict[str, int] = {}
    sources = set()
    for metadata in results.get("metadatas") or []:
        metadata = metadata or {}
        chunk_type = metadata.get("type", ChunkType.MAIN.value)
        by_type[chunk_type] = by_type.get(chunk_type, 0) + 1
        if metadata.get("source_file"):
            sources.add(metadata["source_file"])
    return {
        "total_chunks": collection.count(),
        "total_files": len(sources),
        "by_type": by_type,
    }
