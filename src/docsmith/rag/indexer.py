"""Batched embedding of source corpora into VectorChunk indexes."""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from langchain_core.embeddings import Embeddings

from ..logging_config import get_logger
from ..models import ChunkType, ReferenceRepo, ReferenceStatus, ResultContext, SourceRecord, VectorChunk
from .chunker import DEFAULT_CHUNK_SIZE, TextChunk, chunk_records

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 20  # Embedding APIs cap inputs per request; 20 stays well inside

ProgressCallback = Callable[[int, int], None]


@dataclass
class IndexResult:
    """Outcome of one indexing run."""

    chunks: list[VectorChunk] = field(default_factory=list)
    processed: int = 0
    total: int = 0
    failed_batches: list[int] = field(default_factory=list)
    cancelled: bool = False

    @property
    def complete(self) -> bool:
        return not self.cancelled and not self.failed_batches

    def to_dict(self) -> dict:
        return {
            "chunks_created": len(self.chunks),
            "processed": self.processed,
            "total": self.total,
            "failed_batches": list(self.failed_batches),
            "cancelled": self.cancelled,
        }


def _batched(items: list[TextChunk], size: int) -> Iterable[tuple[int, list[TextChunk]]]:
    for start in range(0, len(items), size):
        yield start, items[start:start + size]


class EmbeddingIndexer:
    """Turns SourceRecord collections into VectorChunks via batched embedding calls.

    Batches run strictly one after another, so at most ``batch_size`` texts
    are in flight and progress is reported in batch order. A failing batch is
    logged and skipped; its chunks are absent from the result.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        batch_size: int = DEFAULT_BATCH_SIZE,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.embeddings = embeddings
        self.batch_size = batch_size
        self.chunk_size = chunk_size

    def index(
        self,
        records: Iterable[SourceRecord],
        tag: ChunkType = ChunkType.MAIN,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
        dimension: Optional[int] = None,
    ) -> IndexResult:
        """Chunk and embed records.

        Args:
            records: Corpus to index
            tag: MAIN or REFERENCE provenance for every produced chunk
            on_progress: Called with (processed, total) after each batch
            cancel_event: Checked before each batch; when set the run stops
                and returns what it has
            dimension: Expected embedding size, e.g. that of an index being
                appended to. Defaults to the size of the first vector returned.

        Returns:
            IndexResult with chunks in batch order, then position within batch
        """
        pairs = chunk_records(records, self.chunk_size)
        result = IndexResult(total=len(pairs))
        run_stamp = int(time.time() * 1000)

        logger.info("Indexing %s chunks (%s) in batches of %s", result.total, tag.value, self.batch_size)

        for start, batch in _batched(pairs, self.batch_size):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Indexing cancelled after %s/%s chunks", result.processed, result.total)
                result.cancelled = True
                break

            try:
                vectors = self.embeddings.embed_documents([p.text for p in batch])
            except Exception as e:
                logger.error("Embedding batch at offset %s failed: %s", start, e, exc_info=True)
                result.failed_batches.append(start)
                vectors = []

            for offset, (pair, vector) in enumerate(zip(batch, vectors)):
                if not vector:
                    continue
                if dimension is None:
                    dimension = len(vector)
                elif len(vector) != dimension:
                    logger.warning(
                        "Dropping chunk from %s: embedding size %s != index size %s",
                        pair.source_file, len(vector), dimension,
                    )
                    continue
                result.chunks.append(VectorChunk(
                    id=f"{tag.value}_{run_stamp}_{start + offset}",
                    text=pair.text,
                    source_file=pair.source_file,
                    embedding=tuple(float(v) for v in vector),
                    type=tag,
                ))

            result.processed += len(batch)
            logger.debug("Embedded %s/%s chunks", result.processed, result.total)
            if on_progress:
                on_progress(result.processed, result.total)

        logger.info(
            "Indexed %s chunks (%s failed batches%s)",
            len(result.chunks), len(result.failed_batches), ", cancelled" if result.cancelled else "",
        )
        return result


def index_reference_repo(
    indexer: EmbeddingIndexer,
    context: ResultContext,
    url: str,
    files: Iterable[SourceRecord],
    on_progress: Optional[ProgressCallback] = None,
    cancel_event: Optional[threading.Event] = None,
) -> ResultContext:
    """Index a reference corpus and append it to a context's vector index.

    Existing chunks are never modified; the new REFERENCE chunks are appended.
    The reference repo is recorded as ``indexed``, or ``error`` when nothing
    could be embedded from a non-empty corpus.

    Returns:
        A new ResultContext
    """
    files = tuple(files)
    dimension = context.vector_index[0].dimension if context.vector_index else None
    result = indexer.index(
        files,
        tag=ChunkType.REFERENCE,
        on_progress=on_progress,
        cancel_event=cancel_event,
        dimension=dimension,
    )

    if result.total and not result.chunks:
        status = ReferenceStatus.ERROR
        logger.warning("Reference repo %s produced no embeddings", url)
    else:
        status = ReferenceStatus.INDEXED

    repo = ReferenceRepo(url=url, files=files, status=status)
    return context.with_chunks(result.chunks).with_reference_repo(repo)
