"""Paragraph-aligned text chunking."""

from dataclasses import dataclass
from typing import Iterable

from ..models import SourceRecord

PARAGRAPH_SEPARATOR = "\n\n"
DEFAULT_CHUNK_SIZE = 1500  # ~500-1000 tokens, good retrieval granularity


@dataclass(frozen=True)
class TextChunk:
    """A chunk of text and the file it came from."""

    text: str
    source_file: str


def chunk_text(text: str, max_size: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """Split text into chunks of at most ``max_size`` characters where possible.

    Breaks happen only between paragraphs (blank-line separated units), so a
    single paragraph longer than ``max_size`` is emitted whole. Joining the
    result with PARAGRAPH_SEPARATOR reproduces the input exactly.

    Args:
        text: Text to split
        max_size: Character budget per chunk

    Returns:
        Ordered list of chunk strings
    """
    if max_size <= 0:
        raise ValueError(f"max_size must be positive, got {max_size}")
    if len(text) <= max_size:
        return [text]

    chunks = []
    buffer: list[str] = []
    buffer_len = 0

    for para in text.split(PARAGRAPH_SEPARATOR):
        grown = buffer_len + len(PARAGRAPH_SEPARATOR) + len(para) if buffer else len(para)
        if buffer and grown > max_size:
            chunks.append(PARAGRAPH_SEPARATOR.join(buffer))
            buffer = [para]
            buffer_len = len(para)
        else:
            buffer.append(para)
            buffer_len = grown

    if buffer:
        chunks.append(PARAGRAPH_SEPARATOR.join(buffer))
    return chunks


def chunk_record(record: SourceRecord, max_size: int = DEFAULT_CHUNK_SIZE) -> list[TextChunk]:
    """Chunk one source record, dropping whitespace-only chunks."""
    return [
        TextChunk(text=text, source_file=record.path)
        for text in chunk_text(record.content, max_size)
        if text.strip()
    ]


def chunk_records(records: Iterable[SourceRecord], max_size: int = DEFAULT_CHUNK_SIZE) -> list[TextChunk]:
    """Expand records into (text, source_file) chunks, preserving record order."""
    chunks = []
    for record in records:
        chunks.extend(chunk_record(record, max_size))
    return chunks
