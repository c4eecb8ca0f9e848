"""Corpus and index builders for tests.

Provides utilities to create SourceRecord corpora, vector indexes and
scripted analysis sessions for exercising the orchestrator and RAG pipeline.
"""

import json
from pathlib import Path
from typing import Sequence

from langchain_core.messages import AIMessage

from ..models import ChunkType, SourceRecord, VectorChunk
from .mock_llm import tool_call_message


def create_test_records(count: int = 3, paragraphs: int = 1, paragraph_size: int = 40) -> list[SourceRecord]:
    """Create a small corpus of files.

    Args:
        count: Number of files
        paragraphs: Paragraphs per file (blank-line separated)
        paragraph_size: Characters per paragraph

    Returns:
        SourceRecords named src/module_<n>.py
    """
    records = []
    for n in range(count):
        body = "\n\n".join(
            f"# module {n} paragraph {p} ".ljust(paragraph_size, "x")
            for p in range(paragraphs)
        )
        records.append(SourceRecord(path=f"src/module_{n}.py", content=body))
    return records


def create_test_index(
    embeddings: Sequence[Sequence[float]],
    chunk_type: ChunkType = ChunkType.MAIN,
) -> list[VectorChunk]:
    """Create an index with one chunk per embedding, ids chunk_0..chunk_n."""
    return [
        VectorChunk(
            id=f"chunk_{i}",
            text=f"text {i}",
            source_file=f"file_{i}.py",
            embedding=tuple(float(v) for v in vector),
            type=chunk_type,
        )
        for i, vector in enumerate(embeddings)
    ]


SAMPLE_COMMITS = {
    "commit_overview": {
        "summary": "A CLI that syncs invoices to a ledger.",
        "techStack": ["Python", "Click", "SQLAlchemy"],
    },
    "commit_architecture": {
        "entryPoints": ["cli.py"],
        "keyModules": [
            {"name": "sync", "responsibility": "Pulls invoices and writes entries"},
            {"name": "db", "responsibility": "Session and models"},
        ],
    },
    "commit_workflows": {
        "workflows": ["User runs sync -> invoices fetched -> ledger entries written"],
    },
    "commit_artifacts": {
        "projectOverview": "# Overview",
        "gettingStarted": "pip install .",
        "architecture": "Two layers.",
        "commonTasks": "Run `sync`.",
    },
    "commit_benchmarks": {
        "benchmarks": [
            {"question": "In db.py, how is the session created?", "answer": "sessionmaker bound to the engine"},
        ],
    },
}


def create_full_session_script() -> list[AIMessage]:
    """One turn per commit capability, then signal_complete."""
    script = [tool_call_message((name, args)) for name, args in SAMPLE_COMMITS.items()]
    script.append(tool_call_message(("signal_complete", {"completion_message": "done"})))
    return script


def load_records_fixture(fixture_path: str) -> list[SourceRecord]:
    """Load a corpus from a JSON file holding a list of {path, content}."""
    fixture_file = Path(fixture_path)
    if not fixture_file.exists():
        raise FileNotFoundError(f"Fixture not found: {fixture_path}")

    with open(fixture_file, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"Fixture must contain a list, got {type(data)}")
    return [SourceRecord.from_dict(item) for item in data]
