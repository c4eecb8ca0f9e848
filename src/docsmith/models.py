"""Data model for repository understanding and the vector index.

Every record here is a frozen dataclass with tuple-valued collections, so a
ResultContext handed to an observer can never change underneath it. Updates
go through ``dataclasses.replace`` and produce a new value.

``to_dict()`` renders the external camelCase shape consumed by drafting and
rendering collaborators; ``from_dict()`` reads it back.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable


class ChunkType(str, Enum):
    """Provenance of an indexed chunk."""
    MAIN = "MAIN"  # The repository under analysis
    REFERENCE = "REFERENCE"  # A reference/usage repository added for grounding


class ReferenceStatus(str, Enum):
    """Indexing status of a reference corpus."""
    INDEXED = "indexed"
    INDEXING = "indexing"
    ERROR = "error"


class CompletionState(str, Enum):
    """How an orchestration session ended."""
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"  # Terminal capability fired
    TURN_BUDGET_EXHAUSTED = "turn_budget_exhausted"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SourceRecord:
    """One file of the corpus: an identifier and its text body."""

    path: str
    content: str

    def to_dict(self) -> dict:
        return {"path": self.path, "content": self.content}

    @classmethod
    def from_dict(cls, data: dict) -> "SourceRecord":
        return cls(path=data["path"], content=data.get("content", ""))


@dataclass(frozen=True)
class VectorChunk:
    """One indexed unit of text plus its embedding and provenance."""

    id: str
    text: str
    source_file: str
    embedding: tuple[float, ...]
    type: ChunkType = ChunkType.MAIN

    @property
    def dimension(self) -> int:
        return len(self.embedding)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "sourceFile": self.source_file,
            "embedding": list(self.embedding),
            "type": self.type.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VectorChunk":
        return cls(
            id=data["id"],
            text=data["text"],
            source_file=data["sourceFile"],
            embedding=tuple(float(v) for v in data["embedding"]),
            type=ChunkType(data.get("type", ChunkType.MAIN.value)),
        )


@dataclass(frozen=True)
class KeyModule:
    name: str
    responsibility: str

    def to_dict(self) -> dict:
        return {"name": self.name, "responsibility": self.responsibility}


@dataclass(frozen=True)
class Benchmark:
    """A code-grounded verification question and its expected answer."""

    question: str
    answer: str

    def to_dict(self) -> dict:
        return {"question": self.question, "answer": self.answer}


@dataclass(frozen=True)
class Artifacts:
    """Drafted documentation bodies (markdown)."""

    project_overview: str = ""
    getting_started: str = ""
    architecture: str = ""
    common_tasks: str = ""

    def to_dict(self) -> dict:
        return {
            "projectOverview": self.project_overview,
            "gettingStarted": self.getting_started,
            "architecture": self.architecture,
            "commonTasks": self.common_tasks,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Artifacts":
        return cls(
            project_overview=data.get("projectOverview", ""),
            getting_started=data.get("gettingStarted", ""),
            architecture=data.get("architecture", ""),
            common_tasks=data.get("commonTasks", ""),
        )


@dataclass(frozen=True)
class ReferenceRepo:
    """A reference corpus fetched by an external collaborator."""

    url: str
    files: tuple[SourceRecord, ...] = ()
    status: ReferenceStatus = ReferenceStatus.INDEXING

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "files": [f.to_dict() for f in self.files],
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ReferenceRepo":
        return cls(
            url=data["url"],
            files=tuple(SourceRecord.from_dict(f) for f in data.get("files", [])),
            status=ReferenceStatus(data.get("status", ReferenceStatus.INDEXING.value)),
        )


@dataclass(frozen=True)
class ResultContext:
    """The accumulated understanding of a repository.

    Field groups start at empty defaults and hold the latest committed value.
    """

    summary: str = ""
    tech_stack: tuple[str, ...] = ()
    entry_points: tuple[str, ...] = ()
    key_modules: tuple[KeyModule, ...] = ()
    workflows: tuple[str, ...] = ()
    artifacts: Artifacts = field(default_factory=Artifacts)
    benchmarks: tuple[Benchmark, ...] = ()
    vector_index: tuple[VectorChunk, ...] = ()
    reference_repos: tuple[ReferenceRepo, ...] = ()
    completion: CompletionState = CompletionState.IN_PROGRESS

    @property
    def is_complete(self) -> bool:
        return self.completion == CompletionState.COMPLETE

    def with_chunks(self, chunks: Iterable[VectorChunk]) -> "ResultContext":
        """Return a copy with chunks appended to the vector index."""
        return replace(self, vector_index=self.vector_index + tuple(chunks))

    def with_reference_repo(self, repo: ReferenceRepo) -> "ResultContext":
        """Return a copy with the reference repo recorded, replacing one with the same url."""
        others = tuple(r for r in self.reference_repos if r.url != repo.url)
        return replace(self, reference_repos=others + (repo,))

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "techStack": list(self.tech_stack),
            "entryPoints": list(self.entry_points),
            "keyModules": [m.to_dict() for m in self.key_modules],
            "workflows": list(self.workflows),
            "artifacts": self.artifacts.to_dict(),
            "benchmarks": [b.to_dict() for b in self.benchmarks],
            "vectorIndex": [c.to_dict() for c in self.vector_index],
            "referenceRepos": [r.to_dict() for r in self.reference_repos],
            "completion": self.completion.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ResultContext":
        return cls(
            summary=data.get("summary", ""),
            tech_stack=tuple(data.get("techStack", [])),
            entry_points=tuple(data.get("entryPoints", [])),
            key_modules=tuple(
                KeyModule(name=m["name"], responsibility=m["responsibility"])
                for m in data.get("keyModules", [])
            ),
            workflows=tuple(data.get("workflows", [])),
            artifacts=Artifacts.from_dict(data.get("artifacts", {})),
            benchmarks=tuple(
                Benchmark(question=b["question"], answer=b["answer"])
                for b in data.get("benchmarks", [])
            ),
            vector_index=tuple(VectorChunk.from_dict(c) for c in data.get("vectorIndex", [])),
            reference_repos=tuple(ReferenceRepo.from_dict(r) for r in data.get("referenceRepos", [])),
            completion=CompletionState(data.get("completion", CompletionState.IN_PROGRESS.value)),
        )
