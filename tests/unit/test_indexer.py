"""Unit tests for rag/indexer.py - batched embedding into VectorChunks."""

import threading

import pytest

from docsmith.models import ChunkType, ReferenceStatus, ResultContext, SourceRecord
from docsmith.rag.indexer import EmbeddingIndexer, index_reference_repo
from docsmith.testing.fixtures import create_test_index, create_test_records


class TestEmbeddingIndexer:
    """Test EmbeddingIndexer.index contract."""

    def test_batches_of_twenty(self, embeddings_factory):
        embeddings = embeddings_factory()
        progress = []
        records = create_test_records(count=45)

        result = EmbeddingIndexer(embeddings, batch_size=20).index(
            records, on_progress=lambda done, total: progress.append((done, total))
        )

        assert [len(call) for call in embeddings.document_calls] == [20, 20, 5]
        assert progress == [(20, 45), (40, 45), (45, 45)]
        assert len(result.chunks) == 45
        assert result.complete

    def test_chunks_keep_corpus_order_and_provenance(self, embeddings_factory):
        records = create_test_records(count=5)
        result = EmbeddingIndexer(embeddings_factory(), batch_size=2).index(records)

        assert [c.source_file for c in result.chunks] == [r.path for r in records]
        assert [c.text for c in result.chunks] == [r.content for r in records]
        assert all(c.type == ChunkType.MAIN for c in result.chunks)

    def test_vectors_come_from_embedding_engine(self, embeddings_factory):
        records = [SourceRecord(path="a.py", content="alpha")]
        embeddings = embeddings_factory({"alpha": [0.5, 0.25, 0.125]})

        result = EmbeddingIndexer(embeddings).index(records)

        assert result.chunks[0].embedding == (0.5, 0.25, 0.125)

    def test_failed_batch_is_skipped(self, embeddings_factory):
        embeddings = embeddings_factory(fail_batches=(2,))
        progress = []
        records = create_test_records(count=45)

        result = EmbeddingIndexer(embeddings, batch_size=20).index(
            records, on_progress=lambda done, total: progress.append(done)
        )

        assert len(result.chunks) == 25
        assert result.failed_batches == [20]
        assert not result.complete
        assert progress == [20, 40, 45]
        indexed_files = {c.source_file for c in result.chunks}
        assert "src/module_20.py" not in indexed_files
        assert "src/module_40.py" in indexed_files

    def test_empty_vectors_are_skipped(self, embeddings_factory):
        records = [SourceRecord(path="a.py", content="known"), SourceRecord(path="b.py", content="unknown")]
        embeddings = embeddings_factory({"known": [1.0, 0.0]}, default=None)

        result = EmbeddingIndexer(embeddings).index(records)

        assert [c.source_file for c in result.chunks] == ["a.py"]

    def test_mismatched_dimension_dropped(self, embeddings_factory):
        records = [
            SourceRecord(path="a.py", content="first"),
            SourceRecord(path="b.py", content="second"),
            SourceRecord(path="c.py", content="third"),
        ]
        embeddings = embeddings_factory({
            "first": [1.0, 0.0],
            "second": [1.0, 0.0, 0.0],
            "third": [0.0, 1.0],
        })

        result = EmbeddingIndexer(embeddings).index(records)

        assert [c.source_file for c in result.chunks] == ["a.py", "c.py"]
        assert {c.dimension for c in result.chunks} == {2}

    def test_expected_dimension_enforced(self, embeddings_factory):
        records = [SourceRecord(path="a.py", content="first")]
        embeddings = embeddings_factory({"first": [1.0, 0.0]})

        result = EmbeddingIndexer(embeddings).index(records, dimension=3)

        assert result.chunks == []

    def test_cancellation_between_batches(self, embeddings_factory):
        embeddings = embeddings_factory()
        cancel = threading.Event()

        result = EmbeddingIndexer(embeddings, batch_size=20).index(
            create_test_records(count=45),
            on_progress=lambda done, total: cancel.set(),
            cancel_event=cancel,
        )

        assert len(embeddings.document_calls) == 1
        assert len(result.chunks) == 20
        assert result.cancelled
        assert result.processed == 20

    def test_cancelled_before_start_makes_no_calls(self, embeddings_factory):
        embeddings = embeddings_factory()
        cancel = threading.Event()
        cancel.set()

        result = EmbeddingIndexer(embeddings).index(create_test_records(count=3), cancel_event=cancel)

        assert embeddings.call_count == 0
        assert result.chunks == []
        assert result.cancelled

    def test_ids_unique_and_tagged(self, embeddings_factory):
        result = EmbeddingIndexer(embeddings_factory(), batch_size=4).index(
            create_test_records(count=10), tag=ChunkType.REFERENCE
        )

        ids = [c.id for c in result.chunks]
        assert len(set(ids)) == len(ids)
        assert all(i.startswith("REFERENCE_") for i in ids)
        assert all(c.type == ChunkType.REFERENCE for c in result.chunks)

    def test_whitespace_only_records_not_embedded(self, embeddings_factory):
        embeddings = embeddings_factory()
        records = [SourceRecord(path="empty.txt", content="  \n "), SourceRecord(path="a.py", content="code")]

        result = EmbeddingIndexer(embeddings).index(records)

        assert embeddings.document_calls == [["code"]]
        assert result.total == 1

    def test_empty_corpus(self, embeddings_factory):
        embeddings = embeddings_factory()
        result = EmbeddingIndexer(embeddings).index([])
        assert result.chunks == []
        assert embeddings.call_count == 0

    def test_non_positive_batch_size_rejected(self, embeddings_factory):
        with pytest.raises(ValueError):
            EmbeddingIndexer(embeddings_factory(), batch_size=0)


class TestIndexReferenceRepo:
    """Test appending a reference corpus to an existing context."""

    def test_appends_reference_chunks(self, embeddings_factory):
        existing = create_test_index([[1.0, 0.0], [0.0, 1.0]])
        context = ResultContext(summary="kept", vector_index=tuple(existing))
        files = create_test_records(count=2)

        updated = index_reference_repo(
            EmbeddingIndexer(embeddings_factory()), context, "https://example.com/ref", files
        )

        assert updated.vector_index[:2] == tuple(existing)
        assert [c.type for c in updated.vector_index[2:]] == [ChunkType.REFERENCE] * 2
        assert updated.summary == "kept"
        assert updated.reference_repos[0].url == "https://example.com/ref"
        assert updated.reference_repos[0].status == ReferenceStatus.INDEXED
        assert context.vector_index == tuple(existing)

    def test_status_error_when_nothing_embedded(self, embeddings_factory):
        context = ResultContext()
        updated = index_reference_repo(
            EmbeddingIndexer(embeddings_factory(default=None)),
            context,
            "https://example.com/ref",
            create_test_records(count=2),
        )

        assert updated.vector_index == ()
        assert updated.reference_repos[0].status == ReferenceStatus.ERROR

    def test_reindexing_same_url_replaces_entry(self, embeddings_factory):
        indexer = EmbeddingIndexer(embeddings_factory())
        context = index_reference_repo(indexer, ResultContext(), "u", create_test_records(count=1))
        context = index_reference_repo(indexer, context, "u", create_test_records(count=1))

        assert len(context.reference_repos) == 1
