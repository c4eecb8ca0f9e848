"""CLI tool for building and querying a persisted chunk index.

Usage:
    python -m docsmith.rag build [--repo PATH] [--reference]
    python -m docsmith.rag query "how is auth handled?" [--top-k 5]
    python -m docsmith.rag stats
"""

import argparse
import sys
import time
from pathlib import Path

from ..config import config
from ..logging_config import setup_logging
from ..models import ChunkType
from ..sources import load_source_records
from .embeddings import get_embeddings
from .indexer import EmbeddingIndexer
from .retriever import RetrievalEngine
from .vectorstore import delete_chunks_by_source, get_store_stats, get_vectorstore, load_chunks, save_chunks


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build and query the chunk index used to ground documentation"
    )
    parser.add_argument(
        "--persist-dir",
        type=str,
        default=config["rag"]["persist_dir"],
        help="Index directory (default: %(default)s)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    build_cmd = subparsers.add_parser("build", help="Chunk, embed and store a repository")
    build_cmd.add_argument(
        "--repo",
        type=str,
        default=".",
        help="Repository root directory (default: current directory)"
    )
    build_cmd.add_argument(
        "--reference",
        action="store_true",
        help="Tag chunks as REFERENCE instead of MAIN"
    )

    query_cmd = subparsers.add_parser("query", help="Retrieve the chunks most similar to a query")
    query_cmd.add_argument("text", type=str, help="Query text")
    query_cmd.add_argument(
        "--top-k",
        type=int,
        default=config["rag"]["top_k"],
        help="Number of chunks to return (default: %(default)s)"
    )

    subparsers.add_parser("stats", help="Show index statistics")
    return parser


def _build(args: argparse.Namespace) -> int:
    repo_root = Path(args.repo).resolve()
    print(f"Building index for: {repo_root}")
    start = time.time()

    records = load_source_records(repo_root)
    rag = config["rag"]
    indexer = EmbeddingIndexer(get_embeddings(), batch_size=rag["batch_size"], chunk_size=rag["chunk_size"])
    tag = ChunkType.REFERENCE if args.reference else ChunkType.MAIN

    collection = get_vectorstore(args.persist_dir)
    existing = load_chunks(collection)
    dimension = existing[0].dimension if existing else None

    result = indexer.index(
        records,
        tag=tag,
        on_progress=lambda done, total: print(f"  embedded {done}/{total} chunks", flush=True),
        dimension=dimension,
    )

    # Replace this tag's chunks of re-indexed files; chunks of the other type are kept
    for source_file in {c.source_file for c in result.chunks}:
        delete_chunks_by_source(collection, source_file, chunk_type=tag)
    written = save_chunks(collection, result.chunks)

    print(f"\n✓ Index built{'' if result.complete else ' with gaps'}!")
    print(f"  Files read: {len(records)}")
    print(f"  Chunks stored: {written}")
    if result.failed_batches:
        print(f"  Failed batches at offsets: {result.failed_batches}")
    print(f"  Time taken: {time.time() - start:.2f}s")
    return 0


def _query(args: argparse.Namespace) -> int:
    index = load_chunks(get_vectorstore(args.persist_dir))
    if not index:
        print("Index is empty; run `build` first.", file=sys.stderr)
        return 1

    chunks = RetrievalEngine(get_embeddings()).retrieve(args.text, index, top_k=args.top_k)
    if not chunks:
        print("No matches.")
        return 0
    for i, chunk in enumerate(chunks, 1):
        print(f"\n--- {i}. {chunk.source_file} [{chunk.type.value}] ({chunk.id}) ---")
        print(chunk.text[:500] + ("..." if len(chunk.text) > 500 else ""))
    return 0


def _stats(args: argparse.Namespace) -> int:
    stats = get_store_stats(get_vectorstore(args.persist_dir))
    print("\n📊 Index Statistics")
    print("=" * 50)
    print(f"  Location: {Path(args.persist_dir).resolve()}")
    print(f"  Total files: {stats['total_files']}")
    print(f"  Total chunks: {stats['total_chunks']}")
    for chunk_type, count in sorted(stats["by_type"].items()):
        print(f"    {chunk_type}: {count}")
    print("=" * 50)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the index CLI."""
    setup_logging(config["log_level"], config["log_file"])
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    commands = {"build": _build, "query": _query, "stats": _stats}
    try:
        return commands[args.command](args)
    except KeyboardInterrupt:
        print("\n\n👋 Stopped")
        return 0
    except Exception as e:
        print(f"\n❌ Error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
