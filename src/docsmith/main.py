#!/usr/bin/env python3
"""CLI entry point: analyse a local repository and index it for grounding."""

import argparse
import json
import signal
import sys
import threading
from dataclasses import replace
from pathlib import Path

from .config import config
from .events import ProgressEvent, ProgressStream
from .logging_config import get_logger, setup_logging
from .models import ChunkType, CompletionState
from .orchestration import ContextOrchestrator
from .rag import EmbeddingIndexer, get_embeddings
from .sources import load_source_records

logger = get_logger(__name__)

# Module-level so the signal handler can reach it and we can restore in finally
_previous_signal_handlers: dict[int, object] = {}


def _install_cancel_handlers(cancel_event: threading.Event) -> None:
    """First SIGINT/SIGTERM requests cancellation; a second one interrupts."""
    def _handler(signum: int, frame: object) -> None:
        if cancel_event.is_set():
            raise KeyboardInterrupt()
        logger.info("Received signal %s; finishing current step then stopping.", signum)
        cancel_event.set()

    _previous_signal_handlers.clear()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            _previous_signal_handlers[sig] = signal.signal(sig, _handler)
        except (ValueError, OSError):
            pass  # e.g. SIGTERM not available on this platform


def _restore_signal_handlers() -> None:
    for sig, old in _previous_signal_handlers.items():
        try:
            signal.signal(sig, old)
        except (ValueError, OSError):
            pass
    _previous_signal_handlers.clear()


def _print_progress(event: ProgressEvent) -> None:
    print(f"[{event.percent:3d}%] {event.status}", flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docsmith",
        description="Build a structured understanding of a repository and a retrieval index over it",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    analyze = subparsers.add_parser("analyze", help="Analyse a repository")
    analyze.add_argument("repo", type=str, help="Repository root directory")
    analyze.add_argument("--out", type=str, default="docsmith_context.json", help="Where to write the result JSON")
    analyze.add_argument(
        "--turns",
        type=int,
        default=config["orchestration"]["turn_budget"],
        help="Maximum engine turns (default: %(default)s)",
    )
    analyze.add_argument("--no-index", action="store_true", help="Skip building the vector index")

    return parser


def run_analyze(args: argparse.Namespace) -> int:
    from .llm import get_llm

    repo_root = Path(args.repo).resolve()
    records = load_source_records(repo_root)
    if not records:
        print(f"No source files found in {repo_root}", file=sys.stderr)
        return 1

    cancel_event = threading.Event()
    stream = ProgressStream()
    stream.subscribe(_print_progress)
    _install_cancel_handlers(cancel_event)

    try:
        orchestrator = ContextOrchestrator(get_llm(), turn_budget=args.turns)
        context = orchestrator.build(records, progress_stream=stream, cancel_event=cancel_event)

        if not args.no_index and not cancel_event.is_set():
            rag = config["rag"]
            indexer = EmbeddingIndexer(get_embeddings(), batch_size=rag["batch_size"], chunk_size=rag["chunk_size"])
            result = indexer.index(
                records,
                tag=ChunkType.MAIN,
                on_progress=lambda done, total: print(f"  embedded {done}/{total} chunks", flush=True),
                cancel_event=cancel_event,
            )
            context = context.with_chunks(result.chunks)
            if result.cancelled:
                context = replace(context, completion=CompletionState.CANCELLED)
    finally:
        _restore_signal_handlers()

    out_path = Path(args.out)
    out_path.write_text(json.dumps(context.to_dict(), indent=2), encoding="utf-8")
    print(f"\n✓ Analysis {context.completion.value}: {len(context.vector_index)} chunks indexed")
    print(f"  Written to {out_path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    setup_logging(config["log_level"], config["log_file"])
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        if args.command == "analyze":
            return run_analyze(args)
    except KeyboardInterrupt:
        print("\n\n👋 Stopped")
        return 130
    return 1


if __name__ == "__main__":
    sys.exit(main())
