# =============================================================================
# cardsmith/cli/sync.py - Question Sync CLI
# =============================================================================
#
# Standalone CLI that turns configured study documents into flashcards.
#
# The pipeline for each document:
#   1. Fetch (GitHub Contents API, web page via trafilatura, or local file)
#   2. Reject documents under the word floor
#   3. Parse inline answers directly when the document already has them
#   4. Otherwise extract with the LLM, in one call or chunk by chunk
#   5. Deduplicate and upsert into data/questions.db
#
# Provider Selection:
#   - LLM: LLM_PROVIDER if set, else Anthropic -> OpenAI -> Ollama
#   - Store: SQLite (always)
#
# Usage examples:
#   python -m cardsmith.cli sync
#   python -m cardsmith.cli sync --source javascript-interview
#   python -m cardsmith.cli process https://github.com/owner/repo/blob/main/README.md
#   python -m cardsmith.cli process notes/react.md --no-store --show
#   python -m cardsmith.cli chunk notes/react.md
#   python -m cardsmith.cli sources
# =============================================================================

"""Question sync CLI.

Usage::

    python -m cardsmith.cli sync [--source ID ...]
    python -m cardsmith.cli process URL_OR_PATH [--no-store] [--show]
    python -m cardsmith.cli chunk PATH
    python -m cardsmith.cli sources
    python -m cardsmith.cli stats [--source ORIGIN]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path

from cardsmith.config.loader import load_sources
from cardsmith.config.settings import Settings
from cardsmith.models.pipeline import ProcessingOutcome
from cardsmith.utils.errors import CardsmithError
from cardsmith.utils.logging import configure_logging


def _print_outcome(outcome: ProcessingOutcome, show_questions: bool = False) -> None:
    status = "OK" if outcome.success else "FAILED"
    strategy = outcome.strategy.value if outcome.strategy else "-"
    print(f"[{status}] {outcome.origin}")
    print(f"  Strategy:      {strategy}")
    print(f"  Words:         {outcome.word_count}")
    if outcome.chunk_count is not None:
        print(f"  Chunks:        {outcome.chunk_count}")
    if not outcome.success:
        kind = outcome.error_kind.value if outcome.error_kind else "unknown"
        print(f"  Error ({kind}): {outcome.error}")
        return
    print(f"  Questions:     {outcome.question_count}")
    if outcome.duplicates_removed:
        print(f"  Duplicates:    {outcome.duplicates_removed} removed")
    if outcome.failed_units:
        print(f"  Failed units:  {outcome.failed_units}")
    if outcome.upsert is not None:
        print(
            f"  Stored:        {outcome.upsert.inserted} new, "
            f"{outcome.upsert.updated} updated, {outcome.upsert.skipped} skipped"
        )
    if show_questions:
        for number, qa in enumerate(outcome.questions, start=1):
            print(f"\n  Q{number}: {qa.question}")
            print(f"  A{number}: {qa.answer}")


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_sync(args: argparse.Namespace, app_settings: Settings) -> int:
    from cardsmith.main import build_pipeline, build_question_store
    from cardsmith.pipeline.sync import SourceSyncService, calculate_totals

    sources = load_sources(app_settings.sources_path)
    store = build_question_store(app_settings)
    await store.initialize()
    pipeline = build_pipeline(app_settings, store=store)

    service = SourceSyncService(pipeline, sources)
    try:
        results = await service.sync_all(args.source or None)
    finally:
        await pipeline.aclose()

    for result in results:
        print(f"\n{result.source.name} ({result.source.id})")
        _print_outcome(result.outcome)

    totals = calculate_totals(results)
    print("\nSync complete:")
    print(f"  Sources:   {totals.succeeded}/{totals.sources} succeeded")
    print(f"  Inserted:  {totals.inserted}")
    print(f"  Updated:   {totals.updated}")
    print(f"  Total:     {totals.total}")
    return 0 if totals.failed == 0 else 1


async def _handle_process(args: argparse.Namespace, app_settings: Settings) -> int:
    from cardsmith.main import build_pipeline, build_question_store

    store = None
    if not args.no_store:
        store = build_question_store(app_settings)
        await store.initialize()
    pipeline = build_pipeline(app_settings, store=store, with_store=not args.no_store)

    try:
        outcome = await pipeline.process_origin(args.origin)
    finally:
        await pipeline.aclose()
    _print_outcome(outcome, show_questions=args.show)
    return 0 if outcome.success else 1


def _handle_chunk(args: argparse.Namespace, app_settings: Settings) -> int:
    from cardsmith.services.chunker import SemanticChunker

    path = Path(args.path)
    if not path.is_file():
        print(f"Error: {path} is not a file", file=sys.stderr)
        return 1

    config = app_settings.pipeline_config()
    chunker = SemanticChunker(
        max_words=args.max_words or config.max_words,
        min_words=args.min_words or config.min_words,
    )
    chunks = chunker.chunk(path.read_text(encoding="utf-8"))

    print(f"{path}: {len(chunks)} chunk(s)")
    for number, chunk in enumerate(chunks, start=1):
        label = chunk.context_label or "(whole document)"
        print(
            f"  {number:>3}. lines {chunk.start_line}-{chunk.end_line:<6} "
            f"{chunk.word_count:>5} words  ~{chunk.estimated_tokens:>5} tokens  {label}"
        )
    return 0


def _handle_sources(app_settings: Settings) -> int:
    sources = load_sources(app_settings.sources_path)
    if not sources:
        print(f"No sources configured in {app_settings.sources_path}")
        return 1
    for source in sources:
        kind = source.kind.value if source.kind else "auto"
        print(f"{source.id:<28} {kind:<6} {source.name}")
        print(f"{'':<28} {'':<6} {source.url}")
    return 0


async def _handle_stats(args: argparse.Namespace, app_settings: Settings) -> int:
    from cardsmith.main import build_question_store

    store = build_question_store(app_settings)
    await store.initialize()
    total = await store.count(source=args.source)
    scope = f" from {args.source}" if args.source else ""
    print(f"{total} question(s) stored{scope} in {app_settings.question_db_path}")
    return 0


# ---------------------------------------------------------------------------
# Parser / entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m cardsmith.cli",
        description="Turn study documents into atomic flashcards.",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command")

    sync_parser = subparsers.add_parser("sync", help="Sync configured sources")
    sync_parser.add_argument(
        "--source",
        action="append",
        metavar="ID",
        help="Only sync this source id (repeatable)",
    )

    process_parser = subparsers.add_parser("process", help="Process one URL or local file")
    process_parser.add_argument("origin", help="GitHub URL, web URL, or path to a markdown file")
    process_parser.add_argument("--no-store", action="store_true", help="Do not write to SQLite")
    process_parser.add_argument("--show", action="store_true", help="Print the questions")

    chunk_parser = subparsers.add_parser("chunk", help="Preview chunk boundaries for a file")
    chunk_parser.add_argument("path", help="Path to a markdown file")
    chunk_parser.add_argument("--max-words", type=int, default=None)
    chunk_parser.add_argument("--min-words", type=int, default=None)

    subparsers.add_parser("sources", help="List configured sources")

    stats_parser = subparsers.add_parser("stats", help="Count stored questions")
    stats_parser.add_argument("--source", default=None, help="Only count this origin URL")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    app_settings = Settings()
    configure_logging(
        log_level=args.log_level or app_settings.log_level,
        json_output=(app_settings.app_env == "production"),
    )

    try:
        if args.command == "sync":
            return asyncio.run(_handle_sync(args, app_settings))
        if args.command == "process":
            return asyncio.run(_handle_process(args, app_settings))
        if args.command == "chunk":
            return _handle_chunk(args, app_settings)
        if args.command == "sources":
            return _handle_sources(app_settings)
        if args.command == "stats":
            return asyncio.run(_handle_stats(args, app_settings))
    except CardsmithError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
