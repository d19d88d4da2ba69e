"""Standalone CLI for indexing and querying the SQL documentation corpus.

Usage::

    python -m sqldocs.cli index
    python -m sqldocs.cli search "how do I add an index" --dialect mariadb
    python -m sqldocs.cli search "slow join" --keyword-only --json
    python -m sqldocs.cli stats
    python -m sqldocs.cli clear-cache --yes

Settings come from ``config/config.yaml`` (``--config``), overridden by
``.env`` and environment variables.  Results go to stdout; logs go to
stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from sqldocs.config.loader import load_settings
from sqldocs.config.settings import Settings
from sqldocs.models.rag import DatabaseDialect, RetrievalOptions, RetrievedDocument
from sqldocs.utils.errors import SqlDocsError
from sqldocs.utils.logging import configure_logging

_SNIPPET_CHARS = 240


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _format_document(rank: int, doc: RetrievedDocument) -> str:
    lines = [f"{rank}. {doc.title}  [{doc.dialect.value}]  score={doc.relevance_score:.3f}"]
    if doc.semantic_score is not None and doc.keyword_score is not None:
        lines.append(
            f"   semantic={doc.semantic_score:.3f}  keyword={doc.keyword_score:.3f}"
        )
    if doc.source:
        lines.append(f"   source: {doc.source}")
    snippet = " ".join(doc.content.split())
    if len(snippet) > _SNIPPET_CHARS:
        snippet = snippet[: _SNIPPET_CHARS - 3] + "..."
    lines.append(f"   {snippet}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_index(args: argparse.Namespace, app_settings: Settings) -> int:
    """Embed the keyword corpus and persist the vector store snapshot."""
    from sqldocs.main import build_retrieval_service, build_snapshot_cache

    service = build_retrieval_service(app_settings)
    mode = await service.initialize()
    stats = service.get_stats()
    print(f"Corpus: {stats.keyword_corpus.total} documents from {app_settings.docs_dir}")
    print(f"Embedding: {stats.embedding_provider or 'none'} | Mode: {mode.value}")

    report = await service.index_keyword_corpus()
    if report.skipped_reason:
        print(f"\nIndexing skipped: {report.skipped_reason}")
        print("Keyword-only retrieval remains available.")
        return 0

    print("\nIndexing complete:")
    print(f"  Documents indexed:  {report.documents_indexed}")
    print(f"  Chunks created:     {report.chunks_created}")
    print(f"  Texts embedded:     {report.embedded_texts}")
    print(f"  Duplicates skipped: {report.skipped_duplicates}")

    if not args.no_cache:
        cache = build_snapshot_cache(app_settings)
        if service.persist_to_cache(cache):
            print(f"  Snapshot cached in: {cache.cache_dir}")
    return 0


async def _handle_search(args: argparse.Namespace, app_settings: Settings) -> int:
    """Retrieve documentation relevant to a query."""
    from sqldocs.main import build_retrieval_service, build_snapshot_cache

    if args.keyword_only:
        app_settings = app_settings.model_copy(update={"use_vector_search": False})

    service = build_retrieval_service(app_settings)
    await service.initialize()
    if service.embedding_provider is not None and not args.keyword_only:
        # Cached vectors are reused; only documents missing from them get embedded.
        cache = build_snapshot_cache(app_settings)
        warm = service.warm_from_cache(cache)
        report = await service.index_keyword_corpus()
        if not warm or report.documents_indexed:
            service.persist_to_cache(cache)

    options = RetrievalOptions(use_vector_search=False) if args.keyword_only else None
    docs = await service.retrieve_relevant_docs(
        args.query,
        dialect=DatabaseDialect(args.dialect),
        max_docs=args.max_docs or app_settings.default_max_docs,
        options=options,
    )

    if args.json:
        print(json.dumps([doc.model_dump(mode="json") for doc in docs], indent=2))
        return 0

    if not docs:
        print("No relevant documentation found.")
        return 0

    print(f"Mode: {service.mode.value}\n")
    print("\n\n".join(_format_document(i, doc) for i, doc in enumerate(docs, start=1)))
    return 0


async def _handle_stats(args: argparse.Namespace, app_settings: Settings) -> int:
    """Display retrieval, corpus and snapshot cache statistics."""
    from sqldocs.main import build_retrieval_service, build_snapshot_cache

    service = build_retrieval_service(app_settings)
    await service.initialize()
    cache = build_snapshot_cache(app_settings)
    service.warm_from_cache(cache)
    stats = service.get_stats()
    cache_stats = cache.get_stats()

    if args.json:
        payload = {
            "retrieval": stats.model_dump(mode="json"),
            "snapshot_cache": cache_stats.model_dump(mode="json"),
        }
        print(json.dumps(payload, indent=2))
        return 0

    print("Retrieval Statistics")
    print("=" * 40)
    print(f"  Mode:               {stats.mode.value}")
    print(f"  Embedding provider: {stats.embedding_provider or 'none'}")
    print(f"  Vector documents:   {stats.vector_store.total_documents}")
    print(f"  Vector dimension:   {stats.vector_store.dimension}")
    print(f"  Corpus documents:   {stats.keyword_corpus.total}")
    print(f"  Avg keywords/doc:   {stats.keyword_corpus.avg_keywords_per_doc}")

    if stats.keyword_corpus.by_dialect:
        print("\n  Corpus by dialect:")
        for dialect, count in sorted(stats.keyword_corpus.by_dialect.items()):
            print(f"    {dialect:<12} {count}")

    print(f"\n  Cached snapshots:   {cache_stats.entries} ({cache_stats.total_bytes} bytes)")
    return 0


def _handle_clear_cache(args: argparse.Namespace, app_settings: Settings) -> int:
    """Delete every cached snapshot.  Requires confirmation unless --yes."""
    from sqldocs.main import build_snapshot_cache

    cache = build_snapshot_cache(app_settings)
    entries = cache.get_stats().entries
    if entries == 0:
        print("Snapshot cache is empty. Nothing to clear.")
        return 0

    if not args.yes:
        confirm = input(f"  Delete {entries} cached snapshot(s)? [y/N] ").strip().lower()
        if confirm not in ("y", "yes"):
            print("  Aborted.")
            return 0

    removed = cache.clear()
    print(f"Deleted {removed} cached snapshot(s).")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the sqldocs CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m sqldocs.cli",
        description="Index and search the SQL reference documentation corpus.",
    )
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="Path to the YAML config file (default: config/config.yaml)",
    )
    parser.add_argument("--log-level", dest="log_level", help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # -- index --
    index_parser = subparsers.add_parser("index", help="Embed the corpus and cache the vectors")
    index_parser.add_argument(
        "--no-cache",
        action="store_true",
        dest="no_cache",
        help="Do not write the snapshot cache",
    )

    # -- search --
    search_parser = subparsers.add_parser("search", help="Retrieve relevant documentation")
    search_parser.add_argument("query", help="Natural-language or SQL question")
    search_parser.add_argument(
        "--dialect",
        default=DatabaseDialect.MYSQL.value,
        choices=[d.value for d in DatabaseDialect],
        help="Database dialect (default: mysql)",
    )
    search_parser.add_argument(
        "--max-docs",
        type=int,
        dest="max_docs",
        help="Maximum number of documents (default: DEFAULT_MAX_DOCS)",
    )
    search_parser.add_argument(
        "--keyword-only",
        action="store_true",
        dest="keyword_only",
        help="Skip semantic search and use keyword scoring only",
    )
    search_parser.add_argument("--json", action="store_true", help="Print results as JSON")

    # -- stats --
    stats_parser = subparsers.add_parser("stats", help="Show retrieval statistics")
    stats_parser.add_argument("--json", action="store_true", help="Print statistics as JSON")

    # -- clear-cache --
    clear_parser = subparsers.add_parser("clear-cache", help="Delete cached snapshots")
    clear_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Exit codes: ``0`` on success, ``1`` for usage errors and sqldocs errors
    (bad configuration, unreadable corpus, corrupt snapshots).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        app_settings = load_settings(args.config)
        configure_logging(
            log_level=args.log_level or app_settings.log_level,
            json_output=app_settings.app_env == "production",
        )

        if args.command == "index":
            exit_code = asyncio.run(_handle_index(args, app_settings))
        elif args.command == "search":
            exit_code = asyncio.run(_handle_search(args, app_settings))
        elif args.command == "stats":
            exit_code = asyncio.run(_handle_stats(args, app_settings))
        elif args.command == "clear-cache":
            exit_code = _handle_clear_cache(args, app_settings)
        else:
            parser.print_help()
            exit_code = 1
    except SqlDocsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
