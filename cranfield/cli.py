"""Command-line entry points: cranfield-index and cranfield-search.

Both commands take named options; the older positional form is still
accepted:

  cranfield-index --corpus cran.all.1400 --index index/cran
  cranfield-index cran.all.1400 index/cran

  cranfield-search --index index/cran --queries cran.qry --output runs/bm25.txt --model bm25 --topk 1000
  cranfield-search index/cran cran.qry runs/bm25.txt bm25 1000

Exit codes: 2 for usage errors, 1 for unusable paths or a missing index,
0 on success.
"""

from __future__ import annotations

import argparse
import logging
import os
from typing import Optional, Sequence

from cranfield.config import DEFAULT_MODEL, DEFAULT_TOPK, SEARCHABLE_FIELDS, SearchSettings, ranking_config
from cranfield.errors import PathError, UsageError
from cranfield.indexing import index_documents
from cranfield.io import iter_documents, load_queries
from cranfield.logging_utils import configure_logging
from cranfield.lucene_backend import LuceneIndexWriter, LuceneSearchBackend
from cranfield.runs import write_trec_run
from cranfield.searching import search_queries


def _add_logging_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--log-level", default="INFO", help="Logging level (INFO, DEBUG, ...).")
    p.add_argument("--log-file", default=None, help="Also write logs to this file.")


def _merge_positional(
    parser: argparse.ArgumentParser,
    args: argparse.Namespace,
    names: Sequence[str],
    required: Sequence[str],
) -> None:
    """Fill options left unset from the legacy positional arguments, in order."""
    legacy = list(args.legacy or [])
    if len(legacy) > len(names):
        parser.error(f"too many positional arguments (expected at most {len(names)}: {' '.join(n.upper() for n in names)})")
    for name, value in zip(names, legacy):
        current = getattr(args, name)
        if current is not None and str(current) != value:
            parser.error(f"--{name.replace('_', '-')} given both as option and positional argument")
        setattr(args, name, value)

    missing = [f"--{n.replace('_', '-')}" for n in required if not getattr(args, n)]
    if missing:
        parser.error(f"missing required argument(s): {', '.join(missing)}")


def _check_output_path(path: str) -> None:
    parent = os.path.dirname(os.path.abspath(path))
    if not os.path.isdir(parent):
        raise PathError(f"Output directory does not exist: {parent}")
    if os.path.isdir(path):
        raise PathError(f"Output path is a directory: {path}")
    if not os.access(parent, os.W_OK):
        raise PathError(f"Output directory is not writable: {parent}")


def build_index_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="cranfield-index",
        description="Index the Cranfield collection with Lucene (EnglishAnalyzer, rebuilt from scratch).",
    )
    p.add_argument("legacy", nargs="*", metavar="ARG", help="Legacy positional form: CORPUS INDEX_DIR")
    p.add_argument("--corpus", default=None, help="Path to cran.all.1400.")
    p.add_argument("--index", default=None, help="Output index directory (overwritten).")
    _add_logging_args(p)
    return p


def index_main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_index_arg_parser()
    args = parser.parse_args(argv)
    _merge_positional(parser, args, ("corpus", "index"), required=("corpus", "index"))

    configure_logging(args.log_level, args.log_file)
    log = logging.getLogger("cranfield.cli")

    if not os.path.isfile(args.corpus):
        log.error("Corpus file not found: %s", args.corpus)
        return 1

    try:
        with LuceneIndexWriter.open(args.index) as writer:
            count = index_documents(iter_documents(args.corpus), writer, logger=log)
    except (PathError, OSError, UnicodeDecodeError) as e:
        log.error("Indexing failed: %s", e)
        return 1

    print(f"Indexing complete -> {args.index} ({count} documents)")
    return 0


def build_search_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="cranfield-search",
        description="Run Cranfield queries against a Lucene index and write a TREC run file.",
    )
    p.add_argument(
        "legacy",
        nargs="*",
        metavar="ARG",
        help="Legacy positional form: INDEX_DIR QUERIES OUTPUT MODEL TOPK",
    )
    p.add_argument("--index", default=None, help="Index directory built by cranfield-index.")
    p.add_argument("--queries", default=None, help="Path to cran.qry.")
    p.add_argument("--output", default=None, help="Output run file path (TREC format).")
    p.add_argument(
        "--model",
        default=None,
        help=f"Ranking model: classic | bm25 | lmdirichlet | dfr (default: {DEFAULT_MODEL}; unknown names fall back to bm25).",
    )
    p.add_argument("--topk", default=None, help=f"Max docs per query (default: {DEFAULT_TOPK}).")
    p.add_argument(
        "--fields",
        nargs="+",
        choices=SEARCHABLE_FIELDS,
        default=None,
        help="Fields to search (default: content).",
    )
    p.add_argument("--run-tag", default=None, help="Run tag (column 6; default: lucene-<model>).")
    p.add_argument(
        "--sequential-qids",
        action="store_true",
        help="Number queries 1..N in file order (matches cranqrel) instead of using their .I ids.",
    )

    # Model params (ignored by models that don't use them)
    p.add_argument("--k1", type=float, default=None, help="BM25 k1 (default: 1.2).")
    p.add_argument("--b", type=float, default=None, help="BM25 b (default: 0.75).")
    p.add_argument("--mu", type=float, default=None, help="Dirichlet mu (default: 2000).")
    p.add_argument("--dfr-c", type=float, default=None, help="DFR H2 normalization c (default: 1.0).")

    _add_logging_args(p)
    return p


def _parse_topk(parser: argparse.ArgumentParser, raw) -> int:
    if raw is None:
        return DEFAULT_TOPK
    try:
        topk = int(raw)
    except (TypeError, ValueError):
        parser.error(f"topk must be an integer, got {raw!r}")
    if topk <= 0:
        parser.error("topk must be a positive integer")
    return topk


def search_main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_search_arg_parser()
    args = parser.parse_args(argv)
    _merge_positional(
        parser,
        args,
        ("index", "queries", "output", "model", "topk"),
        required=("index", "queries", "output"),
    )
    topk = _parse_topk(parser, args.topk)

    configure_logging(args.log_level, args.log_file)
    log = logging.getLogger("cranfield.cli")

    try:
        ranking = ranking_config(args.model or DEFAULT_MODEL, k1=args.k1, b=args.b, mu=args.mu, c=args.dfr_c)
        settings = SearchSettings.from_args(args.fields, topk)
    except UsageError as e:
        parser.error(str(e))
    run_tag = args.run_tag or ranking.run_tag

    try:
        if not os.path.isfile(args.queries):
            raise PathError(f"Query file not found: {args.queries}")
        _check_output_path(args.output)
        queries = load_queries(args.queries, sequential_ids=args.sequential_qids)
        log.info("Loaded %d queries from %s", len(queries), args.queries)

        with LuceneSearchBackend.open(args.index) as backend:
            results = search_queries(queries=queries, backend=backend, ranking=ranking, settings=settings, logger=log)

        lines = write_trec_run(results, args.output, run_tag)
    except (PathError, OSError, ValueError) as e:
        log.error("Search failed: %s", e)
        return 1

    log.info("Wrote %d lines for %d queries (run tag %s)", lines, len(results), run_tag)
    print(f"Search complete -> {args.output}")
    return 0
