"""Ranking-model sweep over one Cranfield index.

Runs every requested model on the same queries, scores each run against the
qrels and writes a CSV of (model, map@k, p@10). Optionally keeps each run file.

Example:
  python -m cranfield.experiments.model_sweep --index index/cran --queries cran.qry \
      --qrels cranqrel --out-csv results/models.csv --runs-dir runs/
"""

from __future__ import annotations

import argparse
import csv
import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from cranfield.backends import SearchBackend
from cranfield.config import RANKING_MODELS, DEFAULT_TOPK, SearchSettings, ranking_config
from cranfield.errors import ConfigError, PathError
from cranfield.eval import mean_average_precision, mean_precision_at_k
from cranfield.io import load_qrels, load_queries
from cranfield.logging_utils import configure_logging
from cranfield.lucene_backend import LuceneSearchBackend
from cranfield.runs import write_trec_run
from cranfield.searching import search_queries
from cranfield.types import QueryRecord, RankedHit


@dataclass(frozen=True)
class SweepResult:
    model: str
    map_at_k: float
    p_at_10: float
    queries: int


def _to_ranked_docnos(results: Dict[str, List[RankedHit]]) -> Dict[str, List[str]]:
    return {qid: [h.docno or str(h.internal_id) for h in hits] for qid, hits in results.items()}


def run_sweep(
    *,
    queries: Sequence[QueryRecord],
    qrels: Dict[str, Dict[str, int]],
    backend: SearchBackend,
    models: Sequence[str],
    settings: SearchSettings,
    log: logging.Logger,
    runs_dir: Optional[str] = None,
) -> List[SweepResult]:
    results: List[SweepResult] = []
    for i, name in enumerate(models, start=1):
        ranking = ranking_config(name, strict=True)
        log.info("Sweep %d/%d: %s", i, len(models), ranking.model)
        by_query = search_queries(queries=queries, backend=backend, ranking=ranking, settings=settings, logger=log)

        if runs_dir:
            write_trec_run(by_query, os.path.join(runs_dir, f"{ranking.run_tag}.txt"), ranking.run_tag)

        ranked = _to_ranked_docnos(by_query)
        map_value, _ap = mean_average_precision(qrels, ranked, k=settings.topk)
        p10 = mean_precision_at_k(qrels, ranked, k=10)
        results.append(SweepResult(model=ranking.model, map_at_k=map_value, p_at_10=p10, queries=len(by_query)))

    results.sort(key=lambda r: (-r.map_at_k, r.model))
    return results


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Compare Lucene ranking models on Cranfield (MAP, P@10).")
    p.add_argument("--index", required=True, help="Index directory built by cranfield-index.")
    p.add_argument("--queries", default="cran.qry", help="Path to queries file.")
    p.add_argument("--qrels", default="cranqrel", help="Path to qrels file.")
    p.add_argument("--topk", type=int, default=DEFAULT_TOPK, help="Retrieval depth / MAP cutoff (default: 1000).")
    p.add_argument(
        "--models",
        nargs="+",
        default=list(RANKING_MODELS),
        help="Space-separated model names (default: classic bm25 lmdirichlet dfr).",
    )
    p.add_argument("--runs-dir", default=None, help="If set, also write one run file per model here.")
    p.add_argument("--log-level", default="INFO", help="Logging level.")
    p.add_argument("--out-csv", required=True, help="Where to write CSV results.")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    log = logging.getLogger("cranfield.experiments.model_sweep")

    try:
        for name in args.models:
            ranking_config(name, strict=True)
        settings = SearchSettings(topk=args.topk)
    except (ConfigError, ValueError) as e:
        parser.error(str(e))

    try:
        # cranqrel numbers topics 1..N, so queries are renumbered the same way.
        queries = load_queries(args.queries, sequential_ids=True)
        qrels = load_qrels(args.qrels)
        if args.runs_dir:
            os.makedirs(args.runs_dir, exist_ok=True)
        with LuceneSearchBackend.open(args.index) as backend:
            results = run_sweep(
                queries=queries,
                qrels=qrels,
                backend=backend,
                models=args.models,
                settings=settings,
                log=log,
                runs_dir=args.runs_dir,
            )
    except (PathError, OSError) as e:
        log.error("%s", e)
        return 1

    with open(args.out_csv, "w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        w.writerow(["model", f"map@{args.topk}", "p@10", "queries"])
        for r in results:
            w.writerow([r.model, f"{r.map_at_k:.6f}", f"{r.p_at_10:.6f}", r.queries])

    best = results[0] if results else None
    if best is None:
        print("No results produced.")
        return 1

    print(f"Best MAP@{args.topk}: {best.map_at_k:.6f} ({best.model}, P@10={best.p_at_10:.6f})")
    print(f"Wrote CSV: {args.out_csv}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
