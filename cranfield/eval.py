"""Evaluation utilities (MAP, P@k) for TREC-style runs against Cranfield qrels.

This module is intentionally lightweight and dependency-free.

Example:
  python -m cranfield.eval --qrels cranqrel --run runs/bm25.txt --per-query
"""

from __future__ import annotations

import argparse
import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from cranfield.io import load_qrels, normalize_query_id, query_sort_key
from cranfield.logging_utils import configure_logging


def load_trec_run(path: str, k: int = 1000) -> Dict[str, List[str]]:
    """Load a TREC 6-column run file.

    Returns:
      dict[query_id] -> ranked list of docnos (length <= k, duplicates dropped)
    """
    if k <= 0:
        raise ValueError("k must be a positive integer")

    by_query: Dict[str, List[Tuple[int, str]]] = {}
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        for line_no, raw in enumerate(f, start=1):
            line = raw.strip()
            if not line:
                continue
            parts = line.split()
            if len(parts) < 6:
                raise ValueError(
                    f"{path}:{line_no}: expected >= 6 columns 'query_id Q0 docno rank score run_tag', got: {line!r}"
                )
            qid_str, _q0, docno, rank_str, score_str = parts[0], parts[1], parts[2], parts[3], parts[4]
            try:
                rank = int(rank_str)
            except ValueError as e:
                raise ValueError(f"{path}:{line_no}: invalid rank {rank_str!r}") from e
            try:
                float(score_str)
            except ValueError as e:
                raise ValueError(f"{path}:{line_no}: invalid score {score_str!r}") from e

            by_query.setdefault(normalize_query_id(qid_str), []).append((rank, docno))

    out: Dict[str, List[str]] = {}
    for query_id, pairs in by_query.items():
        pairs.sort(key=lambda x: x[0])  # rank asc
        seen = set()
        docnos: List[str] = []
        for _rank, docno in pairs:
            if docno in seen:
                continue
            seen.add(docno)
            docnos.append(docno)
            if len(docnos) >= k:
                break
        out[query_id] = docnos

    return out


def average_precision(qrels_for_query: Mapping[str, int], ranked: Sequence[str], k: int = 1000) -> float:
    """Average Precision for one query.

    Relevance is binary (grade > 0). AP divides by the number of relevant
    documents in qrels; 0.0 if there are none.
    """
    if k <= 0:
        raise ValueError("k must be a positive integer")

    relevant = {docno for docno, rel in qrels_for_query.items() if rel > 0}
    if not relevant:
        return 0.0

    num_rel_seen = 0
    sum_precisions = 0.0
    for i, docno in enumerate(ranked[:k], start=1):
        if docno in relevant:
            num_rel_seen += 1
            sum_precisions += num_rel_seen / float(i)

    return sum_precisions / float(len(relevant))


def precision_at_k(qrels_for_query: Mapping[str, int], ranked: Sequence[str], k: int = 10) -> float:
    if k <= 0:
        raise ValueError("k must be a positive integer")
    relevant = {docno for docno, rel in qrels_for_query.items() if rel > 0}
    hits = sum(1 for docno in ranked[:k] if docno in relevant)
    return hits / float(k)


def mean_average_precision(
    qrels: Mapping[str, Mapping[str, int]],
    run: Mapping[str, Sequence[str]],
    k: int = 1000,
) -> Tuple[float, Dict[str, float]]:
    """MAP over the queries present in qrels (missing run entries count as AP 0).

    Returns:
      (map_value, ap_by_query)
    """
    ap_by_query: Dict[str, float] = {}
    for query_id in sorted(qrels.keys(), key=query_sort_key):
        ap_by_query[query_id] = average_precision(qrels[query_id], run.get(query_id, []), k=k)

    map_value = sum(ap_by_query.values()) / float(len(ap_by_query)) if ap_by_query else 0.0
    return map_value, ap_by_query


def mean_precision_at_k(
    qrels: Mapping[str, Mapping[str, int]],
    run: Mapping[str, Sequence[str]],
    k: int = 10,
) -> float:
    if not qrels:
        return 0.0
    values = [precision_at_k(qrels[q], run.get(q, []), k=k) for q in qrels]
    return sum(values) / float(len(values))


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Evaluate a TREC run file against Cranfield qrels (MAP, P@10).")
    p.add_argument("--qrels", default="cranqrel", help="Path to qrels (cranqrel or TREC format).")
    p.add_argument("--run", required=True, help="Path to TREC run file.")
    p.add_argument("--k", type=int, default=1000, help="Cutoff depth for MAP (default: 1000).")
    p.add_argument("--per-query", action="store_true", help="Print per-query AP.")
    p.add_argument("--log-level", default="INFO", help="Logging level.")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    configure_logging(args.log_level)
    log = logging.getLogger("cranfield.eval")

    try:
        qrels = load_qrels(args.qrels)
        run = load_trec_run(args.run, k=args.k)
    except OSError as e:
        log.error("%s", e)
        return 1

    map_value, ap_by_query = mean_average_precision(qrels, run, k=args.k)
    p10 = mean_precision_at_k(qrels, run, k=10)
    missing = sum(1 for q in qrels if q not in run)
    if missing:
        log.warning("%d judged queries have no results in %s", missing, args.run)

    print(f"MAP@{args.k}: {map_value:.6f}")
    print(f"P@10: {p10:.6f}")
    if args.per_query:
        for query_id in sorted(ap_by_query.keys(), key=query_sort_key):
            print(f"{query_id}\t{ap_by_query[query_id]:.6f}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
