"""Run file writing utilities (TREC 6-column format).

Format per line:
  query_id Q0 docno rank score run_tag

Determinism requirements:
- Queries are written in ascending query id order (numeric ids numerically).
- Per-query hits are written in ascending rank order; ranks must be 1..n.
- Hits are not re-sorted by score: ordering is the backend's.
"""

from __future__ import annotations

from typing import Iterator, List, Mapping, Sequence

from cranfield.io import query_sort_key
from cranfield.types import RankedHit, RunLine


def _resolve_docno(query_id: str, hit: RankedHit) -> str:
    """Stored docno, or the backend position when the stored value is missing."""
    docno = (hit.docno or "").strip()
    if not docno:
        if hit.internal_id is None:
            raise ValueError(f"Hit at rank {hit.rank} for query_id={query_id} has no docno and no internal id")
        docno = str(hit.internal_id)
    if any(ch.isspace() for ch in docno):
        raise ValueError(f"Invalid docno for query_id={query_id}: {docno!r}")
    return docno


def iter_run_lines(results_by_query: Mapping[str, Sequence[RankedHit]], run_tag: str) -> Iterator[RunLine]:
    if not isinstance(run_tag, str) or not run_tag.strip() or any(ch.isspace() for ch in run_tag):
        raise ValueError("run_tag must be a non-empty string without whitespace")

    for query_id in sorted(results_by_query.keys(), key=query_sort_key):
        if not query_id or any(ch.isspace() for ch in query_id):
            raise ValueError(f"Invalid query_id: {query_id!r}")
        hits =sorted(results_by_query[query_id], key=lambda h: h.rank)
        for expected, hit in enumerate(hits, start=1):
            if hit.rank != expected:
                raise ValueError(
                    f"Ranks for query_id={query_id} must be 1..n without gaps; got {hit.rank} at position {expected}"
                )
            yield RunLine(
                query_id=query_id,
                docno=_resolve_docno(query_id, hit),
                rank=hit.rank,
                score=float(hit.score),
                run_tag=run_tag,
            )


def write_trec_run(
    results_by_query: Mapping[str, Sequence[RankedHit]],
    output_path: str,
    run_tag: str,
) -> int:
    """Write a TREC-format run file.

    Args:
        results_by_query: mapping of query_id -> ranked hits
        output_path: path to write the run file to
        run_tag: string placed in column 6 (e.g. "lucene-bm25")

    Returns:
        number of lines written
    """
    # Build every line first so a bad hit never leaves a half-written file.
    lines: List[str] = [line.format() + "\n" for line in iter_run_lines(results_by_query, run_tag)]

    with open(output_path, "w", encoding="utf-8") as f:
        f.writelines(lines)
    return len(lines)
