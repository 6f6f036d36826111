"""Query pipeline: QueryRecords -> ranked hits per query.

Returns results in a structure suitable for `cranfield.runs.write_trec_run`:
  dict[query_id] -> list of RankedHit (rank 1..n, backend order)
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from cranfield.backends import SearchBackend
from cranfield.config import FIELD_DOCNO, RankingConfig, SearchSettings
from cranfield.errors import QueryError
from cranfield.types import QueryRecord, RankedHit


def search_query(backend: SearchBackend, text: str, settings: SearchSettings) -> List[RankedHit]:
    """Escape, parse and run one query text. Raises QueryError on backend failure."""
    query = backend.parse_query(backend.escape(text), settings.fields)
    raw_hits = backend.search(query, settings.topk)

    out: List[RankedHit] = []
    for rank, h in enumerate(raw_hits[: settings.topk], start=1):
        docno = backend.stored_field(h.internal_id, FIELD_DOCNO) or ""
        out.append(RankedHit(rank=rank, docno=docno, score=h.score, internal_id=h.internal_id))
    return out


def search_queries(
    *,
    queries: Sequence[QueryRecord],
    backend: SearchBackend,
    ranking: RankingConfig,
    settings: Optional[SearchSettings] = None,
    logger: Optional[logging.Logger] = None,
) -> Dict[str, List[RankedHit]]:
    """Run every non-empty query against the backend with one ranking model.

    Empty queries are skipped without output. A query that the backend cannot
    parse or execute is logged and skipped; the rest of the batch still runs.
    """
    settings = settings or SearchSettings()
    log = logger or logging.getLogger("cranfield.searching")

    backend.set_ranking_model(ranking)

    results: Dict[str, List[RankedHit]] = {}
    skipped = 0
    for q in queries:
        if q.is_empty:
            log.debug("Skipping empty query %s", q.id)
            continue
        try:
            hits = search_query(backend, q.text, settings)
        except QueryError as e:
            skipped += 1
            log.warning("Skipping query %s: %s", q.id, e)
            continue
        if q.id in results:
            log.warning("Duplicate query id %s; keeping the later query's results", q.id)
        results[q.id] = hits
        log.debug("Query %s: %d hits", q.id, len(hits))

    log.info(
        "Ran %d queries with %s (%d skipped after errors)",
        len(results),
        ranking.model,
        skipped,
    )
    return results
