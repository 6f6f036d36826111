"""I/O utilities for the Cranfield collection.

Expected inputs:
- cran.all.1400: documents, `.I id` then `.T`/`.A`/`.B`/`.W` sections
- cran.qry: queries, `.I id` then a `.W` section
- cranqrel: `query_id doc_id code` (whitespace separated), or 4-column TREC qrels

Records are flushed lazily: a record is only yielded once the next `.I` line
(or the end of input) is seen.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from cranfield.types import DocumentRecord, QueryRecord

DOCUMENT = "document"
QUERY = "query"

_MARKER_ID = ".I"
_SECTION_MARKERS = {
    ".T": "T",
    ".A": "A",
    ".B": "B",
    ".W": "W",
}
# Sections kept per mode; any other section is read and discarded.
_KEPT_SECTIONS = {
    DOCUMENT: ("T", "A", "B", "W"),
    QUERY: ("W",),
}

Record = Union[DocumentRecord, QueryRecord]


def normalize_query_id(raw: str) -> str:
    """`001` -> `1`; non-numeric ids are returned trimmed but otherwise as-is."""
    raw = raw.strip()
    if raw.isdigit():
        return str(int(raw))
    return raw


def query_sort_key(query_id: str) -> Tuple[int, int, str]:
    """Numeric ids first in numeric order, then everything else lexicographically."""
    if query_id.isdigit():
        return (0, int(query_id), "")
    return (1, 0, query_id)


def _build_record(mode: str, record_id: str, buffers: Dict[str, List[str]]) -> Record:
    text = {tag: "".join(parts) for tag, parts in buffers.items()}
    if mode == DOCUMENT:
        return DocumentRecord(
            id=record_id,
            title=text["T"],
            authors=text["A"],
            bibliography=text["B"],
            abstract_text=text["W"],
        )
    return QueryRecord(id=normalize_query_id(record_id), text=text["W"])


def parse_records(lines: Iterable[str], mode: str) -> Iterator[Record]:
    """Yield records from an iterable of Cranfield-format lines.

    Args:
        lines: lines with or without their line terminators
        mode: "document" or "query"
    """
    if mode not in _KEPT_SECTIONS:
        raise ValueError(f"Unknown parse mode: {mode!r} (expected 'document' or 'query')")
    kept = _KEPT_SECTIONS[mode]

    record_id: Optional[str] = None
    section = ""
    buffers: Dict[str, List[str]] = {tag: [] for tag in kept}

    for raw in lines:
        line = raw.rstrip("\r\n")
        if line.startswith(_MARKER_ID):
            if record_id:
                yield _build_record(mode, record_id, buffers)
            record_id = line[len(_MARKER_ID):].strip()
            section = ""
            buffers = {tag: [] for tag in kept}
            continue

        marker = _SECTION_MARKERS.get(line[:2])
        if marker is not None:
            section = marker
            continue

        if record_id is not None and section in buffers:
            buffers[section].append(line + "\n")

    if record_id:
        yield _build_record(mode, record_id, buffers)


def iter_records(path: str, mode: str) -> Iterator[Record]:
    """Stream records from a file; each call re-opens the file."""
    with open(path, "r", encoding="utf-8") as f:
        yield from parse_records(f, mode)


def iter_documents(path: str) -> Iterator[DocumentRecord]:
    return iter_records(path, DOCUMENT)  # type: ignore[return-value]


def iter_queries(path: str) -> Iterator[QueryRecord]:
    return iter_records(path, QUERY)  # type: ignore[return-value]


def load_queries(path: str, sequential_ids: bool = False) -> List[QueryRecord]:
    """Load all queries from a cran.qry-style file, in file order.

    With `sequential_ids=True` queries are renumbered 1..N in file order. The
    official cranqrel numbers topics this way, while cran.qry keeps gaps in
    its `.I` ids (001, 002, 004, ...).
    """
    queries = list(iter_queries(path))
    if sequential_ids:
        queries = [QueryRecord(id=str(i), text=q.text) for i, q in enumerate(queries, start=1)]
    return queries


def _iter_nonempty_lines(path: str) -> Iterable[Tuple[int, str]]:
    """Yield (line_no, stripped_line) skipping empty/whitespace-only lines."""
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        for i, raw in enumerate(f, start=1):
            line = raw.strip()
            if not line:
                continue
            yield i, line


def _cranfield_grade(code: int) -> int:
    # cranqrel codes: 1 = complete answer ... 4 = minimum interest; 5 / -1 = not relevant.
    if 1 <= code <= 4:
        return 5 - code
    return 0


def load_qrels(path: str) -> Dict[str, Dict[str, int]]:
    """Load relevance judgements.

    Accepted formats (whitespace separated):
      query_id doc_id code         (Cranfield cranqrel)
      query_id 0 doc_id relevance  (TREC qrels)

    Returns:
      dict[query_id][doc_id] = graded relevance (> 0 means relevant)

    Notes:
    - Cranfield codes are mapped to grades `5 - code` for codes 1..4, else 0.
    - If duplicates appear for the same (query_id, doc_id), keeps the max grade.
    """
    qrels: Dict[str, Dict[str, int]] = {}

    for line_no, line in _iter_nonempty_lines(path):
        parts = line.split()
        if len(parts) == 3:
            qid_str, doc_id, rel_str = parts
            cranfield = True
        elif len(parts) == 4:
            qid_str, _zero, doc_id, rel_str = parts
            cranfield = False
        else:
            raise ValueError(
                f"{path}:{line_no}: expected 3 columns 'query_id doc_id code' or "
                f"4 columns 'query_id 0 doc_id relevance', got {len(parts)}: {line!r}"
            )
        try:
            rel = int(rel_str)
        except ValueError as e:
            raise ValueError(f"{path}:{line_no}: invalid relevance {rel_str!r}") from e

        grade = _cranfield_grade(rel) if cranfield else rel
        query_map = qrels.setdefault(normalize_query_id(qid_str), {})
        query_map[doc_id] = max(query_map.get(doc_id, grade), grade)

    return qrels
