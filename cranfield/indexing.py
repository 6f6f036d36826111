"""Indexing pipeline: DocumentRecords -> backend documents.

Field layout per document:
- docno:    exact-match id, stored
- title:    tokenized, stored
- authors:  tokenized, not stored
- bib:      tokenized, not stored
- abstract: tokenized, stored
- content:  tokenized, not stored; title/authors/bib/abstract joined by newlines,
            the default target for free-text queries
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, List, Optional

from cranfield.backends import IndexField, IndexingBackend
from cranfield.config import (
    FIELD_ABSTRACT,
    FIELD_AUTHORS,
    FIELD_BIB,
    FIELD_CONTENT,
    FIELD_DOCNO,
    FIELD_TITLE,
)
from cranfield.types import DocumentRecord


def build_document_fields(record: DocumentRecord) -> List[IndexField]:
    return [
        IndexField(FIELD_DOCNO, record.id, tokenized=False, stored=True),
        IndexField(FIELD_TITLE, record.title, tokenized=True, stored=True),
        IndexField(FIELD_AUTHORS, record.authors, tokenized=True, stored=False),
        IndexField(FIELD_BIB, record.bibliography, tokenized=True, stored=False),
        IndexField(FIELD_ABSTRACT, record.abstract_text, tokenized=True, stored=True),
        IndexField(FIELD_CONTENT, record.aggregate, tokenized=True, stored=False),
    ]


def index_documents(
    records: Iterable[DocumentRecord],
    backend: IndexingBackend,
    *,
    logger: Optional[logging.Logger] = None,
    progress_every: int = 500,
) -> int:
    """Submit every record to the backend in input order, then commit.

    Ids are not deduplicated: a repeated id yields a second, independent
    document (a warning reports how many ids repeat). If anything fails before
    the commit, the backend is rolled back and the error re-raised.

    Returns:
      number of documents indexed
    """
    log = logger or logging.getLogger("cranfield.indexing")
    seen: Counter = Counter()
    count = 0

    try:
        for record in records:
            backend.add_document(build_document_fields(record))
            seen[record.id] += 1
            count += 1
            if progress_every and count % progress_every == 0:
                log.info("Indexed %d documents", count)
    except BaseException:
        log.error("Indexing failed after %d documents; rolling back", count)
        backend.rollback()
        raise

    backend.commit_and_close()

    repeated = sorted(doc_id for doc_id, n in seen.items() if n > 1)
    if repeated:
        log.warning(
            "%d document id(s) appear more than once and were indexed as separate documents: %s",
            len(repeated),
            ", ".join(repeated[:10]),
        )
    log.info("Indexed %d documents (committed)", count)
    return count
