"""Core dataclasses shared by the parser, the pipelines and the run writer.

These types are backend-agnostic (no Pyserini deps).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class DocumentRecord:
    """One Cranfield document (`.I` block of cran.all.1400)."""

    id: str
    title: str = ""
    authors: str = ""
    bibliography: str = ""
    abstract_text: str = ""

    @property
    def aggregate(self) -> str:
        """Whole-record text: title, authors, bibliography, abstract."""
        return "\n".join([self.title, self.authors, self.bibliography, self.abstract_text])


@dataclass(frozen=True)
class QueryRecord:
    """One Cranfield query (`.I` block of cran.qry)."""

    id: str
    text: str

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True)
class RankedHit:
    """A single ranked result for one query.

    `docno` is the stored identifier and may be empty if the backend has no
    stored value; `internal_id` is the backend's sequence position.
    """

    rank: int
    docno: str
    score: float
    internal_id: Optional[int] = None


@dataclass(frozen=True)
class RunLine:
    """One line of a TREC run file."""

    query_id: str
    docno: str
    rank: int
    score: float
    run_tag: str

    def format(self) -> str:
        return f"{self.query_id} Q0 {self.docno} {self.rank} {self.score:.6f} {self.run_tag}"
