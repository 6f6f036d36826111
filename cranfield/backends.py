"""Backend capabilities the pipelines call through.

The pipelines never touch Lucene directly; they only see these protocols.
`cranfield.lucene_backend` provides the Pyserini/Lucene implementation and the
tests provide in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Sequence

from cranfield.config import RankingConfig


@dataclass(frozen=True)
class IndexField:
    """Backend-agnostic description of one document field."""

    name: str
    value: str
    tokenized: bool
    stored: bool


@dataclass(frozen=True)
class BackendHit:
    """A raw hit as returned by a backend's top-k search (score desc)."""

    internal_id: int
    score: float


class IndexingBackend(Protocol):
    def add_document(self, fields: Sequence[IndexField]) -> None:
        ...

    def commit_and_close(self) -> None:
        ...

    def rollback(self) -> None:
        ...


class SearchBackend(Protocol):
    def set_ranking_model(self, ranking: RankingConfig) -> None:
        ...

    def escape(self, text: str) -> str:
        ...

    def parse_query(self, text: str, fields: Sequence[str]) -> Any:
        """Parse already-escaped text; raises QueryError on failure."""
        ...

    def search(self, query: Any, topk: int) -> List[BackendHit]:
        """Top-k hits in descending score order; raises QueryError on failure."""
        ...

    def stored_field(self, internal_id: int, name: str) -> Optional[str]:
        ...

    def close(self) -> None:
        ...
