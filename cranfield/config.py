"""Configuration for indexing and ranking.

Everything here is plain frozen dataclasses filled from CLI flags; there is no
config file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Sequence, Tuple

from cranfield.errors import ConfigError, UsageError

log = logging.getLogger("cranfield.config")


# Index schema. `docno` is the one canonical stored identifier field.
FIELD_DOCNO = "docno"
FIELD_TITLE = "title"
FIELD_AUTHORS = "authors"
FIELD_BIB = "bib"
FIELD_ABSTRACT = "abstract"
FIELD_CONTENT = "content"

DEFAULT_SEARCH_FIELDS: Tuple[str, ...] = (FIELD_CONTENT,)
SEARCHABLE_FIELDS: Tuple[str, ...] = (
    FIELD_TITLE,
    FIELD_AUTHORS,
    FIELD_BIB,
    FIELD_ABSTRACT,
    FIELD_CONTENT,
)

DEFAULT_TOPK = 1000

# Ranking models
CLASSIC = "classic"
BM25 = "bm25"
LM_DIRICHLET = "lmdirichlet"
DFR = "dfr"

DEFAULT_MODEL = BM25
RANKING_MODELS: Tuple[str, ...] = (CLASSIC, BM25, LM_DIRICHLET, DFR)

_ALIASES: Dict[str, str] = {
    "classic": CLASSIC,
    "tfidf": CLASSIC,
    "tf-idf": CLASSIC,
    "vsm": CLASSIC,
    "bm25": BM25,
    "okapi": BM25,
    "lmdirichlet": LM_DIRICHLET,
    "lm-dirichlet": LM_DIRICHLET,
    "language-model-dirichlet": LM_DIRICHLET,
    "dirichlet": LM_DIRICHLET,
    "lm": LM_DIRICHLET,
    "qld": LM_DIRICHLET,
    "dfr": DFR,
    "divergence-from-randomness": DFR,
}

# Lucene's own defaults for each similarity.
DEFAULT_PARAMS: Dict[str, Dict[str, float]] = {
    CLASSIC: {},
    BM25: {"k1": 1.2, "b": 0.75},
    LM_DIRICHLET: {"mu": 2000.0},
    DFR: {"c": 1.0},
}


def resolve_ranking_model(name: str | None, *, strict: bool = False) -> str:
    """Map a user-supplied model name (or alias) to a canonical model name.

    Unknown names fall back to BM25 with a warning; with `strict=True` they
    raise ConfigError instead.
    """
    key = (name or "").strip().lower()
    if key in _ALIASES:
        return _ALIASES[key]
    if strict:
        raise ConfigError(f"Unknown ranking model: {name!r} (expected one of {', '.join(RANKING_MODELS)})")
    log.warning("Unknown ranking model %r; falling back to %s", name, DEFAULT_MODEL)
    return DEFAULT_MODEL


@dataclass(frozen=True)
class RankingConfig:
    """A ranking model and its parameters."""

    model: str = DEFAULT_MODEL
    params: Dict[str, Any] = field(default_factory=dict)

    def param(self, name: str) -> float:
        if name in self.params and self.params[name] is not None:
            return float(self.params[name])
        return float(DEFAULT_PARAMS[self.model][name])

    @property
    def run_tag(self) -> str:
        return f"lucene-{self.model}"

    def validate(self) -> "RankingConfig":
        if self.model not in RANKING_MODELS:
            raise ConfigError(f"Unknown ranking model: {self.model!r}")
        if self.model == BM25:
            if self.param("k1") <= 0:
                raise UsageError("k1 must be > 0")
            if not (0.0 <= self.param("b") <= 1.0):
                raise UsageError("b must be in [0, 1]")
        elif self.model == LM_DIRICHLET:
            if self.param("mu") <= 0:
                raise UsageError("mu must be > 0")
        elif self.model == DFR:
            if self.param("c") <= 0:
                raise UsageError("c must be > 0")
        return self


def ranking_config(name: str | None, *, strict: bool = False, **params: Any) -> RankingConfig:
    """Build a validated RankingConfig from a model name and optional overrides.

    Overrides that do not apply to the resolved model (or are None) are dropped.
    """
    model = resolve_ranking_model(name, strict=strict)
    known = DEFAULT_PARAMS[model]
    kept = {k: v for k, v in params.items() if k in known and v is not None}
    return RankingConfig(model=model, params=kept).validate()


@dataclass(frozen=True)
class SearchSettings:
    """Per-run search settings shared by every query."""

    fields: Tuple[str, ...] = DEFAULT_SEARCH_FIELDS
    topk: int = DEFAULT_TOPK

    def __post_init__(self):
        if not isinstance(self.topk, int) or self.topk <= 0:
            raise UsageError("topk must be a positive integer")
        if not self.fields:
            raise UsageError("at least one search field is required")
        unknown = [f for f in self.fields if f not in SEARCHABLE_FIELDS]
        if unknown:
            raise UsageError(f"Unknown search field(s): {', '.join(unknown)}")

    @classmethod
    def from_args(cls, fields: Sequence[str] | None, topk: int) -> "SearchSettings":
        return cls(fields=tuple(fields) if fields else DEFAULT_SEARCH_FIELDS, topk=topk)
