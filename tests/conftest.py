"""Shared fixtures: sample Cranfield files and in-memory backends (no JVM)."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence

import pytest

from cranfield.backends import BackendHit, IndexField
from cranfield.errors import PathError, QueryError
from cranfield.lucene_backend import escape_query

SAMPLE_CORPUS = """\
.I 1
.T
experimental investigation of the aerodynamics of a
wing in a slipstream .
.A
brenckman,m.
.B
j. ae. scs. 25, 1958, 324.
.W
experimental investigation of the aerodynamics of a
wing in a slipstream .
  an experimental study of a wing in a propeller slipstream was
made in order to determine the spanwise distribution of the lift
increase due to slipstream at different angles of attack of the wing .
.I 2
.T
simple shear flow past a flat plate in an incompressible fluid of small
viscosity .
.A
ting-yili
.B
department of aeronautical engineering, rensselaer polytechnic
institute, troy, n.y.
.W
simple shear flow past a flat plate in an incompressible fluid of small
viscosity .
in the study of high-speed viscous flow past a two-dimensional body it
is usually necessary to consider a curved shock wave emitting from the
nose or leading edge of the body .
.I 3
.T
the boundary layer in simple shear flow past a flat plate .
.A
m. b. glauert
.B
department of mathematics, university of manchester, manchester,
england
.W
the boundary layer in simple shear flow past a flat plate .
the boundary-layer equations are presented for steady
incompressible flow with no pressure gradient .
"""

SAMPLE_QUERIES = """\
.I 001
.W
what similarity laws must be obeyed when constructing aeroelastic models
of heated high speed aircraft .
.I 002
.W
what are the structural and aeroelastic problems associated with flight
of high speed aircraft .
.I 004
.W
what problems of heat conduction in composite slabs have been solved so
far .
.I 008
.W
can a criterion be developed to show empirically the validity of flow
solutions for chemically reacting gas mixtures based on the simplifying
assumption of instantaneous local chemical equilibrium (slipstream) .
"""


class FakeIndexWriter:
    """IndexingBackend that keeps documents in a list."""

    instances: List["FakeIndexWriter"] = []

    def __init__(self, index_path: str = "mem", fail_after: Optional[int] = None):
        self.index_path = index_path
        self.fail_after = fail_after
        self.documents: List[Dict[str, IndexField]] = []
        self.committed = False
        self.rolled_back = False

    @classmethod
    def open(cls, index_path: str) -> "FakeIndexWriter":
        writer = cls(index_path)
        cls.instances.append(writer)
        return writer

    def add_document(self, fields: Sequence[IndexField]) -> None:
        if self.fail_after is not None and len(self.documents) >= self.fail_after:
            raise OSError("disk full")
        self.documents.append({f.name: f for f in fields})

    def commit_and_close(self) -> None:
        self.committed = True

    def rollback(self) -> None:
        if not self.committed:
            self.rolled_back = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.rollback()


def _terms(text: str) -> List[str]:
    return re.findall(r"[a-z0-9]+", text.lower())


class FakeSearchBackend:
    """SearchBackend scoring documents by query-term overlap.

    Query text containing the term "unparseable" raises QueryError, which lets
    tests exercise the skip-and-continue path.
    """

    def __init__(self, documents: Sequence[Dict[str, str]]):
        self.documents = list(documents)
        self.ranking = None
        self.closed = False
        self.parsed: List[str] = []

    @classmethod
    def from_writer(cls, writer: FakeIndexWriter) -> "FakeSearchBackend":
        docs = []
        for fields in writer.documents:
            doc = {name: f.value for name, f in fields.items()}
            # Non-stored fields stay searchable but are not retrievable.
            doc["_stored"] = [name for name, f in fields.items() if f.stored]
            docs.append(doc)
        return cls(docs)

    def set_ranking_model(self, ranking) -> None:
        self.ranking = ranking

    def escape(self, text: str) -> str:
        return escape_query(text)

    def parse_query(self, text: str, fields: Sequence[str]):
        self.parsed.append(text)
        # Any unescaped special char would be query syntax for a real parser.
        if re.search(r'(?<!\\)[():"]', text):
            raise QueryError(f"unescaped syntax in {text!r}")
        plain = re.sub(r"\\(.)", r"\1", text)
        if "unparseable" in plain:
            raise QueryError(f"cannot parse {plain!r}")
        return (_terms(plain), tuple(fields))

    def search(self, query, topk: int) -> List[BackendHit]:
        terms, fields = query
        scored = []
        for internal_id, doc in enumerate(self.documents):
            tokens = []
            for name in fields:
                tokens.extend(_terms(doc.get(name, "")))
            score = float(sum(tokens.count(t) for t in terms))
            if score > 0:
                scored.append((score, internal_id))
        scored.sort(key=lambda x: (-x[0], x[1]))
        return [BackendHit(internal_id=i, score=s) for s, i in scored[:topk]]

    def stored_field(self, internal_id: int, name: str) -> Optional[str]:
        doc = self.documents[internal_id]
        if name not in doc.get("_stored", list(doc.keys())):
            return None
        return doc.get(name)

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


@pytest.fixture(autouse=True)
def _reset_fake_writers():
    FakeIndexWriter.instances.clear()
    yield
    FakeIndexWriter.instances.clear()


@pytest.fixture
def corpus_file(tmp_path):
    path = tmp_path / "cran.all.1400"
    path.write_text(SAMPLE_CORPUS, encoding="utf-8")
    return str(path)


@pytest.fixture
def queries_file(tmp_path):
    path = tmp_path / "cran.qry"
    path.write_text(SAMPLE_QUERIES, encoding="utf-8")
    return str(path)


@pytest.fixture
def indexed_backend(corpus_file):
    from cranfield.indexing import index_documents
    from cranfield.io import iter_documents

    writer = FakeIndexWriter()
    index_documents(iter_documents(corpus_file), writer)
    return FakeSearchBackend.from_writer(writer)


@pytest.fixture
def fake_search_open(indexed_backend):
    """Stand-in for LuceneSearchBackend.open that refuses unknown paths."""

    class _Opener:
        last: Optional[FakeSearchBackend] = None

        @classmethod
        def open(cls, index_path: str):
            if index_path == "missing-index":
                raise PathError(f"Index directory not found: {index_path}")
            cls.last = indexed_backend
            return indexed_backend

    return _Opener
