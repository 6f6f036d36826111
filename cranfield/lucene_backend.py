"""Pyserini Lucene backend.

Drives Lucene directly through the JVM bridge that Pyserini ships
(`pyserini.pyclass.autoclass`), so the index keeps the exact field layout the
pipelines ask for (untokenized `docno`, stored `title`/`abstract`, and so on)
and every Lucene similarity is available.

Expected usage:
    from cranfield.lucene_backend import LuceneIndexWriter, LuceneSearchBackend

    with LuceneIndexWriter.open("index/cranfield") as writer:
        index_documents(iter_documents("cran.all.1400"), writer)

    with LuceneSearchBackend.open("index/cranfield") as backend:
        backend.set_ranking_model(ranking_config("bm25"))
        ...

Pyserini (and so the JVM) is imported lazily: importing this module is cheap
and does not need Java.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional, Sequence, Tuple

from cranfield.backends import BackendHit, IndexField
from cranfield.config import BM25, CLASSIC, DFR, LM_DIRICHLET, RankingConfig
from cranfield.errors import PathError, QueryError

log = logging.getLogger("cranfield.lucene_backend")

# Characters with meaning in Lucene's classic query syntax
# (mirrors QueryParserBase.escape).
_SPECIAL_CHARS = frozenset('\\+-!():^[]"{}~*?|&/')


def escape_query(text: str) -> str:
    """Backslash-escape Lucene query syntax so the text is read as plain terms."""
    return "".join("\\" + ch if ch in _SPECIAL_CHARS else ch for ch in text)


def _autoclass(name: str):
    from pyserini.pyclass import autoclass

    return autoclass(name)


def _java_exception():
    # pyserini.pyclass must be imported first: it puts the Anserini jar on the classpath.
    import pyserini.pyclass  # noqa: F401
    from jnius import JavaException

    return JavaException


def _english_analyzer():
    return _autoclass("org.apache.lucene.analysis.en.EnglishAnalyzer")()


def _fs_directory(path: str):
    jpath = _autoclass("java.io.File")(os.path.abspath(path)).toPath()
    return _autoclass("org.apache.lucene.store.FSDirectory").open(jpath)


def build_similarity(ranking: RankingConfig):
    """Create the Lucene Similarity for a ranking config."""
    pkg = "org.apache.lucene.search.similarities."
    if ranking.model == CLASSIC:
        return _autoclass(pkg + "ClassicSimilarity")()
    if ranking.model == BM25:
        return _autoclass(pkg + "BM25Similarity")(ranking.param("k1"), ranking.param("b"))
    if ranking.model == LM_DIRICHLET:
        return _autoclass(pkg + "LMDirichletSimilarity")(ranking.param("mu"))
    if ranking.model == DFR:
        return _autoclass(pkg + "DFRSimilarity")(
            _autoclass(pkg + "BasicModelIn")(),
            _autoclass(pkg + "AfterEffectL")(),
            _autoclass(pkg + "NormalizationH2")(ranking.param("c")),
        )
    raise ValueError(f"No Lucene similarity for model {ranking.model!r}")


class LuceneIndexWriter:
    """IndexingBackend over a Lucene IndexWriter (always OpenMode.CREATE)."""

    def __init__(self, writer, directory, index_path: str):
        self._writer = writer
        self._directory = directory
        self._open = True
        self._JavaException = _java_exception()
        self.index_path = index_path

    @classmethod
    def open(cls, index_path: str) -> "LuceneIndexWriter":
        if os.path.exists(index_path) and not os.path.isdir(index_path):
            raise PathError(f"Index path exists and is not a directory: {index_path}")
        try:
            os.makedirs(index_path, exist_ok=True)
        except OSError as e:
            raise PathError(f"Cannot create index directory {index_path}: {e}") from e

        JavaException = _java_exception()
        directory = None
        try:
            config = _autoclass("org.apache.lucene.index.IndexWriterConfig")(_english_analyzer())
            config.setOpenMode(_autoclass("org.apache.lucene.index.IndexWriterConfig$OpenMode").CREATE)
            directory = _fs_directory(index_path)
            writer = _autoclass("org.apache.lucene.index.IndexWriter")(directory, config)
        except JavaException as e:
            if directory is not None:
                directory.close()
            raise PathError(f"Cannot open index for writing at {index_path}: {e}") from e
        log.debug("Opened IndexWriter at %s", index_path)
        return cls(writer, directory, index_path)

    def add_document(self, fields: Sequence[IndexField]) -> None:
        text_field = _autoclass("org.apache.lucene.document.TextField")
        string_field = _autoclass("org.apache.lucene.document.StringField")
        store = _autoclass("org.apache.lucene.document.Field$Store")

        doc = _autoclass("org.apache.lucene.document.Document")()
        for f in fields:
            field_cls = text_field if f.tokenized else string_field
            doc.add(field_cls(f.name, f.value, store.YES if f.stored else store.NO))
        try:
            self._writer.addDocument(doc)
        except self._JavaException as e:
            raise PathError(f"Cannot add document to index at {self.index_path}: {e}") from e

    def commit_and_close(self) -> None:
        try:
            self._writer.commit()
        except self._JavaException as e:
            raise PathError(f"Cannot commit index at {self.index_path}: {e}") from e
        self._close(rollback=False)

    def rollback(self) -> None:
        if self._open:
            self._close(rollback=True)

    def _close(self, rollback: bool) -> None:
        self._open = False
        try:
            if rollback:
                # IndexWriter.rollback() also closes the writer.
                self._writer.rollback()
            else:
                self._writer.close()
        except self._JavaException as e:
            raise PathError(f"Cannot close index at {self.index_path}: {e}") from e
        finally:
            self._directory.close()

    def __enter__(self) -> "LuceneIndexWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()


class LuceneSearchBackend:
    """SearchBackend over a Lucene IndexSearcher with an EnglishAnalyzer query parser."""

    def __init__(self, reader, directory, index_path: str):
        self._reader = reader
        self._directory = directory
        self._searcher = _autoclass("org.apache.lucene.search.IndexSearcher")(reader)
        self._stored = self._searcher.storedFields()
        self._analyzer = _english_analyzer()
        self._parsers: Dict[Tuple[str, ...], Any] = {}
        self._JavaException = _java_exception()
        self.index_path = index_path

    @classmethod
    def open(cls, index_path: str) -> "LuceneSearchBackend":
        if not os.path.isdir(index_path):
            raise PathError(f"Index directory not found: {index_path}")
        JavaException = _java_exception()
        directory = reader = None
        try:
            directory = _fs_directory(index_path)
            reader = _autoclass("org.apache.lucene.index.DirectoryReader").open(directory)
            backend = cls(reader, directory, index_path)
        except BaseException as e:
            if reader is not None:
                reader.close()
            if directory is not None:
                directory.close()
            if isinstance(e, JavaException):
                raise PathError(f"No valid Lucene index at {index_path}: {e}") from e
            raise
        log.debug("Opened index %s (%d docs)", index_path, reader.numDocs())
        return backend

    def set_ranking_model(self, ranking: RankingConfig) -> None:
        self._searcher.setSimilarity(build_similarity(ranking))
        log.debug("Similarity set: %s %s", ranking.model, ranking.params)

    def escape(self, text: str) -> str:
        return escape_query(text)

    def _parser(self, fields: Sequence[str]):
        key = tuple(fields)
        if key not in self._parsers:
            self._parsers[key] = _autoclass("org.apache.lucene.queryparser.classic.MultiFieldQueryParser")(
                list(key), self._analyzer
            )
        return self._parsers[key]

    def parse_query(self, text: str, fields: Sequence[str]):
        try:
            return self._parser(fields).parse(text)
        except self._JavaException as e:
            raise QueryError(f"Cannot parse query {text!r}: {e}") from e

    def search(self, query, topk: int) -> List[BackendHit]:
        if not isinstance(topk, int) or topk <= 0:
            raise ValueError("topk must be a positive integer")
        try:
            top_docs = self._searcher.search(query, topk)
        except self._JavaException as e:
            raise QueryError(f"Search failed: {e}") from e
        return [BackendHit(internal_id=int(sd.doc), score=float(sd.score)) for sd in top_docs.scoreDocs]

    def stored_field(self, internal_id: int, name: str) -> Optional[str]:
        value = self._stored.document(internal_id).get(name)
        return None if value is None else str(value)

    def close(self) -> None:
        self._reader.close()
        self._directory.close()

    def __enter__(self) -> "LuceneSearchBackend":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
