"""End-to-end tests against a real Lucene index (needs pyserini and a Java runtime)."""

from __future__ import annotations

import os
import shutil

import pytest

pytest.importorskip("pyserini")
if shutil.which("java") is None and not os.environ.get("JAVA_HOME"):
    pytest.skip("Java runtime not available", allow_module_level=True)

from cranfield.config import RANKING_MODELS, SearchSettings, ranking_config  # noqa: E402
from cranfield.errors import PathError  # noqa: E402
from cranfield.indexing import index_documents  # noqa: E402
from cranfield.io import parse_records, DOCUMENT  # noqa: E402
from cranfield.lucene_backend import LuceneIndexWriter, LuceneSearchBackend  # noqa: E402
from cranfield.searching import search_queries  # noqa: E402
from cranfield.types import QueryRecord  # noqa: E402

from conftest import SAMPLE_CORPUS  # noqa: E402


@pytest.fixture(scope="module")
def index_dir(tmp_path_factory):
    path = str(tmp_path_factory.mktemp("lucene") / "index")
    with LuceneIndexWriter.open(path) as writer:
        count = index_documents(parse_records(SAMPLE_CORPUS.splitlines(True), DOCUMENT), writer)
    assert count == 3
    return path


@pytest.fixture
def backend(index_dir):
    with LuceneSearchBackend.open(index_dir) as b:
        yield b


def test_stored_fields(backend):
    # documents are added in order, so internal ids follow the corpus
    assert [backend.stored_field(i, "docno") for i in range(3)] == ["1", "2", "3"]
    assert backend.stored_field(2, "title").startswith("the boundary layer")
    assert backend.stored_field(0, "abstract").startswith("experimental investigation")
    assert backend.stored_field(0, "authors") is None
    assert backend.stored_field(0, "bib") is None
    assert backend.stored_field(0, "content") is None


@pytest.mark.parametrize("model", RANKING_MODELS)
def test_every_model_ranks_the_matching_document_first(backend, model):
    results = search_queries(
        queries=[QueryRecord(id="1", text="boundary layer")],
        backend=backend,
        ranking=ranking_config(model),
        settings=SearchSettings(topk=10),
    )

    hits = results["1"]
    assert hits[0].docno == "3"
    assert [h.rank for h in hits] == list(range(1, len(hits) + 1))
    scores = [h.score for h in hits]
    assert scores == sorted(scores, reverse=True)


def test_special_characters_are_plain_terms(backend):
    results = search_queries(
        queries=[
            QueryRecord(id="8", text="foo (bar): shear-flow? [plate] \"wing\" a/b"),
            QueryRecord(id="9", text="foo (bar)"),
        ],
        backend=backend,
        ranking=ranking_config("bm25"),
    )

    assert set(results) == {"8", "9"}
    assert {h.docno for h in results["8"]} >= {"2", "3"}
    assert results["9"] == []


def test_field_selection(backend):
    bm25 = ranking_config("bm25")
    # "brenckman" is only in the authors of doc 1, which the content field includes
    by_content = search_queries(queries=[QueryRecord(id="1", text="brenckman")], backend=backend, ranking=bm25)
    by_title = search_queries(
        queries=[QueryRecord(id="1", text="brenckman")],
        backend=backend,
        ranking=bm25,
        settings=SearchSettings(fields=("title", "abstract")),
    )

    assert [h.docno for h in by_content["1"]] == ["1"]
    assert by_title["1"] == []


def test_open_directory_without_index(tmp_path):
    with pytest.raises(PathError):
        LuceneSearchBackend.open(str(tmp_path))


def test_open_missing_directory(tmp_path):
    with pytest.raises(PathError):
        LuceneSearchBackend.open(str(tmp_path / "nope"))


def test_writer_rejects_file_path(tmp_path):
    target = tmp_path / "file"
    target.write_text("x", encoding="utf-8")

    with pytest.raises(PathError):
        LuceneIndexWriter.open(str(target))
