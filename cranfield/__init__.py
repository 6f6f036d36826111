"""Cranfield collection runner on top of Lucene (via Pyserini).

The parser, pipelines and run writer are backend-agnostic; only
`cranfield.lucene_backend` touches the JVM, and it imports Pyserini lazily.
"""
