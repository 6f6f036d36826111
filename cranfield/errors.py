"""Exception types for the Cranfield runner.

- UsageError: missing/invalid arguments; nothing has been written yet.
- PathError: unreadable input, unwritable output, missing or corrupt index.
- ConfigError: unknown ranking model (normally recovered by falling back to BM25).
- QueryError: a single query could not be parsed or executed (the batch skips it).
"""

from __future__ import annotations


class CranfieldError(Exception):
    """Base class for all errors raised by this package."""


class UsageError(CranfieldError, ValueError):
    pass


class PathError(CranfieldError):
    pass


class ConfigError(CranfieldError, ValueError):
    pass


class QueryError(CranfieldError):
    pass
