"""
Error types raised by the tidycorpus pipeline.

Every error is raised synchronously by the call that detects the problem;
no operation returns a partial table on failure. All of them also derive
from ValueError, so callers that already guard pandas / scikit-learn calls
with ``except ValueError`` keep working.
"""

from __future__ import annotations


class TidyCorpusError(Exception):
    """Base class for all tidycorpus errors."""


class ConfigurationError(TidyCorpusError, ValueError):
    """Invalid combination of options (e.g. unit_kind="ngram" without n)."""


class InvalidInputError(TidyCorpusError, ValueError):
    """Input table is malformed: missing column, non-text body, bad index map."""


class DuplicateKeyError(TidyCorpusError, ValueError):
    """A (document, term) key occurs more than once where counts must be pre-aggregated."""


class DegenerateInputError(TidyCorpusError, ValueError):
    """A correlation denominator is zero (item present in every group)."""
