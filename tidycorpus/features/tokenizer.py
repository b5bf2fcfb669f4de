"""
Tokenization of document tables into a tidy relation.

Each input row (one line of one document) is segmented into units of a
chosen kind:

- word               : whitespace-delimited words
- character          : single characters (whitespace dropped)
- character_shingles : overlapping windows of n characters
- sentence           : sentences (Punkt, untrained; no model download)
- line               : physical lines inside the text cell
- paragraph          : blocks separated by blank lines
- ngram              : overlapping windows of n words
- regex              : pieces between matches of a separator pattern

Units are case-folded after segmentation (sentence detection relies on
capitals) and stripped of leading/trailing punctuation. A unit that is
empty after stripping is dropped. Windows (ngram, character_shingles) are
formed inside a single input row, so they never cross a line or document
boundary.

The output is a TidyRelation with one row per unit occurrence in
document-then-position order; every non-text input column is carried
through unchanged unless ``keep_columns`` restricts them.
"""

from __future__ import annotations

import logging
import numbers
import string
from typing import Callable, Dict, List, Optional, Sequence

import pandas as pd
from nltk.tokenize import (
    BlanklineTokenizer,
    LineTokenizer,
    PunktSentenceTokenizer,
    RegexpTokenizer,
    WhitespaceTokenizer,
)
from nltk.util import ngrams

from tidycorpus.data.relation import (
    DOCUMENT_COL,
    POSITION_COL,
    UNIT_COL,
    TidyRelation,
    require_columns,
)
from tidycorpus.errors import ConfigurationError, InvalidInputError


logger = logging.getLogger(__name__)

UNIT_KINDS = (
    "word",
    "character",
    "character_shingles",
    "sentence",
    "line",
    "paragraph",
    "ngram",
    "regex",
)

# Kinds that need a window size n.
WINDOWED_KINDS = ("ngram", "character_shingles")

# ASCII punctuation plus common typographic quotes, dashes and ellipsis.
PUNCTUATION = string.punctuation + "‘’“”«»–—…¿¡"

_whitespace_tokenizer = WhitespaceTokenizer()
_line_tokenizer = LineTokenizer(blanklines="discard")
_paragraph_tokenizer = BlanklineTokenizer()
_sentence_tokenizer = PunktSentenceTokenizer()


# ---------------------------------------------------------------------------
# Unit normalization
# ---------------------------------------------------------------------------


def _normalize(unit: str, lowercase: bool, strip_punctuation: bool) -> str:
    """
    Case-fold and strip one unit.

    Surrounding whitespace is always removed; surrounding punctuation only
    when ``strip_punctuation`` is True. May return "".
    """
    unit = unit.strip()
    if strip_punctuation:
        unit = unit.strip(PUNCTUATION).strip()
    if lowercase:
        unit = unit.lower()
    return unit


def _normalized_units(pieces: Sequence[str], lowercase: bool, strip_punctuation: bool) -> List[str]:
    out = []
    for piece in pieces:
        unit = _normalize(piece, lowercase, strip_punctuation)
        if unit:
            out.append(unit)
    return out


def _characters(text: str, lowercase: bool, strip_punctuation: bool) -> List[str]:
    chars = []
    for ch in text:
        if ch.isspace():
            continue
        if strip_punctuation and ch in PUNCTUATION:
            continue
        chars.append(ch.lower() if lowercase else ch)
    return chars


# ---------------------------------------------------------------------------
# Segmenters
# ---------------------------------------------------------------------------


def _build_segmenter(
    unit_kind: str,
    n: Optional[int],
    pattern: Optional[str],
    lowercase: bool,
    strip_punctuation: bool,
) -> Callable[[str], List[str]]:
    """
    Return a function mapping one text cell to its list of output units.
    """
    if unit_kind == "word":
        return lambda text: _normalized_units(
            _whitespace_tokenizer.tokenize(text), lowercase, strip_punctuation
        )

    if unit_kind == "ngram":

        def _ngrams(text: str) -> List[str]:
            words = _normalized_units(
                _whitespace_tokenizer.tokenize(text), lowercase, strip_punctuation
            )
            return [" ".join(gram) for gram in ngrams(words, n)]

        return _ngrams

    if unit_kind == "character":
        return lambda text: _characters(text, lowercase, strip_punctuation)

    if unit_kind == "character_shingles":

        def _shingles(text: str) -> List[str]:
            chars = _characters(text, lowercase, strip_punctuation)
            return ["".join(gram) for gram in ngrams(chars, n)]

        return _shingles

    if unit_kind == "sentence":
        return lambda text: _normalized_units(
            _sentence_tokenizer.tokenize(text), lowercase, strip_punctuation
        )

    if unit_kind == "line":
        return lambda text: _normalized_units(
            _line_tokenizer.tokenize(text), lowercase, strip_punctuation
        )

    if unit_kind == "paragraph":
        return lambda text: _normalized_units(
            _paragraph_tokenizer.tokenize(text), lowercase, strip_punctuation
        )

    if unit_kind == "regex":
        regex_tokenizer = RegexpTokenizer(pattern, gaps=True)
        return lambda text: _normalized_units(
            regex_tokenizer.tokenize(text), lowercase, strip_punctuation
        )

    raise ConfigurationError(f"Unknown unit_kind {unit_kind!r}; expected one of {UNIT_KINDS}")


def _validate_options(unit_kind: str, n: Optional[int], pattern: Optional[str]) -> None:
    """Reject invalid unit_kind / n / pattern combinations."""
    if unit_kind not in UNIT_KINDS:
        raise ConfigurationError(f"Unknown unit_kind {unit_kind!r}; expected one of {UNIT_KINDS}")

    if unit_kind in WINDOWED_KINDS:
        if n is None or isinstance(n, bool) or not isinstance(n, numbers.Integral) or n < 1:
            raise ConfigurationError(
                f"unit_kind={unit_kind!r} requires an integer n >= 1, got {n!r}"
            )
    elif n is not None:
        raise ConfigurationError(f"n is only valid for {WINDOWED_KINDS}, not {unit_kind!r}")

    if unit_kind == "regex":
        if not pattern:
            raise ConfigurationError("unit_kind='regex' requires a separator pattern")
    elif pattern is not None:
        raise ConfigurationError(f"pattern is only valid for unit_kind='regex', not {unit_kind!r}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def tokenize(
    documents: pd.DataFrame,
    unit_kind: str = "word",
    n: Optional[int] = None,
    keep_columns: Optional[Sequence[str]] = None,
    *,
    text_col: str = "text",
    document_col: str = DOCUMENT_COL,
    pattern: Optional[str] = None,
    lowercase: bool = True,
    strip_punctuation: bool = True,
) -> TidyRelation:
    """
    Split a document table into a tidy relation of units.

    Parameters
    ----------
    documents : pd.DataFrame
        One row per text line, with a document id column and a text column.
        Rows of one document are read in table order.
    unit_kind : str
        One of UNIT_KINDS.
    n : Optional[int]
        Window size; required (>= 1) for "ngram" and "character_shingles"
        and invalid for every other kind.
    keep_columns : Optional[Sequence[str]]
        Carried columns. None carries every column except the document id
        and text columns.
    text_col : str
        Name of the text column.
    document_col : str
        Name of the document id column; renamed to "document_id" on output.
    pattern : Optional[str]
        Separator regex, required for unit_kind="regex".
    lowercase : bool
        Case-fold units.
    strip_punctuation : bool
        Strip leading/trailing punctuation from each unit (and drop
        punctuation characters for character-level kinds).

    Returns
    -------
    TidyRelation
        Columns document_id, position (1-based per document), unit, then
        the carried columns.

    Raises
    ------
    ConfigurationError
        On an invalid unit_kind / n / pattern combination.
    InvalidInputError
        If a required column is missing or a text value is not a string.
    """
    _validate_options(unit_kind, n, pattern)
    require_columns(documents, [document_col, text_col], what="document table")

    if keep_columns is None:
        keep_columns = [c for c in documents.columns if c not in (document_col, text_col)]
    else:
        keep_columns = list(keep_columns)
        require_columns(documents, keep_columns, what="document table")
    clashes = [c for c in keep_columns if c in (DOCUMENT_COL, POSITION_COL, UNIT_COL)]
    if clashes:
        raise InvalidInputError(f"Carried columns clash with output columns: {clashes}")

    segment = _build_segmenter(unit_kind, n, pattern, lowercase, strip_punctuation)

    doc_ids = documents[document_col].tolist()
    texts = documents[text_col].tolist()
    carried = {col: documents[col].tolist() for col in keep_columns}

    out_docs: List = []
    out_positions: List[int] = []
    out_units: List[str] = []
    out_carried: Dict[str, List] = {col: [] for col in keep_columns}
    next_position: Dict = {}

    for row_idx, (doc_id, text) in enumerate(zip(doc_ids, texts)):
        if not isinstance(text, str):
            raise InvalidInputError(
                f"Text of document {doc_id!r} (row {row_idx}) is "
                f"{type(text).__name__}, expected str"
            )

        units = segment(text)
        if not units:
            continue

        start = next_position.get(doc_id, 1)
        next_position[doc_id] = start + len(units)

        out_docs.extend([doc_id] * len(units))
        out_positions.extend(range(start, start + len(units)))
        out_units.extend(units)
        for col in keep_columns:
            out_carried[col].extend([carried[col][row_idx]] * len(units))

    frame = pd.DataFrame(
        {
            DOCUMENT_COL: pd.Series(out_docs, dtype=documents[document_col].dtype),
            POSITION_COL: pd.Series(out_positions, dtype="int64"),
            UNIT_COL: pd.Series(out_units, dtype=object),
        }
    )
    for col in keep_columns:
        frame[col] = pd.Series(out_carried[col], dtype=documents[col].dtype)

    # Lines of one document may be interleaved with other documents in the
    # input; output is grouped by document (first-seen order), then position.
    doc_rank = {doc_id: rank for rank, doc_id in enumerate(next_position)}
    frame = (
        frame.assign(_doc_rank=frame[DOCUMENT_COL].map(doc_rank))
        .sort_values(["_doc_rank", POSITION_COL], kind="mergesort")
        .drop(columns="_doc_rank")
        .reset_index(drop=True)
    )

    logger.debug(
        "Tokenized %d rows from %d text rows into %s units",
        len(frame),
        len(texts),
        unit_kind,
    )
    return TidyRelation(frame, tuple(keep_columns))
