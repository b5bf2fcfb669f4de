"""
Tests for tokenization into a tidy relation.

These tests validate that:

- word tokenization emits one row per whitespace-delimited unit
- output is grouped by document even when input lines are interleaved
- n-grams slide with stride 1 and never cross line or document boundaries
- case folding and punctuation stripping follow the flags
- sentence / line / paragraph / regex / character kinds segment as expected
- invalid option combinations and non-text input are rejected
"""

from __future__ import annotations

import pandas as pd
import pytest

from tidycorpus.data.corpus import documents_from_lines
from tidycorpus.errors import ConfigurationError, InvalidInputError
from tidycorpus.features.tokenizer import tokenize


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _docs(**kwargs) -> pd.DataFrame:
    return documents_from_lines(kwargs)


# ---------------------------------------------------------------------------
# Words
# ---------------------------------------------------------------------------


def test_word_count_matches_whitespace_units():
    """
    Row count equals the number of whitespace-delimited units once
    punctuation-only units are removed.
    """
    docs = _docs(
        a=["The cat sat, on the mat.", "  It purred  loudly "],
        b=["A dog -- barked !"],
    )
    relation = tokenize(docs)

    expected = 0
    for text in docs["text"]:
        expected += sum(1 for piece in text.split() if piece.strip("-!.,"))
    assert len(relation) == expected
    assert "" not in set(relation.frame["unit"])


def test_words_are_lowercased_and_stripped():
    docs = _docs(d1=['"Hello," said Alice. Don\'t panic!'])
    units = tokenize(docs).frame["unit"].tolist()
    assert units == ["hello", "said", "alice", "don't", "panic"]


def test_lowercase_flag_can_be_disabled():
    docs = _docs(d1=["Hello World"])
    units = tokenize(docs, lowercase=False).frame["unit"].tolist()
    assert units == ["Hello", "World"]


def test_strip_punctuation_flag_can_be_disabled():
    docs = _docs(d1=["end. ..."])
    units = tokenize(docs, strip_punctuation=False).frame["unit"].tolist()
    assert units == ["end.", "..."]


def test_positions_run_across_lines_of_a_document():
    docs = _docs(d1=["one two", "three"], d2=["four"])
    frame = tokenize(docs).frame
    assert frame["position"].tolist() == [1, 2, 3, 1]
    assert frame["document_id"].tolist() == ["d1", "d1", "d1", "d2"]


def test_interleaved_lines_are_grouped_by_document():
    docs = pd.DataFrame(
        {"document_id": ["d1", "d2", "d1"], "text": ["a b", "x", "c"], "line": [1, 1, 2]}
    )
    frame = tokenize(docs).frame
    assert frame["document_id"].tolist() == ["d1", "d1", "d1", "d2"]
    assert frame["position"].tolist() == [1, 2, 3, 1]
    assert frame["unit"].tolist() == ["a", "b", "c", "x"]
    assert frame["line"].tolist() == [1, 1, 2, 1]


def test_carried_columns_pass_through_unchanged():
    docs = _docs(d1=["alpha beta", "gamma"])
    docs["book"] = "Emma"
    relation = tokenize(docs)

    assert relation.extra_columns == ("line_number", "book")
    frame = relation.frame
    assert frame["line_number"].tolist() == [1, 1, 2]
    assert set(frame["book"]) == {"Emma"}


def test_keep_columns_restricts_carried_columns():
    docs = _docs(d1=["alpha beta"])
    docs["book"] = "Emma"
    relation = tokenize(docs, keep_columns=["book"])
    assert relation.columns == ["document_id", "position", "unit", "book"]


# ---------------------------------------------------------------------------
# N-grams
# ---------------------------------------------------------------------------


def test_bigrams_slide_with_stride_one():
    docs = _docs(d1=["a b c d"])
    units = tokenize(docs, unit_kind="ngram", n=2).frame["unit"].tolist()
    assert units == ["a b", "b c", "c d"]


def test_ngrams_do_not_cross_documents_or_lines():
    docs = _docs(d1=["a b", "c d"], d2=["e f g"])
    frame = tokenize(docs, unit_kind="ngram", n=2).frame
    assert frame["unit"].tolist() == ["a b", "c d", "e f", "f g"]
    assert "b c" not in set(frame["unit"])
    assert "d e" not in set(frame["unit"])


def test_short_lines_produce_no_ngrams():
    docs = _docs(d1=["only"], d2=["x y z"])
    frame = tokenize(docs, unit_kind="ngram", n=3).frame
    assert frame["unit"].tolist() == ["x y z"]
    assert frame["document_id"].tolist() == ["d2"]


def test_unigrams_equal_words():
    docs = _docs(d1=["Red fish, blue fish."])
    words = tokenize(docs).frame["unit"].tolist()
    unigrams = tokenize(docs, unit_kind="ngram", n=1).frame["unit"].tolist()
    assert words == unigrams


# ---------------------------------------------------------------------------
# Other unit kinds
# ---------------------------------------------------------------------------


def test_sentences():
    docs = _docs(d1=["It was late. The house was dark! Was anyone home?"])
    units = tokenize(docs, unit_kind="sentence").frame["unit"].tolist()
    assert units == ["it was late", "the house was dark", "was anyone home"]


def test_lines_and_paragraphs():
    text = "first line\nsecond line\n\nnew paragraph"
    docs = _docs(d1=[text])

    lines = tokenize(docs, unit_kind="line").frame["unit"].tolist()
    assert lines == ["first line", "second line", "new paragraph"]

    paragraphs = tokenize(docs, unit_kind="paragraph").frame["unit"].tolist()
    assert paragraphs == ["first line\nsecond line", "new paragraph"]


def test_regex_splits_on_pattern():
    docs = _docs(d1=["Chapter 1 text CHAPTER 2 more"])
    units = tokenize(docs, unit_kind="regex", pattern=r"(?i)chapter \d+").frame["unit"].tolist()
    assert units == ["text", "more"]


def test_characters_and_shingles():
    docs = _docs(d1=["Ab, c"])
    chars = tokenize(docs, unit_kind="character").frame["unit"].tolist()
    assert chars == ["a", "b", "c"]

    shingles = tokenize(docs, unit_kind="character_shingles", n=2).frame["unit"].tolist()
    assert shingles == ["ab", "bc"]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("n", [None, 0, -1, 2.5, True])
def test_ngram_requires_positive_integer_n(n):
    docs = _docs(d1=["a b"])
    with pytest.raises(ConfigurationError):
        tokenize(docs, unit_kind="ngram", n=n)


def test_n_with_word_kind_is_rejected():
    with pytest.raises(ConfigurationError):
        tokenize(_docs(d1=["a b"]), unit_kind="word", n=2)


def test_unknown_unit_kind_is_rejected():
    with pytest.raises(ConfigurationError):
        tokenize(_docs(d1=["a b"]), unit_kind="morpheme")


def test_regex_requires_pattern():
    with pytest.raises(ConfigurationError):
        tokenize(_docs(d1=["a b"]), unit_kind="regex")


def test_non_text_body_is_rejected():
    docs = pd.DataFrame({"document_id": ["d1", "d2"], "text": ["fine", 42]})
    with pytest.raises(InvalidInputError):
        tokenize(docs)


def test_missing_text_column_is_rejected():
    docs = pd.DataFrame({"document_id": ["d1"], "body": ["text"]})
    with pytest.raises(InvalidInputError):
        tokenize(docs)

    relation = tokenize(docs, text_col="body")
    assert relation.frame["unit"].tolist() == ["text"]
