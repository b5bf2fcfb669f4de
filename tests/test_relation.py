"""
Tests for the tidy relation, term-document counts and document tables.

These tests validate that:

- TidyRelation enforces its core schema and declared extra columns
- count_terms aggregates (document, unit) pairs without losing rows
- corpus helpers build, number and section document tables
- CSV loading normalizes column names
"""

from __future__ import annotations

import pandas as pd
import pytest

from tidycorpus.data.corpus import add_section_column, documents_from_lines, load_documents_csv
from tidycorpus.data.relation import TidyRelation, count_terms
from tidycorpus.errors import ConfigurationError, InvalidInputError
from tidycorpus.features.tokenizer import tokenize


# ---------------------------------------------------------------------------
# TidyRelation
# ---------------------------------------------------------------------------


def test_relation_requires_core_columns():
    with pytest.raises(InvalidInputError):
        TidyRelation(pd.DataFrame({"document_id": [1], "unit": ["a"]}))


def test_relation_rejects_undeclared_columns():
    frame = pd.DataFrame({"document_id": [1], "position": [1], "unit": ["a"], "book": ["x"]})
    with pytest.raises(InvalidInputError):
        TidyRelation(frame)

    relation = TidyRelation(frame, ("book",))
    assert relation.extra_columns == ("book",)


def test_from_frame_numbers_positions_per_document():
    df = pd.DataFrame({"doc": ["a", "a", "b"], "word": ["x", "y", "z"], "chapter": [1, 1, 2]})
    relation = TidyRelation.from_frame(df, document_col="doc", unit_col="word")

    assert relation.columns == ["document_id", "position", "unit", "chapter"]
    assert relation.frame["position"].tolist() == [1, 2, 1]
    assert relation.documents() == ["a", "b"]


def test_filter_returns_new_relation():
    relation = tokenize(documents_from_lines({"d1": ["a b c"]}))
    kept = relation.filter(relation.frame["unit"] != "b")

    assert kept.frame["unit"].tolist() == ["a", "c"]
    assert len(relation) == 3


# ---------------------------------------------------------------------------
# Term-document counts
# ---------------------------------------------------------------------------


def test_count_terms_sums_to_rows_per_document():
    docs = documents_from_lines({"d1": ["the cat and the hat"], "d2": ["the end"]})
    relation = tokenize(docs)
    counts = count_terms(relation)

    assert list(counts.columns) == ["document_id", "term", "count"]
    assert not counts.duplicated(["document_id", "term"]).any()
    per_doc = counts.groupby("document_id")["count"].sum().to_dict()
    assert per_doc == relation.frame.groupby("document_id").size().to_dict()

    row = counts[(counts["document_id"] == "d1") & (counts["term"] == "the")]
    assert int(row["count"].iloc[0]) == 2


def test_count_terms_keeps_document_level_columns():
    docs = documents_from_lines({"d1": ["x y"], "d2": ["x"]})
    docs["book"] = docs["document_id"].map({"d1": "Emma", "d2": "Persuasion"})
    counts = count_terms(tokenize(docs), keep_columns=["book"])

    assert set(zip(counts["document_id"], counts["book"])) == {("d1", "Emma"), ("d2", "Persuasion")}


def test_count_terms_rejects_varying_keep_column():
    docs = documents_from_lines({"d1": ["x", "y"]})
    with pytest.raises(InvalidInputError):
        count_terms(tokenize(docs), keep_columns=["line_number"])


# ---------------------------------------------------------------------------
# Document tables
# ---------------------------------------------------------------------------


def test_documents_from_lines_accepts_single_strings():
    docs = documents_from_lines({1: "one line", 2: ["first", "second"]})
    assert docs["document_id"].tolist() == [1, 2, 2]
    assert docs["line_number"].tolist() == [1, 1, 2]


def test_add_section_column_groups_consecutive_lines():
    docs = documents_from_lines({"a": ["l1", "l2", "l3"], "b": ["m1"]})
    sectioned = add_section_column(docs, lines_per_section=2)

    assert sectioned["section"].tolist() == ["a:0", "a:0", "a:1", "b:0"]
    assert "section" not in docs.columns


def test_add_section_column_rejects_bad_size():
    docs = documents_from_lines({"a": ["l1"]})
    with pytest.raises(ConfigurationError):
        add_section_column(docs, lines_per_section=0)


def test_load_documents_csv_renames_columns(tmp_path):
    path = tmp_path / "docs.csv"
    pd.DataFrame(
        {"title": ["A", "A", "B"], "body": ["first line", None, "other"], "year": [1811, 1811, 1813]}
    ).to_csv(path, index=False)

    docs = load_documents_csv(str(path), document_column="title", text_column="body")

    assert {"document_id", "text", "line_number", "year"} <= set(docs.columns)
    assert docs["text"].tolist() == ["first line", "other"]
    assert docs["line_number"].tolist() == [1, 1]


def test_load_documents_csv_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_documents_csv(str(tmp_path / "absent.csv"))
