"""
Document tables: the tokenizer's input.

A document is an identifier plus an ordered sequence of text lines. We
represent a corpus as a pandas DataFrame with one row per line:

- document_id : document identifier
- text        : the line's text
- line_number : 1-based line index within the document
- ...         : any further metadata, carried through tokenization

This module provides helpers to:
- build that table from an in-memory mapping of documents
- load it from a CSV file, normalising column names
- group consecutive lines into fixed-size sections for pairwise analysis.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Hashable, Iterable, Mapping, Union

import pandas as pd

from tidycorpus.data.relation import DOCUMENT_COL, require_columns
from tidycorpus.errors import ConfigurationError, InvalidInputError


logger = logging.getLogger(__name__)

TEXT_COL = "text"
LINE_NUMBER_COL = "line_number"


def documents_from_lines(
    documents: Mapping[Hashable, Union[str, Iterable[str]]],
) -> pd.DataFrame:
    """
    Build a document table from ``{document_id: lines}``.

    Parameters
    ----------
    documents : Mapping[Hashable, Union[str, Iterable[str]]]
        Each value is either a list of lines or a single string, which is
        treated as a one-line document.

    Returns
    -------
    pd.DataFrame
        Columns ["document_id", "line_number", "text"], documents in mapping
        order, lines in their original order.
    """
    records = []
    for doc_id, lines in documents.items():
        if isinstance(lines, str):
            lines = [lines]
        for line_number, line in enumerate(lines, start=1):
            records.append({DOCUMENT_COL: doc_id, LINE_NUMBER_COL: line_number, TEXT_COL: line})

    return pd.DataFrame(records, columns=[DOCUMENT_COL, LINE_NUMBER_COL, TEXT_COL])


def add_line_numbers(documents: pd.DataFrame, document_col: str = DOCUMENT_COL) -> pd.DataFrame:
    """Return a copy of ``documents`` with a 1-based line_number per document."""
    require_columns(documents, [document_col], what="document table")
    out = documents.copy()
    out[LINE_NUMBER_COL] = out.groupby(document_col, sort=False).cumcount() + 1
    return out


def add_section_column(
    documents: pd.DataFrame,
    lines_per_section: int = 10,
    section_col: str = "section",
    document_col: str = DOCUMENT_COL,
) -> pd.DataFrame:
    """
    Group consecutive lines of each document into numbered sections.

    Sections are the usual grouping context for pairwise co-occurrence:
    line k (0-based within its document) belongs to section
    ``k // lines_per_section``. Section labels are made unique across
    documents by pairing them with the document id, so two documents never
    share a section.

    Parameters
    ----------
    documents : pd.DataFrame
        Document table, one row per line, in reading order.
    lines_per_section : int
        Number of lines per section; must be >= 1.
    section_col : str
        Name of the new column.
    document_col : str
        Document identifier column.

    Returns
    -------
    pd.DataFrame
        Copy of ``documents`` with the section column added. Labels have the
        form "<document_id>:<index>".
    """
    if not isinstance(lines_per_section, int) or lines_per_section < 1:
        raise ConfigurationError(
            f"lines_per_section must be a positive integer, got {lines_per_section!r}"
        )
    require_columns(documents, [document_col], what="document table")

    out = documents.copy()
    index_in_doc = out.groupby(document_col, sort=False).cumcount()
    section_idx = index_in_doc // lines_per_section
    out[section_col] = out[document_col].astype(str) + ":" + section_idx.astype(str)
    return out


def load_documents_csv(
    path: str,
    document_column: str = DOCUMENT_COL,
    text_column: str = TEXT_COL,
    drop_na_text: bool = True,
    **read_csv_kwargs: Any,
) -> pd.DataFrame:
    """
    Load a document table from a CSV file.

    This function:
    - reads the CSV with pandas
    - ensures the document and text columns exist
    - optionally drops rows with missing text
    - normalizes columns to the standard names "document_id" and "text"
    - adds a "line_number" column if the file has none

    Parameters
    ----------
    path : str
        CSV file path.
    document_column : str
        Name of the document identifier column in the file.
    text_column : str
        Name of the text column in the file.
    drop_na_text : bool
        Drop rows whose text is missing. When False, such rows are kept and
        tokenization will reject them.
    **read_csv_kwargs
        Forwarded to ``pd.read_csv``.

    Returns
    -------
    pd.DataFrame
        Document table ready for tokenization.

    Raises
    ------
    FileNotFoundError
        If the CSV file does not exist.
    InvalidInputError
        If required columns are missing.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Document CSV not found at: {path}")

    df = pd.read_csv(path, **read_csv_kwargs)
    require_columns(df, [document_column, text_column], what=f"document CSV {path}")

    if drop_na_text:
        n_before = len(df)
        df = df.dropna(subset=[text_column])
        if len(df) < n_before:
            logger.warning("Dropped %d rows with missing text from %s", n_before - len(df), path)

    rename = {}
    if document_column != DOCUMENT_COL:
        rename[document_column] = DOCUMENT_COL
    if text_column != TEXT_COL:
        rename[text_column] = TEXT_COL
    if rename:
        clash = [new for new in rename.values() if new in df.columns]
        if clash:
            raise InvalidInputError(f"Cannot rename to {clash}: column already present in {path}")
        df = df.rename(columns=rename)

    df = df.reset_index(drop=True)
    if LINE_NUMBER_COL not in df.columns:
        df = add_line_numbers(df)

    return df
