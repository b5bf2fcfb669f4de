"""
TF-IDF weighting over a term-document count table.

For a document d and term t:

- tf(d, t)   = count(d, t) / total count in d
- idf(t)     = ln(N / df(t)), N = number of documents, df(t) = documents
               containing t
- tf_idf     = tf * idf

A term that occurs in every document gets idf = ln(1) = 0 and therefore
tf_idf = 0 everywhere; that is the intended meaning of "not
discriminative", not an error. All weights are >= 0.

Unlike scikit-learn's TfidfVectorizer there is no smoothing and no row
normalisation; the table keeps the raw components so they can be
inspected, sorted and joined.
"""

from __future__ import annotations

from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from tidycorpus.data.relation import COUNT_COL, DOCUMENT_COL, TERM_COL, validate_term_counts


TF_COL = "tf"
IDF_COL = "idf"
TF_IDF_COL = "tf_idf"


def bind_tf_idf(
    counts: pd.DataFrame,
    term_col: str = TERM_COL,
    document_col: str = DOCUMENT_COL,
    count_col: str = COUNT_COL,
) -> pd.DataFrame:
    """
    Add tf, idf and tf_idf columns to a term-document count table.

    Parameters
    ----------
    counts : pd.DataFrame
        One row per distinct (document, term) with a positive count. Other
        columns (e.g. "book") are carried through unchanged.
    term_col, document_col, count_col : str
        Column names.

    Returns
    -------
    pd.DataFrame
        Copy of ``counts`` in the same row order, with float columns
        "tf", "idf" and "tf_idf" appended.

    Raises
    ------
    InvalidInputError
        If columns are missing or a count is not positive.
    DuplicateKeyError
        If a (document, term) pair occurs more than once.
    """
    validate_term_counts(counts, document_col=document_col, term_col=term_col, count_col=count_col)

    out = counts.copy()
    n_documents = out[document_col].nunique()

    doc_totals = out.groupby(document_col, sort=False)[count_col].transform("sum")
    out[TF_COL] = out[count_col].astype(float) / doc_totals.astype(float)

    doc_freq = out.groupby(term_col, sort=False)[document_col].transform("nunique")
    out[IDF_COL] = np.log(n_documents / doc_freq.astype(float))

    out[TF_IDF_COL] = out[TF_COL] * out[IDF_COL]
    return out


def sort_by_tf_idf(table: pd.DataFrame, ascending: bool = False) -> pd.DataFrame:
    """
    The "highest tf_idf first" view of a TF-IDF table.

    Ties are broken by document then term so the order is reproducible.
    """
    by = [TF_IDF_COL]
    asc = [ascending]
    for col in (DOCUMENT_COL, TERM_COL):
        if col in table.columns:
            by.append(col)
            asc.append(True)
    return table.sort_values(by=by, ascending=asc, kind="mergesort").reset_index(drop=True)


def top_terms(
    table: pd.DataFrame,
    n: int = 10,
    by: Optional[Union[str, Sequence[str]]] = None,
) -> pd.DataFrame:
    """
    Highest-weighted rows of a TF-IDF table.

    Parameters
    ----------
    table : pd.DataFrame
        Output of bind_tf_idf.
    n : int
        Rows to keep (per group when ``by`` is given).
    by : Optional[Union[str, Sequence[str]]]
        Grouping column(s), e.g. "document_id" for the top terms of each
        document. None ranks the whole table.

    Returns
    -------
    pd.DataFrame
        Rows sorted by tf_idf descending (within groups, groups in
        first-seen order of the sorted view).
    """
    ranked = sort_by_tf_idf(table)
    if by is None:
        return ranked.head(n).reset_index(drop=True)
    return ranked.groupby(by, sort=False).head(n).reset_index(drop=True)
