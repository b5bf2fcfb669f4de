"""
Joins against external word lists: stop words and scoring lexicons.

Nothing here is looked up implicitly. A stop-word list or a sentiment
lexicon is an ordinary input table passed to the join; get_stop_words()
merely builds one such table from scikit-learn's English list.
"""

from __future__ import annotations

from typing import Iterable, Union

import pandas as pd
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

from tidycorpus.data.relation import (
    UNIT_COL,
    TidyRelation,
    as_frame,
    require_columns,
)
from tidycorpus.errors import InvalidInputError


WORD_COL = "word"


def get_stop_words() -> pd.DataFrame:
    """
    English stop words as a table.

    Returns
    -------
    pd.DataFrame
        Columns ["word", "lexicon"], one row per word, sorted, with
        lexicon = "sklearn".
    """
    words = sorted(ENGLISH_STOP_WORDS)
    return pd.DataFrame({WORD_COL: words, "lexicon": "sklearn"})


def _stop_word_set(stop_words: Union[pd.DataFrame, Iterable[str]], stop_col: str) -> set:
    if isinstance(stop_words, pd.DataFrame):
        require_columns(stop_words, [stop_col], what="stop-word table")
        return set(stop_words[stop_col].dropna())
    if isinstance(stop_words, str):
        raise InvalidInputError("stop_words must be a table or an iterable of words, not a string")
    return set(stop_words)


def anti_join_stop_words(
    relation: Union[TidyRelation, pd.DataFrame],
    stop_words: Union[pd.DataFrame, Iterable[str]],
    term_col: str = UNIT_COL,
    stop_col: str = WORD_COL,
) -> Union[TidyRelation, pd.DataFrame]:
    """
    Drop rows whose unit appears in ``stop_words``.

    Positions of the remaining rows are left as they were, so gaps mark
    where stop words were removed.

    Parameters
    ----------
    relation : TidyRelation or pd.DataFrame
        Source table.
    stop_words : pd.DataFrame or Iterable[str]
        Stop-word table (column ``stop_col``) or plain iterable of words.
    term_col : str
        Column of ``relation`` compared against the stop words.
    stop_col : str
        Word column of a stop-word table.

    Returns
    -------
    TidyRelation or pd.DataFrame
        Same kind of object as ``relation``, without the stop-word rows.
    """
    df = as_frame(relation)
    require_columns(df, [term_col], what="tidy relation")
    stop_set = _stop_word_set(stop_words, stop_col)
    mask = ~df[term_col].isin(stop_set)
    if isinstance(relation, pd.DataFrame):
        return df.loc[mask].reset_index(drop=True)
    return relation.filter(mask)


def join_lexicon(
    relation: Union[TidyRelation, pd.DataFrame],
    lexicon: pd.DataFrame,
    term_col: str = UNIT_COL,
    lexicon_term_col: str = WORD_COL,
) -> Union[TidyRelation, pd.DataFrame]:
    """
    Inner-join a scoring lexicon onto a relation by term equality.

    Every non-key lexicon column (e.g. "sentiment", "value") becomes a
    declared extra column of the result. Rows whose unit is not in the
    lexicon are dropped; a unit listed several times in the lexicon yields
    one row per lexicon entry. A DataFrame input gives a DataFrame back.

    Raises
    ------
    InvalidInputError
        If a key column is missing or a lexicon column would overwrite an
        existing relation column.
    """
    df = as_frame(relation)
    require_columns(df, [term_col], what="tidy relation")
    require_columns(lexicon, [lexicon_term_col], what="lexicon")

    value_cols = [c for c in lexicon.columns if c != lexicon_term_col]
    clash = [c for c in value_cols if c in df.columns]
    if clash:
        raise InvalidInputError(f"Lexicon columns {clash} already exist on the relation")

    joined = df.merge(
        lexicon,
        how="inner",
        left_on=term_col,
        right_on=lexicon_term_col,
        sort=False,
    )
    if lexicon_term_col != term_col:
        joined = joined.drop(columns=[lexicon_term_col])

    if isinstance(relation, pd.DataFrame):
        return joined.reset_index(drop=True)
    return relation.with_frame(joined, tuple(relation.extra_columns) + tuple(value_cols))
