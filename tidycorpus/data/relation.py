"""
The tidy relation: one row per unit occurrence.

A TidyRelation wraps a pandas DataFrame with a fixed core schema

- document_id : the source document identifier (str or int)
- position    : 1-based position of the unit inside its document
- unit        : the token / n-gram / sentence as a string

plus an explicitly declared tuple of carried metadata columns
(``extra_columns``), e.g. line_number, section or book. Components state
which extras they read; everything else is passed through untouched.

This module also derives the term-document count table, the aggregate
consumed by the matrix caster and the TF-IDF engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from tidycorpus.errors import DuplicateKeyError, InvalidInputError


DOCUMENT_COL = "document_id"
POSITION_COL = "position"
UNIT_COL = "unit"
TERM_COL = "term"
COUNT_COL = "count"

CORE_COLUMNS = (DOCUMENT_COL, POSITION_COL, UNIT_COL)


def require_columns(df: pd.DataFrame, columns: Iterable[str], what: str = "table") -> None:
    """
    Raise InvalidInputError if any of ``columns`` is missing from ``df``.

    Parameters
    ----------
    df : pd.DataFrame
        Table to check.
    columns : Iterable[str]
        Required column names.
    what : str
        Human-readable name of the table, used in the error message.
    """
    if not isinstance(df, pd.DataFrame):
        raise InvalidInputError(f"Expected a pandas DataFrame for {what}, got {type(df).__name__}")

    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise InvalidInputError(
            f"Missing required column(s) in {what}: {missing}. "
            f"Available columns: {list(df.columns)}"
        )


def check_unique_keys(df: pd.DataFrame, keys: Sequence[str], what: str = "table") -> None:
    """
    Raise DuplicateKeyError if any combination of ``keys`` occurs twice.
    """
    dup_mask = df.duplicated(subset=list(keys), keep=False)
    if dup_mask.any():
        examples = df.loc[dup_mask, list(keys)].drop_duplicates().head(5)
        raise DuplicateKeyError(
            f"{what} has {int(dup_mask.sum())} rows with duplicate {list(keys)} keys; "
            f"aggregate before calling. First duplicates: "
            f"{examples.to_dict(orient='records')}"
        )


@dataclass(frozen=True, eq=False)
class TidyRelation:
    """
    One-row-per-unit table with a fixed core schema and declared extras.

    Attributes
    ----------
    frame : pd.DataFrame
        Underlying table. Columns are the core columns followed by
        ``extra_columns``; any other column is rejected.
    extra_columns : Tuple[str, ...]
        Carried metadata columns, in output order.
    """

    frame: pd.DataFrame
    extra_columns: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        require_columns(self.frame, CORE_COLUMNS, what="tidy relation")

        extras = tuple(self.extra_columns)
        overlap = [c for c in extras if c in CORE_COLUMNS]
        if overlap:
            raise InvalidInputError(f"Extra columns may not shadow core columns: {overlap}")
        require_columns(self.frame, extras, what="tidy relation")

        undeclared = [c for c in self.frame.columns if c not in CORE_COLUMNS and c not in extras]
        if undeclared:
            raise InvalidInputError(
                f"Tidy relation has undeclared columns {undeclared}; "
                "list them in extra_columns"
            )

        object.__setattr__(self, "extra_columns", extras)
        object.__setattr__(
            self, "frame", self.frame.loc[:, list(CORE_COLUMNS) + list(extras)]
        )

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        document_col: str = DOCUMENT_COL,
        unit_col: str = UNIT_COL,
        position_col: Optional[str] = None,
        extra_columns: Optional[Sequence[str]] = None,
    ) -> "TidyRelation":
        """
        Build a relation from an arbitrary DataFrame.

        Parameters
        ----------
        df : pd.DataFrame
            Source table, one row per unit.
        document_col, unit_col : str
            Names of the document identifier and unit columns in ``df``.
        position_col : Optional[str]
            Column holding positions. If None, positions are numbered
            1..k within each document in row order.
        extra_columns : Optional[Sequence[str]]
            Columns to carry. If None, every other column is carried.

        Returns
        -------
        TidyRelation
            New relation; ``df`` is not modified.
        """
        source_cols = [document_col, unit_col] + ([position_col] if position_col else [])
        require_columns(df, source_cols, what="input table")

        if extra_columns is None:
            extra_columns = [c for c in df.columns if c not in source_cols]
        else:
            require_columns(df, extra_columns, what="input table")

        out = pd.DataFrame(
            {
                DOCUMENT_COL: df[document_col].to_numpy(),
                UNIT_COL: df[unit_col].astype(str).to_numpy(),
            }
        )
        if position_col:
            out[POSITION_COL] = df[position_col].to_numpy()
        else:
            out[POSITION_COL] = out.groupby(DOCUMENT_COL, sort=False).cumcount() + 1
        for col in extra_columns:
            out[col] = df[col].to_numpy()

        return cls(out, tuple(extra_columns))

    def __len__(self) -> int:
        return len(self.frame)

    @property
    def columns(self) -> List[str]:
        return list(self.frame.columns)

    def to_frame(self) -> pd.DataFrame:
        """Return a copy of the underlying table."""
        return self.frame.copy()

    def documents(self) -> List:
        """Distinct document ids in first-seen order."""
        return list(pd.unique(self.frame[DOCUMENT_COL]))

    def with_frame(
        self, frame: pd.DataFrame, extra_columns: Optional[Sequence[str]] = None
    ) -> "TidyRelation":
        """New relation over ``frame``, keeping this relation's extras unless overridden."""
        extras = self.extra_columns if extra_columns is None else tuple(extra_columns)
        return TidyRelation(frame.reset_index(drop=True), extras)

    def filter(self, mask: pd.Series) -> "TidyRelation":
        """Rows where ``mask`` is True, as a new relation."""
        return self.with_frame(self.frame.loc[mask.to_numpy()])


def as_frame(relation) -> pd.DataFrame:
    """Accept a TidyRelation or a DataFrame and return the DataFrame (not copied)."""
    if isinstance(relation, TidyRelation):
        return relation.frame
    if isinstance(relation, pd.DataFrame):
        return relation
    raise InvalidInputError(
        f"Expected a TidyRelation or pandas DataFrame, got {type(relation).__name__}"
    )


# ---------------------------------------------------------------------------
# Term-document counts
# ---------------------------------------------------------------------------


def count_terms(
    relation: TidyRelation,
    keep_columns: Optional[Sequence[str]] = None,
    sort: bool = False,
) -> pd.DataFrame:
    """
    Aggregate a tidy relation into the term-document count table.

    Reads only ``document_id`` and ``unit`` (plus ``keep_columns``).

    Parameters
    ----------
    relation : TidyRelation
        Source relation.
    keep_columns : Optional[Sequence[str]]
        Extra columns that are constant within a document (e.g. "book")
        to keep on the count table. A column that varies inside a document
        raises InvalidInputError.
    sort : bool
        If True, sort by count descending; otherwise rows follow
        first-seen (document, term) order.

    Returns
    -------
    pd.DataFrame
        Columns ["document_id", "term", "count", *keep_columns], one row per
        distinct (document, term). ``count`` is an int64 >= 1.
    """
    df = as_frame(relation)
    keep_columns = list(keep_columns or [])
    require_columns(df, [DOCUMENT_COL, UNIT_COL] + keep_columns, what="tidy relation")

    counts = (
        df.groupby([DOCUMENT_COL, UNIT_COL], sort=False)
        .size()
        .rename(COUNT_COL)
        .reset_index()
        .rename(columns={UNIT_COL: TERM_COL})
    )
    counts[COUNT_COL] = counts[COUNT_COL].astype("int64")

    if keep_columns:
        per_doc = df[[DOCUMENT_COL] + keep_columns].drop_duplicates()
        if per_doc[DOCUMENT_COL].duplicated().any():
            raise InvalidInputError(
                f"Columns {keep_columns} vary within a document and cannot be "
                "kept on the term-document count table"
            )
        counts = counts.merge(per_doc, on=DOCUMENT_COL, how="left")

    if sort:
        counts = counts.sort_values(COUNT_COL, ascending=False, kind="mergesort")

    return counts.reset_index(drop=True)


def validate_term_counts(
    counts: pd.DataFrame,
    document_col: str = DOCUMENT_COL,
    term_col: str = TERM_COL,
    count_col: str = COUNT_COL,
) -> None:
    """
    Check the term-document count table invariants.

    Raises InvalidInputError for missing columns or non-positive counts,
    and DuplicateKeyError for repeated (document, term) keys.
    """
    require_columns(counts, [document_col, term_col, count_col], what="term-document counts")
    if not pd.api.types.is_numeric_dtype(counts[count_col]):
        raise InvalidInputError(f"Column '{count_col}' must be numeric")
    if (counts[count_col] <= 0).any():
        raise InvalidInputError(f"Column '{count_col}' must be >= 1 on every row")
    check_unique_keys(counts, [document_col, term_col], what="term-document counts")
