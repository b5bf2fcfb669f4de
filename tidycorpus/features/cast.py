"""
Casting between term-document count tables and sparse matrices.

This module provides:
- MatrixCaster: term-document counts -> (csr_matrix, row map, col map) and
  back, with index maps that stay stable across calls on one instance
- SparseDocumentTermMatrix: a matrix bundled with its row / column
  identifiers, exposing dimensions, identifier lookups and a non-zero
  iterator; this is what downstream ML tooling consumes
- tidy_matrix: turn any scipy sparse matrix, numpy array or DataFrame into
  a tidy (document_id, term, count) table.

Entries are never summed: duplicate (document, term) rows are rejected and
callers must aggregate first (see tidycorpus.data.relation.count_terms).
Only non-zero entries are ever materialised on the way back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import sparse

from tidycorpus.data.relation import (
    COUNT_COL,
    DOCUMENT_COL,
    TERM_COL,
    check_unique_keys,
    require_columns,
)
from tidycorpus.errors import ConfigurationError, InvalidInputError


IndexMap = Dict[Hashable, int]

ORDERINGS = ("sorted", "first_seen")


def _ordered_new_ids(values: pd.Series, known: IndexMap, order: str) -> List[Hashable]:
    """Distinct ids in ``values`` that are not yet in ``known``, in assignment order."""
    new_ids = [v for v in pd.unique(values) if v not in known]
    if order == "sorted":
        try:
            new_ids = sorted(new_ids)
        except TypeError as exc:
            raise InvalidInputError(
                f"Identifiers cannot be sorted (mixed types?): {exc}"
            ) from exc
    return new_ids


def _invert_index_map(index_map: IndexMap, size: int, axis: str) -> List[Hashable]:
    """
    Turn ``{id: position}`` into a list of ids indexed by position.

    The map must be a bijection onto range(size).
    """
    if len(index_map) != size:
        raise InvalidInputError(
            f"{axis} index map has {len(index_map)} entries but the matrix has {size} {axis}s"
        )
    ids: List[Optional[Hashable]] = [None] * size
    seen = [False] * size
    for ident, pos in index_map.items():
        if isinstance(pos, bool) or not isinstance(pos, (int, np.integer)) or not 0 <= pos < size:
            raise InvalidInputError(f"{axis} index map position {pos!r} for {ident!r} is out of range")
        if seen[pos]:
            raise InvalidInputError(f"{axis} index map assigns position {pos} twice")
        seen[pos] = True
        ids[pos] = ident
    return ids


def _as_sparse(matrix) -> sparse.spmatrix:
    if sparse.issparse(matrix):
        return matrix
    arr = np.asarray(matrix)
    if arr.ndim != 2:
        raise InvalidInputError(f"Expected a 2-D matrix, got shape {arr.shape}")
    return sparse.csr_matrix(arr)


@dataclass(frozen=True, eq=False)
class SparseDocumentTermMatrix:
    """
    A document x term matrix together with its identifiers.

    Attributes
    ----------
    matrix : sparse.csr_matrix
        Counts (or weights); absent entries are zero.
    row_ids : Tuple[Hashable, ...]
        Document identifier of each row.
    col_ids : Tuple[Hashable, ...]
        Term of each column.
    """

    matrix: sparse.csr_matrix
    row_ids: Tuple[Hashable, ...]
    col_ids: Tuple[Hashable, ...]

    def __post_init__(self) -> None:
        n_rows, n_cols = self.matrix.shape
        if len(self.row_ids) != n_rows or len(self.col_ids) != n_cols:
            raise InvalidInputError(
                f"Identifier lengths ({len(self.row_ids)}, {len(self.col_ids)}) "
                f"do not match matrix shape {self.matrix.shape}"
            )
        object.__setattr__(self, "_row_lookup", {ident: i for i, ident in enumerate(self.row_ids)})
        object.__setattr__(self, "_col_lookup", {ident: j for j, ident in enumerate(self.col_ids)})

    @property
    def shape(self) -> Tuple[int, int]:
        return self.matrix.shape

    def row_id(self, row: int) -> Hashable:
        return self.row_ids[row]

    def col_id(self, col: int) -> Hashable:
        return self.col_ids[col]

    def row_index(self, document_id: Hashable) -> int:
        return self._row_lookup[document_id]

    def col_index(self, term: Hashable) -> int:
        return self._col_lookup[term]

    @property
    def row_index_map(self) -> IndexMap:
        return dict(self._row_lookup)

    @property
    def col_index_map(self) -> IndexMap:
        return dict(self._col_lookup)

    def iter_nonzero(self) -> Iterator[Tuple[int, int, float]]:
        """
        Yield (row, col, value) for every non-zero entry, row-major.

        Explicitly stored zeros are skipped.
        """
        coo = self.matrix.tocsr().tocoo()
        order = np.lexsort((coo.col, coo.row))
        for k in order:
            value = coo.data[k]
            if value != 0:
                yield int(coo.row[k]), int(coo.col[k]), value.item()

    def to_tidy(self) -> pd.DataFrame:
        """Inverse cast into (document_id, term, count)."""
        return MatrixCaster().from_sparse(self.matrix, self.row_index_map, self.col_index_map)


class MatrixCaster:
    """
    Bidirectional caster between count tables and sparse matrices.

    Index maps are kept on the instance: ids seen by an earlier
    ``to_sparse`` call keep their positions, and new ids are appended
    (sorted among themselves, or in first-seen order). Matrices produced by
    one caster therefore share a column space and can be stacked.

    Parameters
    ----------
    order : str
        "sorted" or "first_seen".
    """

    def __init__(self, order: str = "sorted") -> None:
        if order not in ORDERINGS:
            raise ConfigurationError(f"order must be one of {ORDERINGS}, got {order!r}")
        self.order = order
        self._row_index: IndexMap = {}
        self._col_index: IndexMap = {}

    @property
    def row_index_map(self) -> IndexMap:
        return dict(self._row_index)

    @property
    def col_index_map(self) -> IndexMap:
        return dict(self._col_index)

    def to_sparse(
        self,
        counts: pd.DataFrame,
        document_col: str = DOCUMENT_COL,
        term_col: str = TERM_COL,
        value_col: str = COUNT_COL,
    ) -> Tuple[sparse.csr_matrix, IndexMap, IndexMap]:
        """
        Cast a term-document count table to a CSR matrix.

        Parameters
        ----------
        counts : pd.DataFrame
            One row per distinct (document, term).
        document_col, term_col, value_col : str
            Column names of the row key, column key and cell value.

        Returns
        -------
        Tuple[sparse.csr_matrix, IndexMap, IndexMap]
            (matrix, row_index_map, col_index_map). The maps are copies of
            the caster's state after this call.

        Raises
        ------
        InvalidInputError
            If a column is missing or values are not numeric, or a
            count in the default "count" column is not positive.
        DuplicateKeyError
            If a (document, term) pair occurs more than once.
        """
        require_columns(counts, [document_col, term_col, value_col], what="term-document counts")
        if not pd.api.types.is_numeric_dtype(counts[value_col]):
            raise InvalidInputError(f"Column '{value_col}' must be numeric")
        if value_col == COUNT_COL and (counts[value_col] <= 0).any():
            raise InvalidInputError(f"Column '{value_col}' must hold counts >= 1")
        check_unique_keys(counts, [document_col, term_col], what="term-document counts")

        new_rows = _ordered_new_ids(counts[document_col], self._row_index, self.order)
        new_cols = _ordered_new_ids(counts[term_col], self._col_index, self.order)

        # Build the new maps fully before committing, so a failure leaves the
        # caster untouched.
        row_index = dict(self._row_index)
        for ident in new_rows:
            row_index[ident] = len(row_index)
        col_index = dict(self._col_index)
        for ident in new_cols:
            col_index[ident] = len(col_index)

        rows = counts[document_col].map(row_index).to_numpy(dtype=np.int64)
        cols = counts[term_col].map(col_index).to_numpy(dtype=np.int64)
        values = counts[value_col].to_numpy()

        matrix = sparse.coo_matrix(
            (values, (rows, cols)), shape=(len(row_index), len(col_index))
        ).tocsr()

        self._row_index = row_index
        self._col_index = col_index
        return matrix, dict(row_index), dict(col_index)

    def from_sparse(
        self,
        matrix,
        row_index_map: IndexMap,
        col_index_map: IndexMap,
        document_col: str = DOCUMENT_COL,
        term_col: str = TERM_COL,
        value_col: str = COUNT_COL,
    ) -> pd.DataFrame:
        """
        Cast a matrix back to a term-document count table.

        Parameters
        ----------
        matrix : sparse matrix or 2-D array
            Document x term values.
        row_index_map, col_index_map : IndexMap
            ``{identifier: position}`` maps, bijective onto the row / column
            ranges of ``matrix``.

        Returns
        -------
        pd.DataFrame
            One row per non-zero entry, row-major order, with columns
            (document_col, term_col, value_col).
        """
        mat = _as_sparse(matrix)
        n_rows, n_cols = mat.shape
        row_ids = _invert_index_map(row_index_map, n_rows, "row")
        col_ids = _invert_index_map(col_index_map, n_cols, "column")

        coo = mat.tocsr().tocoo()
        keep = coo.data != 0
        r, c, v = coo.row[keep], coo.col[keep], coo.data[keep]
        order = np.lexsort((c, r))
        r, c, v = r[order], c[order], v[order]

        return pd.DataFrame(
            {
                document_col: pd.Series([row_ids[i] for i in r], dtype=object),
                term_col: pd.Series([col_ids[j] for j in c], dtype=object),
                value_col: v,
            }
        )

    def cast(
        self,
        counts: pd.DataFrame,
        document_col: str = DOCUMENT_COL,
        term_col: str = TERM_COL,
        value_col: str = COUNT_COL,
    ) -> SparseDocumentTermMatrix:
        """``to_sparse`` packaged as a SparseDocumentTermMatrix."""
        matrix, row_map, col_map = self.to_sparse(counts, document_col, term_col, value_col)
        return SparseDocumentTermMatrix(
            matrix=matrix,
            row_ids=tuple(_invert_index_map(row_map, matrix.shape[0], "row")),
            col_ids=tuple(_invert_index_map(col_map, matrix.shape[1], "column")),
        )


def cast_dtm(
    counts: pd.DataFrame,
    document_col: str = DOCUMENT_COL,
    term_col: str = TERM_COL,
    value_col: str = COUNT_COL,
    order: str = "sorted",
) -> SparseDocumentTermMatrix:
    """
    One-shot cast of a count table to a SparseDocumentTermMatrix.

    ``value_col`` may name any numeric column, e.g. "tf_idf" to cast a
    weighted matrix.
    """
    return MatrixCaster(order=order).cast(counts, document_col, term_col, value_col)


def tidy_matrix(
    matrix,
    row_ids: Optional[Sequence[Hashable]] = None,
    col_ids: Optional[Sequence[Hashable]] = None,
    document_col: str = DOCUMENT_COL,
    term_col: str = TERM_COL,
    value_col: str = COUNT_COL,
) -> pd.DataFrame:
    """
    Tidy an external document-term matrix.

    Parameters
    ----------
    matrix : SparseDocumentTermMatrix, scipy sparse matrix, numpy array or DataFrame
        Documents as rows, terms as columns. A DataFrame supplies its index
        and columns as identifiers; a SparseDocumentTermMatrix its own ids.
    row_ids, col_ids : Optional[Sequence[Hashable]]
        Identifiers for rows / columns. Default to 0..n-1 (or the DataFrame
        labels).

    Returns
    -------
    pd.DataFrame
        (document_col, term_col, value_col), non-zero entries only.
    """
    if isinstance(matrix, SparseDocumentTermMatrix):
        row_ids = matrix.row_ids if row_ids is None else row_ids
        col_ids = matrix.col_ids if col_ids is None else col_ids
        matrix = matrix.matrix
    elif isinstance(matrix, pd.DataFrame):
        row_ids = list(matrix.index) if row_ids is None else row_ids
        col_ids = list(matrix.columns) if col_ids is None else col_ids
        matrix = matrix.to_numpy()

    mat = _as_sparse(matrix)
    n_rows, n_cols = mat.shape
    row_ids = list(range(n_rows)) if row_ids is None else list(row_ids)
    col_ids = list(range(n_cols)) if col_ids is None else list(col_ids)

    if len(set(row_ids)) != len(row_ids) or len(set(col_ids)) != len(col_ids):
        raise InvalidInputError("Row and column identifiers must be unique")

    row_map = {ident: i for i, ident in enumerate(row_ids)}
    col_map = {ident: j for j, ident in enumerate(col_ids)}
    return MatrixCaster().from_sparse(mat, row_map, col_map, document_col, term_col, value_col)
