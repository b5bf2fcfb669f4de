"""
Pairwise co-occurrence counts and correlations within groups.

Given a table with an item column (e.g. "unit") and a group column (e.g.
"section"), this module computes, for every unordered pair of distinct
items that share at least one group:

- pairwise_count       : the number of groups containing both items
- pairwise_correlation : the phi coefficient of the two items'
                         presence/absence vectors across all groups

Pairs are emitted once, as (item1, item2) with item1 < item2 in the
identifiers' natural order. Items are de-duplicated inside a group, so a
word repeated within a section counts once for that section.

Work is quadratic in the number of distinct items per group. Callers are
expected to pre-filter rare items (filter_min_count) and may bound group
size explicitly with ``max_group_size``. Groups are processed in chunks
through joblib; chunk results are merged by summation, so every n_jobs
setting yields the same table.
"""

from __future__ import annotations

import logging
from collections import Counter
from itertools import combinations
from typing import Dict, Hashable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from tidycorpus.data.relation import as_frame, require_columns
from tidycorpus.errors import ConfigurationError, DegenerateInputError, InvalidInputError


logger = logging.getLogger(__name__)

ITEM1_COL = "item1"
ITEM2_COL = "item2"
COUNT_COL = "count"
CORRELATION_COL = "correlation"

OVERSIZE_POLICIES = ("raise", "skip")
DEGENERATE_POLICIES = ("error", "zero", "drop")

PairCounter = Counter


# ---------------------------------------------------------------------------
# Group preparation
# ---------------------------------------------------------------------------


def _sorted_items(items: Sequence[Hashable], group: Hashable) -> List[Hashable]:
    try:
        return sorted(items)
    except TypeError as exc:
        raise InvalidInputError(
            f"Items of group {group!r} have no total order (mixed types?): {exc}"
        ) from exc


def _group_items(
    df: pd.DataFrame,
    item_col: str,
    group_col: str,
    max_group_size: Optional[int],
    oversize: str,
) -> List[Tuple[Hashable, List[Hashable]]]:
    """
    Distinct, sorted items of each group, in first-seen group order.

    Groups larger than ``max_group_size`` are rejected or skipped
    according to ``oversize``.
    """
    pairs = df[[group_col, item_col]].dropna().drop_duplicates()
    groups: List[Tuple[Hashable, List[Hashable]]] = []
    for group, sub in pairs.groupby(group_col, sort=False):
        items = _sorted_items(sub[item_col].tolist(), group)
        if max_group_size is not None and len(items) > max_group_size:
            if oversize == "raise":
                raise InvalidInputError(
                    f"Group {group!r} has {len(items)} distinct items, more than "
                    f"max_group_size={max_group_size}; pre-filter items or raise the bound"
                )
            logger.warning(
                "Skipping group %r with %d distinct items (max_group_size=%d)",
                group,
                len(items),
                max_group_size,
            )
            continue
        groups.append((group, items))
    return groups


def _check_options(
    max_group_size: Optional[int], oversize: str, n_jobs: int, chunk_size: int
) -> None:
    if oversize not in OVERSIZE_POLICIES:
        raise ConfigurationError(f"oversize must be one of {OVERSIZE_POLICIES}, got {oversize!r}")
    if max_group_size is not None and (not isinstance(max_group_size, int) or max_group_size < 2):
        raise ConfigurationError(f"max_group_size must be an integer >= 2, got {max_group_size!r}")
    if not isinstance(chunk_size, int) or chunk_size < 1:
        raise ConfigurationError(f"chunk_size must be a positive integer, got {chunk_size!r}")
    if not isinstance(n_jobs, int) or n_jobs == 0:
        raise ConfigurationError(f"n_jobs must be a non-zero integer, got {n_jobs!r}")


# ---------------------------------------------------------------------------
# Counting
# ---------------------------------------------------------------------------


def _count_chunk(item_lists: List[List[Hashable]]) -> Tuple[PairCounter, Counter]:
    """Pair counts and per-item group counts for one chunk of groups."""
    pair_counts: PairCounter = Counter()
    item_counts: Counter = Counter()
    for items in item_lists:
        item_counts.update(items)
        pair_counts.update(combinations(items, 2))
    return pair_counts, item_counts


def _count_pairs(
    groups: List[Tuple[Hashable, List[Hashable]]],
    n_jobs: int,
    backend: Optional[str],
    chunk_size: int,
) -> Tuple[PairCounter, Counter]:
    item_lists = [items for _, items in groups]
    chunks = [item_lists[i : i + chunk_size] for i in range(0, len(item_lists), chunk_size)]

    results = Parallel(n_jobs=n_jobs, backend=backend)(
        delayed(_count_chunk)(chunk) for chunk in chunks
    )

    pair_counts: PairCounter = Counter()
    item_counts: Counter = Counter()
    for chunk_pairs, chunk_items in results:
        pair_counts.update(chunk_pairs)
        item_counts.update(chunk_items)

    logger.debug(
        "Counted %d distinct pairs over %d groups in %d chunks",
        len(pair_counts),
        len(groups),
        len(chunks),
    )
    return pair_counts, item_counts


def _pairs_frame(pair_counts: PairCounter) -> pd.DataFrame:
    if not pair_counts:
        return pd.DataFrame(
            {
                ITEM1_COL: pd.Series([], dtype=object),
                ITEM2_COL: pd.Series([], dtype=object),
                COUNT_COL: pd.Series([], dtype="int64"),
            }
        )
    try:
        keys = sorted(pair_counts)
    except TypeError as exc:
        raise InvalidInputError(f"Items have no total order (mixed types?): {exc}") from exc
    return pd.DataFrame(
        {
            ITEM1_COL: [a for a, _ in keys],
            ITEM2_COL: [b for _, b in keys],
            COUNT_COL: np.array([pair_counts[k] for k in keys], dtype=np.int64),
        }
    )


def pairwise_count(
    relation,
    item_col: str,
    group_col: str,
    *,
    max_group_size: Optional[int] = None,
    oversize: str = "raise",
    n_jobs: int = 1,
    backend: Optional[str] = None,
    chunk_size: int = 1000,
) -> pd.DataFrame:
    """
    Count the groups shared by each pair of distinct items.

    Reads only ``item_col`` and ``group_col``; rows with a missing value in
    either are ignored.

    Parameters
    ----------
    relation : TidyRelation or pd.DataFrame
        Source table.
    item_col : str
        Column holding the items to pair (e.g. "unit").
    group_col : str
        Column defining the co-occurrence context (e.g. "section").
    max_group_size : Optional[int]
        Maximum number of distinct items allowed in one group. None means
        unbounded.
    oversize : str
        "raise" (InvalidInputError) or "skip" (drop the group with a
        warning) when a group exceeds ``max_group_size``.
    n_jobs : int
        joblib worker count; -1 uses all cores.
    backend : Optional[str]
        joblib backend ("loky", "threading", ...). None uses joblib's default.
    chunk_size : int
        Number of groups per joblib task.

    Returns
    -------
    pd.DataFrame
        Columns ["item1", "item2", "count"], item1 < item2, sorted by count
        descending then item1, item2.
    """
    _check_options(max_group_size, oversize, n_jobs, chunk_size)
    df = as_frame(relation)
    require_columns(df, [item_col, group_col], what="pairwise input")

    groups = _group_items(df, item_col, group_col, max_group_size, oversize)
    pair_counts, _ = _count_pairs(groups, n_jobs, backend, chunk_size)

    out = _pairs_frame(pair_counts)
    return out.sort_values(COUNT_COL, ascending=False, kind="mergesort").reset_index(drop=True)


# ---------------------------------------------------------------------------
# Correlation
# ---------------------------------------------------------------------------


def phi_coefficient(n11, n10, n01, n00):
    """
    Phi coefficient from a 2x2 presence table.

    Works elementwise on numpy arrays. Returns NaN where the denominator
    is zero.
    """
    n11, n10, n01, n00 = (np.asarray(x, dtype=float) for x in (n11, n10, n01, n00))
    numerator = n11 * n00 - n10 * n01
    denominator = np.sqrt((n11 + n10) * (n01 + n00) * (n11 + n01) * (n10 + n00))
    with np.errstate(divide="ignore", invalid="ignore"):
        phi = np.where(denominator > 0, numerator / np.where(denominator > 0, denominator, 1.0), np.nan)
    return np.clip(phi, -1.0, 1.0)


def pairwise_correlation(
    relation,
    item_col: str,
    group_col: str,
    *,
    on_degenerate: str = "error",
    max_group_size: Optional[int] = None,
    oversize: str = "raise",
    n_jobs: int = 1,
    backend: Optional[str] = None,
    chunk_size: int = 1000,
) -> pd.DataFrame:
    """
    Phi correlation between the presence vectors of co-occurring items.

    For items x, y over the N groups kept for analysis:

    - n11 = groups containing both
    - n10 = groups containing x only, n01 = groups containing y only
    - n00 = N - n11 - n10 - n01

    phi = (n11*n00 - n10*n01) / sqrt((n11+n10)(n01+n00)(n11+n01)(n10+n00))

    Only pairs sharing at least one group are reported. The denominator is
    zero exactly when one of the items is present in every group.

    Parameters
    ----------
    relation : TidyRelation or pd.DataFrame
        Source table.
    item_col, group_col : str
        Item and grouping columns.
    on_degenerate : str
        Policy for a zero denominator: "error" raises DegenerateInputError,
        "zero" reports correlation 0.0, "drop" omits the pair.
    max_group_size, oversize, n_jobs, backend, chunk_size
        As for pairwise_count. Skipped groups do not count towards N.

    Returns
    -------
    pd.DataFrame
        Columns ["item1", "item2", "correlation"], item1 < item2, sorted by
        correlation descending then item1, item2. Values lie in [-1, 1].
    """
    if on_degenerate not in DEGENERATE_POLICIES:
        raise ConfigurationError(
            f"on_degenerate must be one of {DEGENERATE_POLICIES}, got {on_degenerate!r}"
        )
    _check_options(max_group_size, oversize, n_jobs, chunk_size)
    df = as_frame(relation)
    require_columns(df, [item_col, group_col], what="pairwise input")

    groups = _group_items(df, item_col, group_col, max_group_size, oversize)
    pair_counts, item_counts = _count_pairs(groups, n_jobs, backend, chunk_size)
    n_groups = len(groups)

    pairs = _pairs_frame(pair_counts)
    n11 = pairs[COUNT_COL].to_numpy(dtype=float)
    n_x = pairs[ITEM1_COL].map(item_counts).to_numpy(dtype=float)
    n_y = pairs[ITEM2_COL].map(item_counts).to_numpy(dtype=float)
    n10 = n_x - n11
    n01 = n_y - n11
    n00 = n_groups - n11 - n10 - n01

    phi = phi_coefficient(n11, n10, n01, n00)
    degenerate = np.isnan(phi)

    if degenerate.any():
        bad = pairs.loc[degenerate, [ITEM1_COL, ITEM2_COL]]
        if on_degenerate == "error":
            raise DegenerateInputError(
                f"{int(degenerate.sum())} pairs have a zero correlation denominator "
                f"(an item is present in all {n_groups} groups); first: "
                f"{bad.head(5).to_records(index=False).tolist()}"
            )
        logger.debug("Correlation undefined for %d pairs (policy=%s)", int(degenerate.sum()), on_degenerate)

    out = pairs[[ITEM1_COL, ITEM2_COL]].copy()
    out[CORRELATION_COL] = phi
    if on_degenerate == "zero":
        out.loc[degenerate, CORRELATION_COL] = 0.0
    elif on_degenerate == "drop":
        out = out.loc[~degenerate]

    return out.sort_values(CORRELATION_COL, ascending=False, kind="mergesort").reset_index(drop=True)


# ---------------------------------------------------------------------------
# Caller-side pre-filtering
# ---------------------------------------------------------------------------


def filter_min_count(relation, item_col: str, min_count: int):
    """
    Keep rows whose item occurs at least ``min_count`` times overall.

    Returns the same kind of object it was given (TidyRelation or
    DataFrame). This is the usual way to bound the pair explosion before
    calling pairwise_count / pairwise_correlation.
    """
    if not isinstance(min_count, int) or min_count < 1:
        raise ConfigurationError(f"min_count must be a positive integer, got {min_count!r}")
    df = as_frame(relation)
    require_columns(df, [item_col], what="pairwise input")

    counts: Dict[Hashable, int] = df[item_col].value_counts().to_dict()
    mask = df[item_col].map(counts) >= min_count
    if isinstance(relation, pd.DataFrame):
        return df.loc[mask].reset_index(drop=True)
    return relation.filter(mask)
