"""
End-to-end tidy text pipeline driven by config/tidycorpus.yaml.

This module:
- loads the document CSV named in the "input" section
- optionally groups lines into sections for pairwise analysis
- tokenizes according to the "tokenize" section
- removes stop words when the "stopwords" section enables it
- builds term-document counts and the TF-IDF table
- casts the counts to a sparse document-term matrix and persists it
- computes pairwise counts and correlations within sections
- writes every table as CSV under paths.results_dir

It is callable both as a library function and through
scripts/run_pipeline.py.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

import joblib
import pandas as pd

from tidycorpus.analysis.pairwise import filter_min_count, pairwise_correlation, pairwise_count
from tidycorpus.data.corpus import add_section_column, load_documents_csv
from tidycorpus.data.relation import TidyRelation, count_terms
from tidycorpus.features.cast import SparseDocumentTermMatrix, cast_dtm
from tidycorpus.features.lexicon import anti_join_stop_words, get_stop_words
from tidycorpus.features.tf_idf import bind_tf_idf, sort_by_tf_idf
from tidycorpus.features.tokenizer import tokenize
from tidycorpus.utils.config import DEFAULT_CONFIG_PATH, ensure_dir_exists, get_section, load_config
from tidycorpus.utils.logging_utils import get_logger


DEFAULT_DTM_FILENAME = "document_term_matrix.joblib"


# ---------------------------------------------------------------------------
# Persistence of the document-term matrix
# ---------------------------------------------------------------------------


def save_dtm(dtm: SparseDocumentTermMatrix, artifacts_dir: str, filename: str = DEFAULT_DTM_FILENAME) -> str:
    """
    Persist a SparseDocumentTermMatrix (matrix + identifiers) with joblib.

    Returns
    -------
    str
        Path of the written file.
    """
    ensure_dir_exists(artifacts_dir)
    path = os.path.join(artifacts_dir, filename)
    joblib.dump(dtm, path)
    return path


def load_dtm(artifacts_dir: str, filename: str = DEFAULT_DTM_FILENAME) -> SparseDocumentTermMatrix:
    """
    Load a document-term matrix saved by save_dtm.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    """
    path = os.path.join(artifacts_dir, filename)
    if not os.path.exists(path):
        raise FileNotFoundError(f"Document-term matrix not found at: {path}")

    dtm: SparseDocumentTermMatrix = joblib.load(path)
    return dtm


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------


def _load_stop_words(sw_cfg: Dict[str, Any]) -> pd.DataFrame:
    """Stop-word table from a CSV path if configured, else scikit-learn's list."""
    path = sw_cfg.get("path")
    if path:
        if not os.path.exists(path):
            raise FileNotFoundError(f"Stop-word CSV not found at: {path}")
        return pd.read_csv(path)
    return get_stop_words()


def _tokenize_from_config(documents: pd.DataFrame, tok_cfg: Dict[str, Any]) -> TidyRelation:
    return tokenize(
        documents,
        unit_kind=tok_cfg.get("unit_kind", "word"),
        n=tok_cfg.get("n"),
        pattern=tok_cfg.get("pattern"),
        lowercase=bool(tok_cfg.get("lowercase", True)),
        strip_punctuation=bool(tok_cfg.get("strip_punctuation", True)),
    )


def _run_pairwise(relation: TidyRelation, pw_cfg: Dict[str, Any], logger) -> Dict[str, pd.DataFrame]:
    group_col = pw_cfg.get("group_col", "section")
    options = dict(
        max_group_size=pw_cfg.get("max_group_size"),
        oversize=pw_cfg.get("oversize", "raise"),
        n_jobs=int(pw_cfg.get("n_jobs", 1)),
        backend=pw_cfg.get("backend"),
        chunk_size=int(pw_cfg.get("chunk_size", 1000)),
    )

    min_item_count = int(pw_cfg.get("min_item_count", 1))
    filtered = filter_min_count(relation, "unit", min_item_count)
    logger.info(
        "Pairwise input: %d of %d rows kept with min_item_count=%d",
        len(filtered),
        len(relation),
        min_item_count,
    )

    counts = pairwise_count(filtered, "unit", group_col, **options)
    correlations = pairwise_correlation(
        filtered,
        "unit",
        group_col,
        on_degenerate=pw_cfg.get("on_degenerate", "drop"),
        **options,
    )
    logger.info("Pairwise: %d co-occurring pairs", len(counts))
    return {"pair_counts": counts, "pair_correlations": correlations}


def run_pipeline(
    config_path: str = DEFAULT_CONFIG_PATH,
    save: bool = True,
) -> Dict[str, Any]:
    """
    Run the full tidy text pipeline.

    Parameters
    ----------
    config_path : str
        Path to the YAML configuration.
    save : bool
        Whether to write CSV tables and the joblib matrix to disk.

    Returns
    -------
    Dict[str, Any]
        Keys: "relation" (TidyRelation), "counts", "tf_idf" (DataFrames),
        "dtm" (SparseDocumentTermMatrix) and, when pairwise analysis is
        enabled, "pair_counts" and "pair_correlations".
    """
    cfg = load_config(config_path)
    logger = get_logger(name="tidycorpus.pipeline", config=cfg, log_file_suffix="pipeline")

    input_cfg = get_section(cfg, "input")
    tok_cfg = get_section(cfg, "tokenize")
    sw_cfg = get_section(cfg, "stopwords")
    tfidf_cfg = get_section(cfg, "tf_idf")
    pw_cfg = get_section(cfg, "pairwise")
    paths_cfg = get_section(cfg, "paths")

    logger.info("=" * 80)
    logger.info("Starting tidy text pipeline with config=%s", config_path)

    documents = load_documents_csv(
        input_cfg.get("path", "data/raw/documents.csv"),
        document_column=input_cfg.get("document_column", "document_id"),
        text_column=input_cfg.get("text_column", "text"),
        drop_na_text=bool(input_cfg.get("drop_na_text", True)),
    )
    logger.info("Loaded %d lines from %d documents", len(documents), documents["document_id"].nunique())

    pairwise_enabled = bool(pw_cfg.get("enabled", True))
    if pairwise_enabled and pw_cfg.get("group_col", "section") == "section":
        documents = add_section_column(
            documents, lines_per_section=int(pw_cfg.get("lines_per_section", 10))
        )

    relation = _tokenize_from_config(documents, tok_cfg)
    logger.info("Tokenized into %d %s units", len(relation), tok_cfg.get("unit_kind", "word"))

    if bool(sw_cfg.get("enabled", False)):
        n_before = len(relation)
        relation = anti_join_stop_words(relation, _load_stop_words(sw_cfg))
        logger.info("Removed %d stop-word rows", n_before - len(relation))

    counts = count_terms(relation)
    tf_idf = sort_by_tf_idf(bind_tf_idf(counts))
    dtm = cast_dtm(counts, order=tfidf_cfg.get("matrix_order", "sorted"))
    logger.info(
        "Document-term matrix: %d documents x %d terms, %d non-zero entries",
        dtm.shape[0],
        dtm.shape[1],
        dtm.matrix.nnz,
    )

    results: Dict[str, Any] = {
        "relation": relation,
        "counts": counts,
        "tf_idf": tf_idf,
        "dtm": dtm,
    }

    if pairwise_enabled:
        results.update(_run_pairwise(relation, pw_cfg, logger))

    if save:
        results_dir: Optional[str] = paths_cfg.get("results_dir", "experiments/results")
        ensure_dir_exists(results_dir)
        for name in ("counts", "tf_idf", "pair_counts", "pair_correlations"):
            if name in results:
                out_path = os.path.join(results_dir, f"{name}.csv")
                results[name].to_csv(out_path, index=False)
                logger.info("Wrote %s", out_path)
        dtm_path = save_dtm(dtm, paths_cfg.get("artifacts_dir", "experiments/artifacts"))
        logger.info("Saved document-term matrix to %s", dtm_path)

    logger.info("Tidy text pipeline completed.")
    return results
