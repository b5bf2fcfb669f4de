"""
Smoke test for the end-to-end pipeline.

We write a tiny CSV corpus and a config pointing every path into a
temporary directory, run tidycorpus.pipeline.run_pipeline, and check that
each stage produced a consistent result and wrote its output files.
"""

from __future__ import annotations

import pandas as pd
import yaml

from tidycorpus.data.relation import TidyRelation
from tidycorpus.features.cast import SparseDocumentTermMatrix
from tidycorpus.pipeline import load_dtm, run_pipeline


def _write_inputs(tmp_path) -> str:
    corpus = pd.DataFrame(
        {
            "title": ["moby"] * 4 + ["emma"] * 4,
            "line": [
                "Call me Ishmael. The whale!",
                "The whale and the sea.",
                "A ship on the sea.",
                "The ship, the whale.",
                "Emma Woodhouse, handsome and clever.",
                "Emma and her father.",
                "The father was clever.",
                "Handsome Emma smiled.",
            ],
        }
    )
    csv_path = tmp_path / "corpus.csv"
    corpus.to_csv(csv_path, index=False)

    cfg = {
        "input": {"path": str(csv_path), "document_column": "title", "text_column": "line"},
        "tokenize": {"unit_kind": "word", "lowercase": True, "strip_punctuation": True},
        "stopwords": {"enabled": True},
        "tf_idf": {"matrix_order": "sorted"},
        "pairwise": {
            "enabled": True,
            "group_col": "section",
            "lines_per_section": 2,
            "min_item_count": 2,
            "max_group_size": 100,
            "oversize": "raise",
            "on_degenerate": "drop",
            "n_jobs": 1,
        },
        "paths": {
            "results_dir": str(tmp_path / "results"),
            "artifacts_dir": str(tmp_path / "artifacts"),
            "logs_dir": str(tmp_path / "logs"),
        },
        "logging": {"level": "WARNING", "to_file": False},
    }
    cfg_path = tmp_path / "tidycorpus.yaml"
    cfg_path.write_text(yaml.safe_dump(cfg), encoding="utf-8")
    return str(cfg_path)


def test_run_pipeline_end_to_end(tmp_path):
    results = run_pipeline(config_path=_write_inputs(tmp_path), save=True)

    relation = results["relation"]
    assert isinstance(relation, TidyRelation)
    assert "the" not in set(relation.frame["unit"])
    assert "section" in relation.extra_columns

    counts = results["counts"]
    assert counts["count"].sum() == len(relation)

    tf_idf = results["tf_idf"]
    assert tf_idf["tf_idf"].tolist() == sorted(tf_idf["tf_idf"].tolist(), reverse=True)
    assert (tf_idf["tf_idf"] >= 0).all()

    dtm = results["dtm"]
    assert isinstance(dtm, SparseDocumentTermMatrix)
    assert dtm.shape == (2, counts["term"].nunique())

    pair_counts = results["pair_counts"]
    assert (pair_counts["item1"] < pair_counts["item2"]).all()
    assert ("sea", "whale") in set(zip(pair_counts["item1"], pair_counts["item2"]))

    for name in ("counts", "tf_idf", "pair_counts", "pair_correlations"):
        assert (tmp_path / "results" / f"{name}.csv").exists()

    reloaded = load_dtm(str(tmp_path / "artifacts"))
    assert reloaded.col_ids == dtm.col_ids
    assert (reloaded.matrix != dtm.matrix).nnz == 0


def test_run_pipeline_without_saving(tmp_path):
    results = run_pipeline(config_path=_write_inputs(tmp_path), save=False)

    assert "pair_correlations" in results
    assert not (tmp_path / "results").exists()
