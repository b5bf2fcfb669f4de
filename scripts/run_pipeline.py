"""
Run the tidy text pipeline over a CSV corpus.

This script is a convenience wrapper around
`tidycorpus.pipeline.run_pipeline`, which:

- loads the configured document CSV
- tokenizes it into a tidy relation
- removes stop words (if enabled)
- computes term counts and TF-IDF
- casts a sparse document-term matrix
- computes pairwise counts and correlations within sections
- writes tables under experiments/results/ and the matrix under
  experiments/artifacts/

Usage (from project root):

    python -m scripts.run_pipeline
    # or
    python scripts/run_pipeline.py --config config/tidycorpus.yaml
"""

from __future__ import annotations

import argparse

from tidycorpus.pipeline import run_pipeline
from tidycorpus.utils.config import load_config
from tidycorpus.utils.logging_utils import get_logger


def parse_args() -> argparse.Namespace:
    """
    Parse command-line arguments.
    """
    parser = argparse.ArgumentParser(
        description="Run the tidy text pipeline (tokenize, TF-IDF, DTM, pairwise)."
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/tidycorpus.yaml",
        help="Path to pipeline config YAML (default: config/tidycorpus.yaml).",
    )
    parser.add_argument(
        "--no-save",
        action="store_true",
        help="Compute everything but do not write results to disk.",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=10,
        help="Number of top TF-IDF rows to log (default: 10).",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    cfg = load_config(args.config)
    logger = get_logger(name="run_pipeline", config=cfg, log_file_suffix="run")

    results = run_pipeline(config_path=args.config, save=not args.no_save)

    tf_idf = results["tf_idf"]
    if not tf_idf.empty:
        logger.info("Top %d terms by tf_idf:", args.top)
        logger.info("\n%s", tf_idf.head(args.top))
    else:
        logger.warning("Pipeline finished, but the TF-IDF table is empty.")

    pair_counts = results.get("pair_counts")
    if pair_counts is not None and not pair_counts.empty:
        logger.info("Most frequent pairs:")
        logger.info("\n%s", pair_counts.head(args.top))


if __name__ == "__main__":
    main()
