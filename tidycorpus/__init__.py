"""
Tidy text mining for pandas.

tidycorpus turns free-form text into a tidy relation (one linguistic unit
per row, tagged with its document and position) and back into the sparse
matrices that statistical and machine-learning tools consume.

This package contains modules for:
- tokenization into words, characters, n-grams, sentences, lines, ...
- the tidy relation and term-document counts
- casting to and from scipy sparse document-term matrices
- TF-IDF weighting
- pairwise co-occurrence counts and correlations
- stop-word / lexicon joins, configuration and logging helpers.
"""

from tidycorpus.analysis.pairwise import filter_min_count, pairwise_correlation, pairwise_count
from tidycorpus.data.corpus import add_section_column, documents_from_lines, load_documents_csv
from tidycorpus.data.relation import TidyRelation, count_terms
from tidycorpus.errors import (
    ConfigurationError,
    DegenerateInputError,
    DuplicateKeyError,
    InvalidInputError,
    TidyCorpusError,
)
from tidycorpus.features.cast import MatrixCaster, SparseDocumentTermMatrix, cast_dtm, tidy_matrix
from tidycorpus.features.lexicon import anti_join_stop_words, get_stop_words, join_lexicon
from tidycorpus.features.tf_idf import bind_tf_idf, sort_by_tf_idf, top_terms
from tidycorpus.features.tokenizer import tokenize

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DegenerateInputError",
    "DuplicateKeyError",
    "InvalidInputError",
    "MatrixCaster",
    "SparseDocumentTermMatrix",
    "TidyCorpusError",
    "TidyRelation",
    "add_section_column",
    "anti_join_stop_words",
    "bind_tf_idf",
    "cast_dtm",
    "count_terms",
    "documents_from_lines",
    "filter_min_count",
    "get_stop_words",
    "join_lexicon",
    "load_documents_csv",
    "pairwise_correlation",
    "pairwise_count",
    "sort_by_tf_idf",
    "tidy_matrix",
    "tokenize",
    "top_terms",
]
