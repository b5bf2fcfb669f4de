"""
Text features over the tidy relation.

This subpackage includes:
- tokenization of document tables into words, n-grams, sentences, ...
- casting between count tables and sparse document-term matrices
- TF-IDF weighting
- stop-word and lexicon joins.
"""
