"""
Tidy data structures and document tables.

This subpackage provides:
- the TidyRelation (one row per unit occurrence) and term-document counting
- document-table helpers: building from lines, CSV loading, section grouping.
"""
