"""
Co-occurrence analysis.

This subpackage offers pairwise counts and phi correlations of items
within caller-defined groups (e.g. words within sections).
"""
