"""
Shared utility functions.

This subpackage includes:
- YAML configuration loading and directory helpers
- logger construction for the pipeline driver and scripts.
"""
