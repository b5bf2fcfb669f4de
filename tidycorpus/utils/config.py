"""
Configuration loading for tidycorpus.

All knobs of the end-to-end pipeline (input CSV layout, tokenizer options,
stop-word removal, pairwise bounds, output paths and logging) live in a
single YAML file, config/tidycorpus.yaml by default. Library functions never
read this file themselves: they take explicit keyword arguments, and
tidycorpus.pipeline maps the sections below onto them.
"""

from __future__ import annotations

import os
from typing import Any, Dict

import yaml


DEFAULT_CONFIG_PATH = "config/tidycorpus.yaml"

REQUIRED_SECTIONS = ("input", "tokenize", "pairwise", "paths")


def _load_yaml(path: str) -> Dict[str, Any]:
    """
    Load a YAML configuration file and return it as a dictionary.

    Parameters
    ----------
    path : str
        Path to the YAML file.

    Returns
    -------
    Dict[str, Any]
        Parsed YAML content.

    Raises
    ------
    FileNotFoundError
        If the YAML file does not exist.
    ValueError
        If the YAML file is empty or does not hold a mapping.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f)

    if cfg is None or not isinstance(cfg, dict):
        raise ValueError(f"Config file is empty or invalid: {path}")

    return cfg


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """
    Load and return the full pipeline configuration dictionary.

    Parameters
    ----------
    config_path : str, optional
        Path to the YAML configuration file.

    Returns
    -------
    Dict[str, Any]
        Dictionary containing at least the "input", "tokenize", "pairwise"
        and "paths" sections. Optional sections ("stopwords", "tf_idf",
        "logging") are filled with empty dicts when absent.

    Raises
    ------
    KeyError
        If a required section is missing.
    """
    cfg = _load_yaml(config_path)

    for section in REQUIRED_SECTIONS:
        if section not in cfg:
            raise KeyError(f'Missing "{section}" section in config: {config_path}')

    for section in ("stopwords", "tf_idf", "logging"):
        cfg[section] = cfg.get(section) or {}

    return cfg


def get_section(cfg: Dict[str, Any], section: str) -> Dict[str, Any]:
    """Return one config section as a dict (empty when missing or null)."""
    return cfg.get(section, {}) or {}


def ensure_dir_exists(path: str) -> None:
    """
    Ensure that a directory exists (create it if necessary).

    Parameters
    ----------
    path : str
        Directory path.
    """
    if path and not os.path.exists(path):
        os.makedirs(path, exist_ok=True)
