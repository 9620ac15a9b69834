"""
Configuration loader for SCOUR.
Merges defaults with per-repo .scour/config.yaml overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

class SearchKeys(BaseModel):
    preview: list[str] = Field(default_factory=lambda: ["Return"])
    toggle: list[str] = Field(default_factory=lambda: ["space"])
    select_all: list[str] = Field(default_factory=lambda: ["a"])
    select_none: list[str] = Field(default_factory=lambda: ["n"])
    execute: list[str] = Field(default_factory=lambda: ["r"])
    close: list[str] = Field(default_factory=lambda: ["q", "Escape"])


class SearchConfig(BaseModel):
    max_results: int = Field(default=200, ge=1)
    panel_ratio: float = Field(default=0.4, gt=0.0, lt=1.0)
    regex: bool = False
    keys: SearchKeys = Field(default_factory=SearchKeys)


class ReferencesConfig(BaseModel):
    max_results: int = Field(default=100, ge=1)
    panel_ratio: float = Field(default=0.7, gt=0.0, lt=1.0)


class MarkdownConfig(BaseModel):
    tab_size: int = Field(default=4, ge=1)
    extensions: list[str] = Field(default_factory=lambda: [".md", ".markdown", ".mdx"])


class LoggingConfig(BaseModel):
    level: str = "WARNING"


class ScourConfig(BaseModel):
    search: SearchConfig = Field(default_factory=SearchConfig)
    references: ReferencesConfig = Field(default_factory=ReferencesConfig)
    markdown: MarkdownConfig = Field(default_factory=MarkdownConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

REPO_CONFIG = Path(".scour") / "config.yaml"


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(repo_path: Path | None = None) -> ScourConfig:
    """
    Load config by merging:
      1. Built-in defaults (scour/config.yaml)
      2. Repo-level overrides (<repo>/.scour/config.yaml)
      3. Environment variable overrides (SCOUR_LOG_LEVEL)
    """
    # 1. Built-in defaults
    with open(_DEFAULT_CONFIG_PATH, "r") as f:
        base: dict[str, Any] = yaml.safe_load(f) or {}

    # 2. Repo overrides
    if repo_path:
        repo_config = repo_path / REPO_CONFIG
        if repo_config.exists():
            with open(repo_config, "r") as f:
                overrides: dict[str, Any] = yaml.safe_load(f) or {}
            base = _deep_merge(base, overrides)

    # 3. Env overrides
    level = os.environ.get("SCOUR_LOG_LEVEL")
    if level:
        base = _deep_merge(base, {"logging": {"level": level.upper()}})

    return ScourConfig(**base)
