"""TOML configuration loader for the receipts module."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]


@dataclass
class ClaudeExtractionConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"
    fallback_model: str = "claude-opus-4-1-20250805"


@dataclass
class GeminiExtractionConfig:
    api_key: str = ""
    model: str = "gemini-2.0-flash"
    fallback_model: str = "gemini-2.5-pro"


@dataclass
class ExtractionConfig:
    backend: str = "claude"
    claude: ClaudeExtractionConfig = field(default_factory=ClaudeExtractionConfig)
    gemini: GeminiExtractionConfig = field(default_factory=GeminiExtractionConfig)


@dataclass
class MatchingConfig:
    threshold: float = 0.7
    min_substring_length: int = 3
    metric: str = "dice"


@dataclass
class DatabaseConfig:
    path: str = "~/.config/cartapp/carts.db"


@dataclass
class ReceiptsConfig:
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)


def load_config(path: str | Path | None = None) -> ReceiptsConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    API keys can be overridden via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    ext = raw.get("extraction", {})
    mat = raw.get("matching", {})
    dbs = raw.get("database", {})

    claude_cfg = ext.get("claude", {})
    gemini_cfg = ext.get("gemini", {})

    # Resolve API keys: config file → environment variable
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )
    gemini_api_key = gemini_cfg.get("api_key", "") or os.environ.get(
        "GEMINI_API_KEY", ""
    )

    claude_defaults = ClaudeExtractionConfig()
    gemini_defaults = GeminiExtractionConfig()

    return ReceiptsConfig(
        extraction=ExtractionConfig(
            backend=ext.get("backend", "claude"),
            claude=ClaudeExtractionConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", claude_defaults.model),
                fallback_model=claude_cfg.get(
                    "fallback_model", claude_defaults.fallback_model
                ),
            ),
            gemini=GeminiExtractionConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", gemini_defaults.model),
                fallback_model=gemini_cfg.get(
                    "fallback_model", gemini_defaults.fallback_model
                ),
            ),
        ),
        matching=MatchingConfig(
            threshold=mat.get("threshold", 0.7),
            min_substring_length=mat.get("min_substring_length", 3),
            metric=mat.get("metric", "dice"),
        ),
        database=DatabaseConfig(
            path=dbs.get("path", "~/.config/cartapp/carts.db"),
        ),
    )
