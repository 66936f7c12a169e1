# config_loader.py
from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from rulebook_errors import ConfigError

try:
    import yaml  # PyYAML
except ImportError as e:
    raise SystemExit(
        "Missing dependency: PyYAML\n"
        "Install with: python -m pip install pyyaml"
    ) from e


@dataclass(frozen=True)
class RulebookConfig:
    """
    Immutable container for rulebook rendering configuration.
    """
    table_of_contents: bool = True
    toc_title: str = "Table des matières"
    annex_label: str = "Annexe"
    escape_html: bool = True
    document_title: str = "Rulebook"
    stylesheet: str = "/static/rulebook.css"

    def with_overrides(self, **changes: Any) -> "RulebookConfig":
        """Return a copy with the given non-None fields replaced."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


# ---------------- Defaults ---------------------------------------------------

DEFAULT_CONFIG = RulebookConfig()

# ---------------- Loader -----------------------------------------------------


def _as_bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{name} must be true or false")
    return value


def _as_str(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"{name} must be a string")
    return value


def config_from_mapping(raw: Any) -> RulebookConfig:
    """
    Build a RulebookConfig from parsed YAML. Missing keys keep their defaults.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a mapping")

    return RulebookConfig(
        table_of_contents=_as_bool(
            raw.get("table_of_contents", DEFAULT_CONFIG.table_of_contents),
            "table_of_contents",
        ),
        toc_title=_as_str(raw.get("toc_title", DEFAULT_CONFIG.toc_title), "toc_title"),
        annex_label=_as_str(raw.get("annex_label", DEFAULT_CONFIG.annex_label), "annex_label"),
        escape_html=_as_bool(raw.get("escape_html", DEFAULT_CONFIG.escape_html), "escape_html"),
        document_title=_as_str(
            raw.get("document_title", DEFAULT_CONFIG.document_title),
            "document_title",
        ),
        stylesheet=_as_str(raw.get("stylesheet", DEFAULT_CONFIG.stylesheet), "stylesheet"),
    )


def load_config(path: Path) -> RulebookConfig:
    """
    Load YAML config and return a RulebookConfig instance.
    """
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    return config_from_mapping(raw)
