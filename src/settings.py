"""Static configuration for rmtguard.

All user-editable settings (custom rules, category channels, toggles,
logging) live in a single JSON file for quick edits without touching Python.
"""

import json
import os

from core.config import build_filter_config

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Settings are loaded from config.json (or RMTGUARD_CONFIG) so users can
# toggle filters and edit custom rules without editing code.
CONFIG_PATH = os.getenv("RMTGUARD_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# The core filter settings, including the max item level computed once here.
FILTER_CONFIG = build_filter_config(_CONFIG)

# Classifier settings. When disabled (or the definitions file is missing) the
# engine decides on custom rules and item level only.
_classifier = _CONFIG.get("classifier", {})
CLASSIFIER_ENABLED = bool(_classifier.get("enabled", False))
DEFINITIONS_PATH = _resolve_path(_classifier.get("definitions_path", "definitions.json"))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
