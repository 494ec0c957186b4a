# pocket_ledger/config.py
from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Dict, Optional

import yaml

from pocket_ledger.core.categories import build_keyword_rules
from pocket_ledger.recurring import DetectorSettings

DEFAULT_CONFIG: Dict[str, object] = {
    "categories": {},
    "mappings_file": "learned_mappings.json",
    "monthly_budget": None,
    "log_level": "WARNING",
    "recurring": {},
}


def _merge_defaults(current: Dict[str, object], defaults: Dict[str, object]) -> Dict[str, object]:
    """Merge missing default keys into the current config recursively."""
    merged = dict(current)
    for key, value in defaults.items():
        if key not in merged:
            merged[key] = value
        elif isinstance(value, dict) and isinstance(merged[key], dict):
            merged[key] = _merge_defaults(merged[key], value)
    return merged


def load_config(path: Optional[Path] = None) -> Dict[str, object]:
    if path is None or not Path(path).exists():
        return _merge_defaults({}, DEFAULT_CONFIG)
    with Path(path).open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    config = _merge_defaults(data, DEFAULT_CONFIG)
    # fail early on unknown categories / thresholds
    keyword_rules(config)
    detector_settings(config)
    return config


def save_config(config: Dict[str, object], path: Path) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with Path(path).open("w", encoding="utf-8") as fp:
        yaml.safe_dump(config, fp, sort_keys=False)


def keyword_rules(config: Dict[str, object]):
    return build_keyword_rules(config.get("categories") or {})


def detector_settings(config: Dict[str, object]) -> DetectorSettings:
    overrides = config.get("recurring") or {}
    known = {f.name for f in fields(DetectorSettings)}
    values = {}
    for key, value in overrides.items():
        if key not in known:
            raise ValueError(f"Unknown recurring setting '{key}' in config")
        try:
            values[key] = int(value) if key == "full_count" else float(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid value for recurring setting '{key}': {value}") from exc
    return DetectorSettings(**values)
