"""
Configuration handling.

``config.yaml`` holds three sections::

    logging:  {level, format, file}
    storage:  {path}
    alerts:   {monthly_target_enabled, monthly_target,
               category_limits_enabled, category_limits: [{category_id, limit}]}

The alert section is re-read on every ``snapshot()`` so edits made by the
settings screen are picked up by the next evaluation.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import yaml

from tracker.domain import AlertThresholdConfig, CategoryLimit
from tracker.exceptions import ConfigError
from tracker.money import to_amount

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    },
    "storage": {"path": "data/seed.json"},
    "alerts": {
        "monthly_target_enabled": False,
        "monthly_target": None,
        "category_limits_enabled": False,
        "category_limits": [],
    },
}


def load_config(config_path) -> Dict[str, Any]:
    """
    Load configuration from a YAML file, filling in defaults per section.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping
    """
    config_path = Path(config_path)
    config: Dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError("Cannot read config file", details={"path": str(config_path)}, original_error=e) from e
        if not isinstance(config, dict):
            raise ConfigError("Config file must contain a mapping", details={"path": str(config_path)})

    for key, value in DEFAULT_CONFIG.items():
        section = config.get(key)
        if section is None:
            config[key] = dict(value)
        elif isinstance(section, dict):
            config[key] = {**value, **section}
    return config


def setup_logging(config: dict) -> None:
    log_config = config.get("logging", {})
    log_level = getattr(logging, str(log_config.get("level", "INFO")).upper(), logging.INFO)
    log_format = log_config.get("format", DEFAULT_CONFIG["logging"]["format"])
    log_file = log_config.get("file")

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=log_level, format=log_format, handlers=handlers, force=True)


def _limit(value: Any, field: str):
    if value is None or value == "":
        return None
    try:
        return to_amount(value)
    except ValueError as e:
        raise ConfigError(f"Invalid value for {field}", details={field: value}, original_error=e) from e


def _flag(section: dict, key: str) -> bool:
    value = section.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false", details={key: value})
    return value


def parse_alert_config(section: Optional[dict]) -> AlertThresholdConfig:
    """Build an ``AlertThresholdConfig`` from the ``alerts`` section.

    Negative or zero limits are accepted here; the evaluator skips them.
    """
    if section is None:
        return AlertThresholdConfig()
    if not isinstance(section, dict):
        raise ConfigError("alerts section must be a mapping")

    raw_limits = section.get("category_limits") or []
    if not isinstance(raw_limits, list):
        raise ConfigError("category_limits must be a list")

    limits = []
    for entry in raw_limits:
        if not isinstance(entry, dict) or not entry.get("category_id"):
            raise ConfigError("category limit needs a category_id", details={"entry": entry})
        limits.append(CategoryLimit(
            category_id=str(entry["category_id"]),
            limit=_limit(entry.get("limit"), "limit"),
        ))

    return AlertThresholdConfig(
        monthly_target_enabled=_flag(section, "monthly_target_enabled"),
        monthly_target=_limit(section.get("monthly_target"), "monthly_target"),
        category_limits_enabled=_flag(section, "category_limits_enabled"),
        category_limits=tuple(limits),
    )


def merge_category_limits(current: Iterable[CategoryLimit], edits: Mapping[str, str]) -> Tuple[CategoryLimit, ...]:
    """Apply raw form values to the configured limits.

    Keeps the configured order, which is the order alerts are emitted in.
    A blank value removes the limit, ids absent from ``edits`` are kept as they
    are, and new ids are appended in ``edits`` order. Raises ``ValueError`` for
    a malformed amount.
    """
    edits = {cid: raw.strip() for cid, raw in edits.items()}
    merged = []
    seen = set()
    for cl in current:
        seen.add(cl.category_id)
        if cl.category_id not in edits:
            merged.append(cl)
        elif edits[cl.category_id]:
            merged.append(CategoryLimit(cl.category_id, to_amount(edits[cl.category_id])))
    for cid, raw in edits.items():
        if cid not in seen and raw:
            merged.append(CategoryLimit(cid, to_amount(raw)))
    return tuple(merged)


def alert_config_to_dict(config: AlertThresholdConfig) -> dict:
    return {
        "monthly_target_enabled": config.monthly_target_enabled,
        "monthly_target": None if config.monthly_target is None else str(config.monthly_target),
        "category_limits_enabled": config.category_limits_enabled,
        "category_limits": [
            {"category_id": cl.category_id, "limit": None if cl.limit is None else str(cl.limit)}
            for cl in config.category_limits
        ],
    }


class StaticSettings:
    """Settings collaborator holding a fixed snapshot."""

    def __init__(self, config: Optional[AlertThresholdConfig] = None):
        self.config = config or AlertThresholdConfig()

    def snapshot(self) -> AlertThresholdConfig:
        return self.config


class YamlSettings:
    """Settings collaborator backed by the ``alerts`` section of a YAML file."""

    def __init__(self, path):
        self.path = Path(path)
        self._last_good = AlertThresholdConfig()

    def snapshot(self) -> AlertThresholdConfig:
        try:
            config = parse_alert_config(load_config(self.path).get("alerts"))
        except ConfigError as e:
            logger.error(f"Invalid alert settings in {self.path}: {e}", exc_info=True)
            return self._last_good
        self._last_good = config
        return config

    def save(self, config: AlertThresholdConfig) -> None:
        existing: Dict[str, Any] = {}
        if self.path.exists():
            with open(self.path, "r", encoding="utf-8") as f:
                existing = yaml.safe_load(f) or {}
        existing["alerts"] = alert_config_to_dict(config)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(existing, f, default_flow_style=False, allow_unicode=True)
        logger.info(f"Alert settings saved to {self.path}")
