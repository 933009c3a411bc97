# -*- coding: utf-8 -*-
"""YAML persistence for pattern configurations and named presets."""

from __future__ import annotations

import os
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from pattern_builder.pattern_generator import PatternConfiguration
from pattern_builder.tokens import FilenameToken, ImageRole, RoleRule, RuleType, TokenType

logger = logging.getLogger(__name__)

DEFAULT_PRESETS_PATH = os.path.join(os.path.expanduser("~"), ".pattern_builder", "presets.yaml")


@dataclass
class Preset:
    """A named, reusable pattern configuration."""

    name: str
    configuration: PatternConfiguration
    description: str = ""
    created: str = field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))
    last_used: Optional[str] = None

    def is_valid(self) -> bool:
        return bool(self.name and self.name.strip()) and self.configuration.is_valid()

    def mark_used(self) -> None:
        self.last_used = datetime.now().isoformat(timespec="seconds")


# -- Plain dict conversion ---------------------------------------------------

def _token_to_dict(token: FilenameToken) -> dict:
    return {
        "value": token.value,
        "position": token.position,
        "type": token.suggested_type.name,
        "confidence": round(token.confidence, 4),
    }


def _token_from_dict(entry: dict) -> FilenameToken:
    return FilenameToken(
        value=str(entry["value"]),
        position=int(entry["position"]),
        suggested_type=TokenType[entry.get("type", "UNKNOWN")],
        confidence=float(entry.get("confidence", 0.0)),
    )


def rule_to_dict(rule: RoleRule) -> dict:
    entry: dict = {
        "role": rule.target_role.name,
        "type": rule.rule_type.name,
        "value": rule.rule_value,
    }
    if rule.case_sensitive:
        entry["case_sensitive"] = True
    if rule.priority:
        entry["priority"] = rule.priority
    return entry


def rule_from_dict(entry: dict) -> RoleRule:
    return RoleRule(
        target_role=ImageRole[entry["role"]],
        rule_type=RuleType[entry.get("type", "CONTAINS")],
        rule_value=str(entry.get("value", "")),
        case_sensitive=bool(entry.get("case_sensitive", False)),
        priority=int(entry.get("priority", 0)),
    )


def configuration_to_dict(config: PatternConfiguration) -> dict:
    data: dict = {
        "group_pattern": config.group_pattern,
        "front_pattern": config.front_pattern,
        "rear_pattern": config.rear_pattern,
        "overview_pattern": config.overview_pattern,
        "role_rules": [rule_to_dict(rule) for rule in config.role_rules],
    }
    if config.tokens:
        data["tokens"] = [_token_to_dict(token) for token in config.tokens]
    if config.group_id_token is not None:
        data["group_id_token"] = _token_to_dict(config.group_id_token)
    return data


def configuration_from_dict(data: dict, source: str = "<dict>") -> PatternConfiguration:
    """Build a configuration from a plain dict, skipping malformed rules and tokens."""
    rules = []
    for idx, entry in enumerate(data.get("role_rules") or [], start=1):
        try:
            rules.append(rule_from_dict(entry))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.warning(f"Rule {idx} in '{source}' is invalid ({exc!r}) - skipping")

    tokens = []
    for idx, entry in enumerate(data.get("tokens") or [], start=1):
        try:
            tokens.append(_token_from_dict(entry))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.warning(f"Token {idx} in '{source}' is invalid ({exc!r}) - skipping")

    group_id_token = None
    if data.get("group_id_token"):
        try:
            group_id_token = _token_from_dict(data["group_id_token"])
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.warning(f"Group ID token in '{source}' is invalid ({exc!r}) - ignoring")

    return PatternConfiguration(
        group_pattern=str(data.get("group_pattern") or ""),
        front_pattern=str(data.get("front_pattern") or ""),
        rear_pattern=str(data.get("rear_pattern") or ""),
        overview_pattern=str(data.get("overview_pattern") or ""),
        role_rules=tuple(rules),
        tokens=tuple(tokens),
        group_id_token=group_id_token,
    )


# -- Files -------------------------------------------------------------------

def _read_yaml(path: str):
    import yaml

    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        logger.warning(f"Failed to read '{path}': {exc}")
        return None


def _write_yaml(data: dict, path: str) -> None:
    import yaml

    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def load_configuration(path: str | Path) -> tuple[PatternConfiguration | None, str]:
    """Parse a configuration file.

    Returns:
        tuple: (PatternConfiguration or None if the file is missing or invalid, name string).
    """
    path = str(path)
    if not os.path.isfile(path):
        logger.warning(f"Configuration file '{path}' does not exist")
        return None, ""

    data = _read_yaml(path)
    if not isinstance(data, dict):
        logger.warning(f"Configuration file '{path}' is not a valid YAML dictionary")
        return None, ""

    return configuration_from_dict(data, path), str(data.get("name", ""))


def save_configuration(config: PatternConfiguration, path: str | Path, name: str = "") -> None:
    """Persist *config* to a YAML file."""
    data = {"name": name} if name else {}
    data.update(configuration_to_dict(config))
    _write_yaml(data, str(path))


def load_presets(path: str | Path | None = None) -> list[Preset]:
    """Load named presets; a missing or malformed file yields an empty list."""
    if path is None:
        path = DEFAULT_PRESETS_PATH
    path = str(path)
    if not os.path.isfile(path):
        return []

    data = _read_yaml(path)
    if not isinstance(data, dict):
        logger.warning(f"Presets file '{path}' is not a valid YAML dictionary")
        return []

    presets: list[Preset] = []
    skipped_count = 0
    for idx, entry in enumerate(data.get("presets") or [], start=1):
        if not isinstance(entry, dict) or not entry.get("name"):
            logger.warning(f"Preset {idx} in '{path}' has no name - skipping")
            skipped_count += 1
            continue
        presets.append(Preset(
            name=str(entry["name"]),
            configuration=configuration_from_dict(entry.get("configuration") or {}, path),
            description=str(entry.get("description", "")),
            created=str(entry.get("created", "")),
            last_used=entry.get("last_used"),
        ))

    if skipped_count > 0:
        logger.warning(f"Skipped {skipped_count} invalid preset(s) in '{path}'")
    return presets


def save_presets(presets: list[Preset], path: str | Path | None = None) -> None:
    if path is None:
        path = DEFAULT_PRESETS_PATH
    entries = []
    for preset in presets:
        entry: dict = {"name": preset.name}
        if preset.description:
            entry["description"] = preset.description
        entry["created"] = preset.created
        if preset.last_used:
            entry["last_used"] = preset.last_used
        entry["configuration"] = configuration_to_dict(preset.configuration)
        entries.append(entry)
    _write_yaml({"presets": entries}, str(path))
