"""
Preset collection definitions, loaded from YAML.
"""

from pathlib import Path
from typing import List

import yaml

from bci_tracker.constants import DEFAULT_COLLECTION_ICON, PRESET_COLLECTIONS_PATH
from bci_tracker.models import Collection
from util.logging_util import setup_logger

logger = setup_logger(__name__)


def normalize_rules(rules) -> List[str]:
    """Lowercase, strip and de-duplicate rules, keeping their order."""
    result = []
    for rule in rules or []:
        rule = str(rule).strip().lower()
        if rule and rule not in result:
            result.append(rule)
    return result


def load_preset_collections(config_path: Path = PRESET_COLLECTIONS_PATH) -> List[Collection]:
    """Load preset collection definitions from a YAML file."""
    if not config_path.exists():
        logger.warning(f"Preset collection config not found at {config_path}")
        return []

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    presets = []
    for entry in data.get("collections", []) or []:
        presets.append(Collection(
            name=entry["name"],
            icon=entry.get("icon") or DEFAULT_COLLECTION_ICON,
            rules=normalize_rules(entry.get("rules")),
            is_preset=True,
        ))
    return presets
