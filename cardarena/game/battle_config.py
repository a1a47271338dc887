"""
Battle engine configuration.

This module loads the tunable battle numbers (damage formula, auto-battle and
replay timing, danger threshold) from ``assets/config/combat.yaml``. Values
missing from the file keep their built-in defaults, so a partial file only
overrides what it names.
"""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Optional

import yaml

from .combat.damage_calculator import CombatConfig
from .entities.templates import ASSETS_DIR
from .history.replay_controller import BASE_TURN_DELAY_MS
from .managers.arena_manager import DANGER_THRESHOLD
from .managers.auto_battle import AUTO_BATTLE_DELAY_MS

COMBAT_CONFIG_PATH = os.path.join(ASSETS_DIR, "config", "combat.yaml")


@dataclass(frozen=True)
class BattleEngineConfig:
    """All tunable battle engine settings."""
    combat: CombatConfig = field(default_factory=CombatConfig)
    auto_battle_delay_ms: int = AUTO_BATTLE_DELAY_MS
    replay_base_delay_ms: int = BASE_TURN_DELAY_MS
    danger_threshold: float = DANGER_THRESHOLD


def _merge_combat_config(data: dict[str, Any], yaml_path: str) -> CombatConfig:
    known = {f.name for f in fields(CombatConfig)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown combat settings in {yaml_path}: {sorted(unknown)}")
    return CombatConfig(**data)


def load_battle_config(path: Optional[str] = None) -> BattleEngineConfig:
    """Load the battle engine configuration from YAML.

    Args:
        path: YAML file to read (defaults to the packaged combat.yaml)

    Returns:
        BattleEngineConfig with file values merged over the defaults

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file contains unknown settings or is not a mapping
    """
    yaml_path = path or COMBAT_CONFIG_PATH

    try:
        with open(yaml_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise FileNotFoundError(f"Battle config file not found: {yaml_path}")

    if not isinstance(data, dict):
        raise ValueError(f"Invalid battle config {yaml_path}: expected a mapping at the top level")

    defaults = BattleEngineConfig()
    timing = data.get("timing", {}) or {}
    display = data.get("display", {}) or {}

    return BattleEngineConfig(
        combat=_merge_combat_config(data.get("combat", {}) or {}, yaml_path),
        auto_battle_delay_ms=int(timing.get("auto_battle_delay_ms", defaults.auto_battle_delay_ms)),
        replay_base_delay_ms=int(timing.get("replay_base_delay_ms", defaults.replay_base_delay_ms)),
        danger_threshold=float(display.get("danger_threshold", defaults.danger_threshold)),
    )
