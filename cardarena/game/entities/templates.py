"""Combatant and gem templates.

This module loads the sample content that ships with the package: the gem
catalogue and the combatant templates that reference it. Templates are read
from YAML files under ``cardarena/assets/data`` and turned into ready-to-fight
Combatant and CombatantGems objects, with weapon bonuses already merged.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml

from .combatant import Combatant, CombatStats, WeaponBonus
from .gems import CombatantGems, Gem

# cardarena/ (two levels up from game/entities)
PACKAGE_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
ASSETS_DIR = os.path.join(PACKAGE_ROOT, "assets")
GEM_TEMPLATES_PATH = os.path.join(ASSETS_DIR, "data", "gems", "gem_templates.yaml")
COMBATANT_TEMPLATES_PATH = os.path.join(ASSETS_DIR, "data", "combatants", "combatant_templates.yaml")


@dataclass
class CombatantTemplate:
    """Template for creating a combatant and its equipment.

    ``stats`` holds camelCase base stats; missing values use the CombatStats
    defaults.
    """
    id: str
    name: str
    max_hp: int
    stats: dict[str, Any] = field(default_factory=dict)
    weapon: WeaponBonus = field(default_factory=WeaponBonus)
    gem_ids: list[str] = field(default_factory=list)
    image_url: Optional[str] = None


def _load_yaml(path: str, what: str) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"{what} file not found: {path}")

    if not isinstance(data, dict):
        raise ValueError(f"Invalid {what.lower()} file {path}: expected a mapping at the top level")
    return data


def load_gem_templates(path: Optional[str] = None) -> dict[str, Gem]:
    """Load the gem catalogue from YAML.

    Args:
        path: YAML file to read (defaults to the packaged gem templates)

    Returns:
        Dictionary mapping gem ids to Gem objects

    Raises:
        FileNotFoundError: If the file does not exist
        KeyError: If a gem entry lacks a required field
        ValueError: If a gem entry has an unknown skill type or trigger
    """
    yaml_path = path or GEM_TEMPLATES_PATH
    data = _load_yaml(yaml_path, "Gem templates")

    gems = {}
    try:
        for gem_id, gem_data in data["gem_templates"].items():
            gems[gem_id] = Gem.from_dict({"id": gem_id, **gem_data})
    except KeyError as e:
        raise KeyError(f"Invalid gem template structure in {yaml_path}: {e}")
    except ValueError as e:
        raise ValueError(f"Invalid gem template in {yaml_path}: {e}")

    return gems


def load_combatant_templates(path: Optional[str] = None) -> dict[str, CombatantTemplate]:
    """Load combatant templates from YAML.

    Args:
        path: YAML file to read (defaults to the packaged combatant templates)

    Returns:
        Dictionary mapping template ids to CombatantTemplate objects

    Raises:
        FileNotFoundError: If the file does not exist
        KeyError: If a template lacks a required field
    """
    yaml_path = path or COMBATANT_TEMPLATES_PATH
    data = _load_yaml(yaml_path, "Combatant templates")

    templates = {}
    try:
        for template_id, template_data in data["combatant_templates"].items():
            templates[template_id] = CombatantTemplate(
                id=template_id,
                name=template_data["name"],
                max_hp=int(template_data["maxHp"]),
                stats=template_data.get("stats", {}),
                weapon=WeaponBonus.from_dict(template_data.get("weapon") or {}),
                gem_ids=list(template_data.get("gems", [])),
                image_url=template_data.get("imageUrl"),
            )
    except KeyError as e:
        raise KeyError(f"Invalid combatant template structure in {yaml_path}: {e}")

    return templates


def create_combatant(template: CombatantTemplate) -> Combatant:
    """Create a fresh combatant at full HP with its weapon merged in."""
    base = Combatant(
        id=template.id,
        name=template.name,
        max_hp=template.max_hp,
        current_hp=template.max_hp,
        stats=CombatStats.from_dict(template.stats),
        image_url=template.image_url,
    )
    return base.with_weapon(template.weapon)


def create_combatant_gems(template: CombatantTemplate, gem_catalogue: dict[str, Gem]) -> CombatantGems:
    """Equip the template's gems, in template order, with cooldowns ready.

    Raises:
        KeyError: If the template references a gem that is not in the catalogue
    """
    gems = []
    for gem_id in template.gem_ids:
        if gem_id not in gem_catalogue:
            raise KeyError(f"Combatant template '{template.id}' references unknown gem: {gem_id}")
        gems.append(gem_catalogue[gem_id])
    return CombatantGems.from_gems(template.id, gems)
