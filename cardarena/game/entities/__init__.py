"""Battle entities.

This package contains the participants of a battle and their equipment:
- combatant.py: immutable combatants, stats and weapon bonuses
- gems.py: gems, tagged skill effects and equipped gem cooldown state
- templates.py: YAML-backed combatant and gem templates
"""

from .combatant import CombatStats, Combatant, WeaponBonus, calculate_effective_range
from .gems import (
    CombatantGems,
    DoubleAttackEffect,
    DoubleMoveEffect,
    EFFECT_PARAM_RANGES,
    EquippedGemState,
    ExecuteEffect,
    Gem,
    KnockbackEffect,
    LeapStrikeEffect,
    RetreatEffect,
    SkillEffect,
    create_effect,
)
from .templates import (
    CombatantTemplate,
    create_combatant,
    create_combatant_gems,
    load_combatant_templates,
    load_gem_templates,
)

__all__ = [
    "CombatStats",
    "Combatant",
    "WeaponBonus",
    "calculate_effective_range",
    "CombatantGems",
    "DoubleAttackEffect",
    "DoubleMoveEffect",
    "EFFECT_PARAM_RANGES",
    "EquippedGemState",
    "ExecuteEffect",
    "Gem",
    "KnockbackEffect",
    "LeapStrikeEffect",
    "RetreatEffect",
    "SkillEffect",
    "create_effect",
    "CombatantTemplate",
    "create_combatant",
    "create_combatant_gems",
    "load_combatant_templates",
    "load_gem_templates",
]
