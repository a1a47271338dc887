"""Combat systems.

This package contains the damage and skill engines used by the arena:
- damage_calculator.py: stat-driven damage, crits, armor penetration, lifesteal
- skill_system.py: gem activation, cooldowns, movement and combat skill effects
"""

from .damage_calculator import (
    DEFAULT_COMBAT_CONFIG,
    AttackResult,
    CombatConfig,
    DamageCalculator,
    DamageResult,
    RandomSource,
    calculate_hp_percentage,
    format_battle_message,
    get_hp_bar_color,
)
from .skill_system import (
    ActivatedSkill,
    CombatSkillResult,
    MovementSkillResult,
    QueuedAttack,
    SkillActivationResult,
    SkillSystem,
)

__all__ = [
    "DEFAULT_COMBAT_CONFIG",
    "AttackResult",
    "CombatConfig",
    "DamageCalculator",
    "DamageResult",
    "RandomSource",
    "calculate_hp_percentage",
    "format_battle_message",
    "get_hp_bar_color",
    "ActivatedSkill",
    "CombatSkillResult",
    "MovementSkillResult",
    "QueuedAttack",
    "SkillActivationResult",
    "SkillSystem",
]
