"""
Damage resolution for arena attacks.

This module turns an attacker/defender pair into an immutable AttackResult
holding the full damage breakdown (base damage, critical hit, armor
penetration, lifesteal). The calculator holds no battle state; the only
source of variation is the critical hit roll, drawn from an injectable
random generator so battles can be replayed deterministically.
"""

import math
import random
from dataclasses import dataclass
from typing import Optional, Protocol

from ...core.data import HpBarColor
from ..entities.combatant import Combatant


class RandomSource(Protocol):
    """Anything with a ``random()`` returning a float in [0, 1)."""

    def random(self) -> float:
        ...


@dataclass(frozen=True)
class CombatConfig:
    """Tunable damage formula parameters.

    With ``use_defense`` off, damage is the attacker's ATK. With it on,
    defense reduces damage by ``eff / (eff + def_scaling_factor)`` where
    ``eff`` is defense after armor penetration.
    """
    min_damage: int = 1
    def_scaling_factor: float = 100
    critical_damage_threshold: float = 0.3
    use_defense: bool = False


DEFAULT_COMBAT_CONFIG = CombatConfig()


@dataclass(frozen=True)
class DamageResult:
    """Breakdown of the damage dealt by a single attack."""
    base_damage: int
    is_crit: bool
    crit_multiplier: float
    crit_bonus: int
    lifesteal_amount: int
    final_damage: int
    effective_defense: float


@dataclass(frozen=True)
class AttackResult:
    """Outcome of one resolved attack.

    ``is_critical`` is true when the crit roll succeeded or when the damage
    exceeds the configured share of the defender's max HP.
    """
    attacker_id: str
    defender_id: str
    damage: int
    defender_new_hp: int
    attacker_new_hp: int
    lifesteal_heal: int
    is_critical: bool
    is_knockout: bool
    defender_max_hp: int
    damage_result: DamageResult


class DamageCalculator:
    """Calculates attack outcomes from combatant stats."""

    def __init__(self, config: Optional[CombatConfig] = None, rng: Optional[RandomSource] = None):
        """Initialize the calculator.

        Args:
            config: Damage formula parameters (defaults to DEFAULT_COMBAT_CONFIG)
            rng: Random source for critical rolls (defaults to a new random.Random)
        """
        self.config = config or DEFAULT_COMBAT_CONFIG
        self.rng = rng if rng is not None else random.Random()

    def calculate_attack(self, attacker: Combatant, defender: Combatant) -> AttackResult:
        """Resolve a single attack without modifying either combatant.

        Args:
            attacker: The attacking combatant
            defender: The defending combatant

        Returns:
            AttackResult with the new HP values and the damage breakdown
        """
        stats = attacker.stats
        effective_defense = self.calculate_effective_def(defender.stats.def_, stats.armor_pen)

        if self.config.use_defense:
            base_damage = self.calculate_with_def(stats.atk, defender.stats.def_, stats.armor_pen)
        else:
            base_damage = max(self.config.min_damage, math.floor(stats.atk))

        is_crit = self.roll_critical(stats.crit_chance)
        if is_crit:
            final_damage = self.apply_critical(base_damage, stats.crit_damage)
            crit_bonus = final_damage - base_damage
            crit_multiplier = stats.crit_damage / 100
        else:
            final_damage = base_damage
            crit_bonus = 0
            crit_multiplier = 1.0

        final_damage = max(0, final_damage)
        lifesteal_amount = math.floor(final_damage * stats.lifesteal / 100)

        defender_new_hp = max(0, defender.current_hp - final_damage)
        attacker_new_hp = min(attacker.max_hp, attacker.current_hp + lifesteal_amount)

        damage_result = DamageResult(
            base_damage=base_damage,
            is_crit=is_crit,
            crit_multiplier=crit_multiplier,
            crit_bonus=crit_bonus,
            lifesteal_amount=lifesteal_amount,
            final_damage=final_damage,
            effective_defense=effective_defense,
        )

        return AttackResult(
            attacker_id=attacker.id,
            defender_id=defender.id,
            damage=final_damage,
            defender_new_hp=defender_new_hp,
            attacker_new_hp=attacker_new_hp,
            lifesteal_heal=lifesteal_amount,
            is_critical=is_crit or self.is_critical_damage(final_damage, defender.max_hp),
            is_knockout=defender_new_hp == 0,
            defender_max_hp=defender.max_hp,
            damage_result=damage_result,
        )

    def calculate_effective_def(self, def_: float, armor_pen: float) -> float:
        """Defense remaining after armor penetration."""
        return def_ * (1 - armor_pen / 100)

    def calculate_with_def(self, atk: float, def_: float, armor_pen: float = 0) -> int:
        """Damage after defense reduction, floored and at least ``min_damage``."""
        effective_def = self.calculate_effective_def(def_, armor_pen)
        denominator = effective_def + self.config.def_scaling_factor
        reduction = effective_def / denominator if denominator > 0 else 0
        return max(self.config.min_damage, math.floor(atk * (1 - reduction)))

    def roll_critical(self, crit_chance: float) -> bool:
        return self.rng.random() < crit_chance / 100

    def apply_critical(self, damage: int, crit_damage: float) -> int:
        """Apply the crit multiplier (150 means 1.5x)."""
        return math.floor(damage * (crit_damage / 100))

    def is_critical_damage(self, damage: int, defender_max_hp: int) -> bool:
        return damage > defender_max_hp * self.config.critical_damage_threshold


def calculate_hp_percentage(current_hp: int, max_hp: int) -> float:
    """HP as a percentage of max, clamped to [0, 100] (0 when max HP is 0)."""
    if max_hp <= 0:
        return 0.0
    return max(0.0, min(100.0, current_hp / max_hp * 100))


def get_hp_bar_color(percentage: float) -> HpBarColor:
    if percentage > 50:
        return HpBarColor.GREEN
    if percentage >= 25:
        return HpBarColor.YELLOW
    return HpBarColor.RED


def format_battle_message(attacker_name: str, defender_name: str, damage_result: DamageResult) -> str:
    """Describe an attack for display, mentioning crits and lifesteal healing."""
    message = f"{attacker_name} deals {damage_result.final_damage} damage to {defender_name}"
    if damage_result.is_crit:
        message += f" (CRIT! +{damage_result.crit_bonus})"
    if damage_result.lifesteal_amount > 0:
        message += f", heals {damage_result.lifesteal_amount} HP"
    return message
