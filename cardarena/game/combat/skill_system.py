"""
Gem skill resolution.

The skill system is stateless: it receives a combatant's equipped gems plus
the relevant positions and returns what happened, including the updated gem
cooldowns. Nothing passed in is modified.

Skills resolve in equip order. Every gem is cooldown-gated and rolled on its
own, so several gems may activate on the same turn. A successful activation
starts the gem's cooldown; a failed roll leaves it ready.

Movement skills (evaluated while closing distance):
- double_move: move several cells instead of one, stopping next to the enemy
- leap_strike: jump next to a nearby enemy and knock it back

Combat skills (evaluated after the attacker's hit):
- knockback: push the defender away
- retreat: step the attacker away
- double_attack: queue follow-up hits while the defender survives
- execute: drop the defender to 0 HP below a percentage threshold
"""

import random
from dataclasses import dataclass
from typing import Optional

from ...core.data import (
    SkillTrigger,
    SkillType,
    clamp_position,
    direction_sign,
    get_distance,
)
from ..entities.gems import (
    CombatantGems,
    DoubleAttackEffect,
    DoubleMoveEffect,
    EquippedGemState,
    ExecuteEffect,
    Gem,
    KnockbackEffect,
    LeapStrikeEffect,
    RetreatEffect,
)
from .damage_calculator import AttackResult, RandomSource


@dataclass(frozen=True)
class ActivatedSkill:
    """A gem skill that activated during a turn."""
    skill_type: SkillType
    gem_id: str
    gem_name: str

    @classmethod
    def from_gem(cls, gem: Gem) -> "ActivatedSkill":
        return cls(gem.skill_type, gem.id, gem.name)


@dataclass(frozen=True)
class SkillActivationResult:
    """Outcome of trying to activate one equipped gem."""
    activated: bool
    gem: Gem
    new_cooldown: int


@dataclass(frozen=True)
class QueuedAttack:
    """A follow-up hit the arena should resolve after the primary attack.

    ``hit_number`` counts hits from the same skill, starting at 2 for the
    first follow-up.
    """
    gem_id: str
    gem_name: str
    hit_number: int = 2


@dataclass(frozen=True)
class MovementSkillResult:
    """Positions after movement skills resolved."""
    final_position: int
    skills_activated: tuple[ActivatedSkill, ...]
    enemy_new_position: Optional[int]
    card_gems: CombatantGems


@dataclass(frozen=True)
class CombatSkillResult:
    """Positions, defender HP and follow-up hits after combat skills resolved."""
    attacker_new_position: int
    defender_new_position: int
    defender_new_hp: int
    queued_attacks: tuple[QueuedAttack, ...]
    skills_activated: tuple[ActivatedSkill, ...]
    card_gems: CombatantGems


class SkillSystem:
    """Resolves gem activation rolls, cooldowns and skill effects."""

    def __init__(self, rng: Optional[RandomSource] = None):
        """Initialize the skill system.

        Args:
            rng: Random source for activation rolls (defaults to a new random.Random)
        """
        self.rng = rng if rng is not None else random.Random()

    def roll_activation(self, chance: float) -> bool:
        """Roll a uniform value in [0, 100) and activate when it is below ``chance``."""
        clamped_chance = max(0, min(100, chance))
        return self.rng.random() * 100 < clamped_chance

    def can_activate(self, gem_state: EquippedGemState) -> bool:
        return gem_state.current_cooldown == 0

    def try_activate_skill(self, gem_state: EquippedGemState) -> SkillActivationResult:
        """Try to activate a gem, honouring its cooldown.

        Gems on cooldown are not rolled and keep their remaining cooldown. A
        failed roll leaves the cooldown at 0; a successful one starts the
        gem's configured cooldown.
        """
        gem = gem_state.gem

        if not self.can_activate(gem_state):
            return SkillActivationResult(False, gem, gem_state.current_cooldown)

        if not self.roll_activation(gem.activation_chance):
            return SkillActivationResult(False, gem, 0)

        return SkillActivationResult(True, gem, gem.cooldown)

    def decrement_cooldowns(self, card_gems: CombatantGems) -> CombatantGems:
        """Tick every equipped gem's cooldown down by one (floor 0)."""
        return card_gems.with_states([
            state.with_cooldown(max(0, state.current_cooldown - 1))
            for state in card_gems.equipped_gems
        ])

    def process_movement_skills(
        self,
        card_gems: CombatantGems,
        current_position: int,
        target_position: int,
        enemy_position: int,
    ) -> MovementSkillResult:
        """Resolve movement-trigger gems for a combatant about to move.

        Args:
            card_gems: The mover's equipped gems
            current_position: Cell the mover starts from
            target_position: Cell a normal one-cell move would reach
            enemy_position: Cell the enemy stands on

        Returns:
            MovementSkillResult with the final cell, the enemy's new cell if a
            skill moved it, and the updated gem cooldowns
        """
        final_position = target_position
        enemy_new_position: Optional[int] = None
        activated: list[ActivatedSkill] = []
        move_direction = direction_sign(current_position, target_position)

        updated_states = []
        for gem_state in card_gems.equipped_gems:
            gem = gem_state.gem
            if gem.trigger is not SkillTrigger.MOVEMENT:
                updated_states.append(gem_state)
                continue

            activation = self.try_activate_skill(gem_state)
            updated_states.append(gem_state.with_cooldown(activation.new_cooldown))
            if not activation.activated:
                continue

            effect = gem.effect
            if isinstance(effect, DoubleMoveEffect):
                final_position = self._double_move_position(
                    current_position, move_direction, effect.move_distance, enemy_position
                )
                activated.append(ActivatedSkill.from_gem(gem))

            elif isinstance(effect, LeapStrikeEffect):
                distance_to_enemy = get_distance(current_position, enemy_position)
                # Leaping spends the activation even when the enemy is out of reach
                if 0 < distance_to_enemy <= effect.leap_range:
                    direction_to_enemy = direction_sign(current_position, enemy_position)
                    final_position = clamp_position(enemy_position - direction_to_enemy)
                    knockback_direction = direction_sign(final_position, enemy_position)
                    enemy_new_position = clamp_position(
                        enemy_position + knockback_direction * effect.knockback
                    )
                    activated.append(ActivatedSkill.from_gem(gem))

        return MovementSkillResult(
            final_position=final_position,
            skills_activated=tuple(activated),
            enemy_new_position=enemy_new_position,
            card_gems=card_gems.with_states(updated_states),
        )

    def _double_move_position(
        self, current_position: int, move_direction: int, move_distance: int, enemy_position: int
    ) -> int:
        """Cell reached by a multi-cell move, stopping next to the enemy."""
        position = clamp_position(current_position + move_direction * move_distance)
        if move_direction > 0 and enemy_position > current_position:
            position = min(position, enemy_position - 1)
        elif move_direction < 0 and enemy_position < current_position:
            position = max(position, enemy_position + 1)
        return position

    def process_combat_skills(
        self,
        attacker_gems: CombatantGems,
        attacker_position: int,
        defender_position: int,
        attack_result: AttackResult,
    ) -> CombatSkillResult:
        """Resolve the attacker's combat-trigger gems after a hit.

        Follow-up hits from double_attack are returned as ``queued_attacks``
        for the caller to resolve in order. They are only queued while the
        defender's HP known at that point in equip order is above 0, and
        execute likewise judges the HP known at its own point in equip order.

        Args:
            attacker_gems: The attacker's equipped gems
            attacker_position: Cell the attacker stands on
            defender_position: Cell the defender stands on
            attack_result: The primary attack that triggered the skills

        Returns:
            CombatSkillResult with new positions, the defender's HP after
            skills, queued follow-up hits and the updated gem cooldowns
        """
        attacker_new_position = attacker_position
        defender_new_position = defender_position
        defender_new_hp = attack_result.defender_new_hp
        defender_max_hp = attack_result.defender_max_hp
        queued: list[QueuedAttack] = []
        activated: list[ActivatedSkill] = []

        updated_states = []
        for gem_state in attacker_gems.equipped_gems:
            gem = gem_state.gem
            if gem.trigger is not SkillTrigger.COMBAT:
                updated_states.append(gem_state)
                continue

            activation = self.try_activate_skill(gem_state)
            updated_states.append(gem_state.with_cooldown(activation.new_cooldown))
            if not activation.activated:
                continue

            effect = gem.effect
            if isinstance(effect, KnockbackEffect):
                direction = direction_sign(attacker_position, defender_position)
                defender_new_position = clamp_position(defender_position + direction * effect.distance)
                activated.append(ActivatedSkill.from_gem(gem))

            elif isinstance(effect, RetreatEffect):
                direction = direction_sign(defender_position, attacker_position)
                attacker_new_position = clamp_position(attacker_position + direction * effect.distance)
                activated.append(ActivatedSkill.from_gem(gem))

            elif isinstance(effect, DoubleAttackEffect):
                if defender_new_hp > 0:
                    queued.extend(
                        QueuedAttack(gem.id, gem.name, hit_number)
                        for hit_number in range(2, effect.attack_count + 1)
                    )
                activated.append(ActivatedSkill.from_gem(gem))

            elif isinstance(effect, ExecuteEffect):
                if defender_new_hp > 0 and defender_max_hp > 0:
                    hp_percentage = defender_new_hp / defender_max_hp * 100
                    if hp_percentage < effect.threshold:
                        defender_new_hp = 0
                        activated.append(ActivatedSkill.from_gem(gem))

        return CombatSkillResult(
            attacker_new_position=attacker_new_position,
            defender_new_position=defender_new_position,
            defender_new_hp=defender_new_hp,
            queued_attacks=tuple(queued),
            skills_activated=tuple(activated),
            card_gems=attacker_gems.with_states(updated_states),
        )
