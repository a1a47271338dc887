"""Gems and the skills they grant.

Each gem carries exactly one skill effect. Effects are tagged variants, one
dataclass per ``SkillType``, so every skill has its own explicitly typed
parameters instead of a shared bag of optional values.

Effect parameters are clamped to ``EFFECT_PARAM_RANGES`` on construction.
Distances are always at least one cell, so no skill can move a combatant
onto or past its enemy.

Equipped gems track their own cooldown in ``EquippedGemState``. Both the
state and the ``CombatantGems`` collection are immutable; cooldown changes
always produce new objects.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Optional, Union

from ...core.data import MAX_GEM_SLOTS, SKILL_TRIGGERS, SkillTrigger, SkillType

# Allowed (min, max) for each stored effect parameter
EFFECT_PARAM_RANGES = {
    "knockbackDistance": (1, 3),
    "moveDistance": (1, 3),
    "attackCount": (2, 3),
    "executeThreshold": (1, 50),
    "leapRange": (1, 3),
    "leapKnockback": (1, 3),
}


def clamp_param(name: str, value: float) -> float:
    """Clamp an effect parameter to its allowed range."""
    low, high = EFFECT_PARAM_RANGES[name]
    return max(low, min(high, value))


@dataclass(frozen=True)
class KnockbackEffect:
    """Push the defender away from the attacker after a hit."""
    distance: int = 1
    skill_type: SkillType = field(default=SkillType.KNOCKBACK, init=False)

    def __post_init__(self):
        object.__setattr__(self, "distance", int(clamp_param("knockbackDistance", self.distance)))

    def to_params(self) -> dict[str, Any]:
        return {"knockbackDistance": self.distance}


@dataclass(frozen=True)
class RetreatEffect:
    """Step the attacker away from the defender after a hit."""
    distance: int = 1
    skill_type: SkillType = field(default=SkillType.RETREAT, init=False)

    def __post_init__(self):
        object.__setattr__(self, "distance", int(clamp_param("knockbackDistance", self.distance)))

    def to_params(self) -> dict[str, Any]:
        # Retreat shares the knockback distance parameter in stored gem data
        return {"knockbackDistance": self.distance}


@dataclass(frozen=True)
class DoubleMoveEffect:
    """Move further than one cell in a single step."""
    move_distance: int = 2
    skill_type: SkillType = field(default=SkillType.DOUBLE_MOVE, init=False)

    def __post_init__(self):
        object.__setattr__(self, "move_distance", int(clamp_param("moveDistance", self.move_distance)))

    def to_params(self) -> dict[str, Any]:
        return {"moveDistance": self.move_distance}


@dataclass(frozen=True)
class DoubleAttackEffect:
    """Follow a hit with more hits while the defender survives.

    ``attack_count`` is the total number of hits including the first one.
    """
    attack_count: int = 2
    skill_type: SkillType = field(default=SkillType.DOUBLE_ATTACK, init=False)

    def __post_init__(self):
        object.__setattr__(self, "attack_count", int(clamp_param("attackCount", self.attack_count)))

    def to_params(self) -> dict[str, Any]:
        return {"attackCount": self.attack_count}


@dataclass(frozen=True)
class ExecuteEffect:
    """Finish a defender whose HP percentage falls below ``threshold``."""
    threshold: float = 15
    skill_type: SkillType = field(default=SkillType.EXECUTE, init=False)

    def __post_init__(self):
        object.__setattr__(self, "threshold", clamp_param("executeThreshold", self.threshold))

    def to_params(self) -> dict[str, Any]:
        return {"executeThreshold": self.threshold}


@dataclass(frozen=True)
class LeapStrikeEffect:
    """Jump next to a nearby enemy and knock it back."""
    leap_range: int = 2
    knockback: int = 2
    skill_type: SkillType = field(default=SkillType.LEAP_STRIKE, init=False)

    def __post_init__(self):
        object.__setattr__(self, "leap_range", int(clamp_param("leapRange", self.leap_range)))
        object.__setattr__(self, "knockback", int(clamp_param("leapKnockback", self.knockback)))

    def to_params(self) -> dict[str, Any]:
        return {"leapRange": self.leap_range, "leapKnockback": self.knockback}


SkillEffect = Union[
    KnockbackEffect,
    RetreatEffect,
    DoubleMoveEffect,
    DoubleAttackEffect,
    ExecuteEffect,
    LeapStrikeEffect,
]


def create_effect(skill_type: SkillType, params: Optional[dict[str, Any]] = None) -> SkillEffect:
    """Create the effect variant for a skill type from stored parameters.

    Args:
        skill_type: The skill the effect belongs to
        params: camelCase effect parameters; missing values use defaults

    Returns:
        The effect variant for ``skill_type``
    """
    params = params or {}

    if skill_type is SkillType.KNOCKBACK:
        return KnockbackEffect(distance=int(params.get("knockbackDistance", 1)))
    if skill_type is SkillType.RETREAT:
        return RetreatEffect(distance=int(params.get("knockbackDistance", 1)))
    if skill_type is SkillType.DOUBLE_MOVE:
        return DoubleMoveEffect(move_distance=int(params.get("moveDistance", 2)))
    if skill_type is SkillType.DOUBLE_ATTACK:
        return DoubleAttackEffect(attack_count=int(params.get("attackCount", 2)))
    if skill_type is SkillType.EXECUTE:
        return ExecuteEffect(threshold=params.get("executeThreshold", 15))
    if skill_type is SkillType.LEAP_STRIKE:
        return LeapStrikeEffect(
            leap_range=int(params.get("leapRange", 2)),
            knockback=int(params.get("leapKnockback", 2)),
        )
    raise ValueError(f"Unknown skill type: {skill_type}")


@dataclass(frozen=True)
class Gem:
    """An equippable skill modifier.

    ``activation_chance`` is clamped to [0, 100] and ``cooldown`` to at least
    0, so malformed gem data still produces a usable gem.
    """
    id: str
    name: str
    trigger: SkillTrigger
    activation_chance: float
    cooldown: int
    effect: SkillEffect
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, "activation_chance", max(0, min(100, self.activation_chance)))
        object.__setattr__(self, "cooldown", max(0, int(self.cooldown)))

    @property
    def skill_type(self) -> SkillType:
        return self.effect.skill_type

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "skillType": self.skill_type.value,
            "trigger": self.trigger.value,
            "activationChance": self.activation_chance,
            "cooldown": self.cooldown,
            "effectParams": self.effect.to_params(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Gem":
        """Build a gem from a stored camelCase mapping.

        The trigger defaults to the natural trigger of the skill type.

        Raises:
            KeyError: If id, name or skillType is missing
            ValueError: If skillType or trigger is not a known value
        """
        try:
            skill_type = SkillType(data["skillType"])
        except ValueError:
            raise ValueError(f"Unknown skill type: {data['skillType']!r}")

        trigger_value = data.get("trigger")
        if trigger_value is None:
            trigger = SKILL_TRIGGERS[skill_type]
        else:
            try:
                trigger = SkillTrigger(trigger_value)
            except ValueError:
                raise ValueError(f"Unknown skill trigger: {trigger_value!r}")

        return cls(
            id=str(data["id"]),
            name=data["name"],
            description=data.get("description", ""),
            trigger=trigger,
            activation_chance=data.get("activationChance", 100),
            cooldown=data.get("cooldown", 0),
            effect=create_effect(skill_type, data.get("effectParams")),
        )


@dataclass(frozen=True)
class EquippedGemState:
    """A gem in a slot together with its remaining cooldown."""
    gem: Gem
    current_cooldown: int = 0

    def __post_init__(self):
        object.__setattr__(self, "current_cooldown", max(0, int(self.current_cooldown)))

    @property
    def is_ready(self) -> bool:
        return self.current_cooldown == 0

    def with_cooldown(self, cooldown: int) -> "EquippedGemState":
        return replace(self, current_cooldown=cooldown)


@dataclass(frozen=True)
class CombatantGems:
    """The gems equipped by one combatant, in equip order."""
    card_id: str
    equipped_gems: tuple[EquippedGemState, ...] = ()

    def __post_init__(self):
        gems = tuple(self.equipped_gems)
        if len(gems) > MAX_GEM_SLOTS:
            raise ValueError(
                f"Card {self.card_id} has {len(gems)} gems equipped, maximum is {MAX_GEM_SLOTS}"
            )
        object.__setattr__(self, "equipped_gems", gems)

    @classmethod
    def from_gems(cls, card_id: str, gems: list[Gem]) -> "CombatantGems":
        """Equip gems with all cooldowns ready."""
        return cls(card_id, tuple(EquippedGemState(gem) for gem in gems))

    def with_states(self, states: list[EquippedGemState]) -> "CombatantGems":
        return replace(self, equipped_gems=tuple(states))

    def get_cooldowns(self) -> dict[str, int]:
        """Remaining cooldown per gem id."""
        return {state.gem.id: state.current_cooldown for state in self.equipped_gems}
