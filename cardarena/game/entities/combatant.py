"""Combatants that take part in arena battles.

A combatant is an immutable bundle of identity, hit points and combat stats.
Stats arrive already merged with equipment bonuses; the arena only reads them.
HP changes are expressed by applying an ``AttackResult``, which produces a new
combatant instead of mutating the old one.
"""

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Optional

from ...core.data import DEFAULT_ATTACK_RANGE

if TYPE_CHECKING:
    from ..combat.damage_calculator import AttackResult


def calculate_effective_range(weapon_range: int) -> int:
    """Effective attack range from an equipped weapon's range.

    Unarmed or zero-range weapons fall back to adjacent-only attacks.
    """
    if weapon_range and weapon_range > 0:
        return int(weapon_range)
    return DEFAULT_ATTACK_RANGE


@dataclass(frozen=True)
class CombatStats:
    """Offensive and defensive stats of a combatant.

    ``crit_chance``, ``armor_pen`` and ``lifesteal`` are percentages in
    [0, 100]. ``crit_damage`` is a percentage multiplier where 150 means a
    critical hit deals 1.5x damage; it is at least 100. Out-of-range values
    are clamped on construction.
    """
    atk: int = 100
    def_: int = 50
    spd: int = 100
    crit_chance: float = 5
    crit_damage: float = 150
    armor_pen: float = 0
    lifesteal: float = 0

    def __post_init__(self):
        for name in ("crit_chance", "armor_pen", "lifesteal"):
            object.__setattr__(self, name, max(0, min(100, getattr(self, name))))
        object.__setattr__(self, "crit_damage", max(100, self.crit_damage))

    def to_dict(self) -> dict[str, Any]:
        return {
            "atk": self.atk,
            "def": self.def_,
            "spd": self.spd,
            "critChance": self.crit_chance,
            "critDamage": self.crit_damage,
            "armorPen": self.armor_pen,
            "lifesteal": self.lifesteal,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CombatStats":
        """Build stats from a camelCase mapping, defaulting missing fields."""
        defaults = cls()
        return cls(
            atk=data.get("atk", defaults.atk),
            def_=data.get("def", defaults.def_),
            spd=data.get("spd", defaults.spd),
            crit_chance=data.get("critChance", defaults.crit_chance),
            crit_damage=data.get("critDamage", defaults.crit_damage),
            armor_pen=data.get("armorPen", defaults.armor_pen),
            lifesteal=data.get("lifesteal", defaults.lifesteal),
        )


@dataclass(frozen=True)
class WeaponBonus:
    """Flat bonuses granted by an equipped weapon."""
    atk: int = 0
    crit_chance: float = 0
    crit_damage: float = 0
    armor_pen: float = 0
    lifesteal: float = 0
    attack_range: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WeaponBonus":
        return cls(
            atk=data.get("atk", 0),
            crit_chance=data.get("critChance", 0),
            crit_damage=data.get("critDamage", 0),
            armor_pen=data.get("armorPen", 0),
            lifesteal=data.get("lifesteal", 0),
            attack_range=data.get("attackRange", 0),
        )


@dataclass(frozen=True)
class Combatant:
    """A battle participant with HP and combat stats.

    ``current_hp`` is clamped to [0, max_hp] and ``effective_range`` to at
    least 1 on construction, so every instance satisfies the HP invariant.
    """
    id: str
    name: str
    max_hp: int
    current_hp: int
    stats: CombatStats = field(default_factory=CombatStats)
    effective_range: int = DEFAULT_ATTACK_RANGE
    image_url: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "max_hp", max(0, int(self.max_hp)))
        object.__setattr__(self, "current_hp", max(0, min(self.max_hp, int(self.current_hp))))
        object.__setattr__(self, "effective_range", max(DEFAULT_ATTACK_RANGE, int(self.effective_range)))

    @property
    def is_defeated(self) -> bool:
        return self.current_hp <= 0

    @property
    def hp_percent(self) -> float:
        """Remaining HP as a percentage of max HP (0 when max HP is 0)."""
        if self.max_hp <= 0:
            return 0.0
        return self.current_hp / self.max_hp * 100

    def with_hp(self, hp: int) -> "Combatant":
        """Return a copy with HP set (clamped to [0, max_hp])."""
        return replace(self, current_hp=hp)

    def apply_as_attacker(self, result: "AttackResult") -> "Combatant":
        """Apply an attack this combatant made (lifesteal healing)."""
        return self.with_hp(result.attacker_new_hp)

    def apply_as_defender(self, result: "AttackResult") -> "Combatant":
        """Apply an attack this combatant received."""
        return self.with_hp(result.defender_new_hp)

    def with_weapon(self, bonus: WeaponBonus) -> "Combatant":
        """Merge weapon bonuses into a copy of this combatant.

        Bonuses are additive. The weapon's attack range replaces the effective
        range, falling back to adjacent-only for zero-range weapons.
        """
        stats = replace(
            self.stats,
            atk=self.stats.atk + bonus.atk,
            crit_chance=self.stats.crit_chance + bonus.crit_chance,
            crit_damage=self.stats.crit_damage + bonus.crit_damage,
            armor_pen=self.stats.armor_pen + bonus.armor_pen,
            lifesteal=self.stats.lifesteal + bonus.lifesteal,
        )
        return replace(
            self,
            stats=stats,
            effective_range=calculate_effective_range(bonus.attack_range),
        )

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "imageUrl": self.image_url,
            "maxHp": self.max_hp,
            "currentHp": self.current_hp,
            "effectiveRange": self.effective_range,
        }
        data.update(self.stats.to_dict())
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Combatant":
        """Build a combatant from a camelCase mapping.

        ``currentHp`` defaults to ``maxHp`` (a fresh combatant).

        Raises:
            KeyError: If id, name or maxHp is missing
        """
        max_hp = data["maxHp"]
        return cls(
            id=str(data["id"]),
            name=data["name"],
            max_hp=max_hp,
            current_hp=data.get("currentHp", max_hp),
            stats=CombatStats.from_dict(data),
            effective_range=data.get("effectiveRange", DEFAULT_ATTACK_RANGE),
            image_url=data.get("imageUrl"),
        )
