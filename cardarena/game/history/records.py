"""Battle history record types.

A BattleRecord is the persisted artifact of one arena battle: snapshots of
both combatants at the start, one TurnRecord per resolved attack and an HP
timeline with one entry per turn plus the pre-battle state.

All record types are frozen dataclasses. ``to_dict`` produces the camelCase
wire format and ``from_dict`` reads it back, so that
``BattleRecord.from_json(record.to_json()) == record`` always holds.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional

from ..entities.combatant import Combatant


@dataclass(frozen=True)
class CombatantSnapshot:
    """A combatant's identity and stats captured at battle start."""
    id: str
    name: str
    image_url: Optional[str]
    max_hp: int
    current_hp: int
    atk: int
    def_: int
    spd: int
    crit_chance: float
    crit_damage: float
    armor_pen: float
    lifesteal: float

    @classmethod
    def from_combatant(cls, combatant: Combatant) -> "CombatantSnapshot":
        stats = combatant.stats
        return cls(
            id=combatant.id,
            name=combatant.name,
            image_url=combatant.image_url,
            max_hp=combatant.max_hp,
            current_hp=combatant.current_hp,
            atk=stats.atk,
            def_=stats.def_,
            spd=stats.spd,
            crit_chance=stats.crit_chance,
            crit_damage=stats.crit_damage,
            armor_pen=stats.armor_pen,
            lifesteal=stats.lifesteal,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "imageUrl": self.image_url,
            "maxHp": self.max_hp,
            "currentHp": self.current_hp,
            "atk": self.atk,
            "def": self.def_,
            "spd": self.spd,
            "critChance": self.crit_chance,
            "critDamage": self.crit_damage,
            "armorPen": self.armor_pen,
            "lifesteal": self.lifesteal,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CombatantSnapshot":
        return cls(
            id=data["id"],
            name=data["name"],
            image_url=data["imageUrl"],
            max_hp=data["maxHp"],
            current_hp=data["currentHp"],
            atk=data["atk"],
            def_=data["def"],
            spd=data["spd"],
            crit_chance=data["critChance"],
            crit_damage=data["critDamage"],
            armor_pen=data["armorPen"],
            lifesteal=data["lifesteal"],
        )


@dataclass(frozen=True)
class DamageBreakdown:
    """How the damage of one attack was computed."""
    base_damage: int
    is_crit: bool
    crit_multiplier: float
    crit_bonus: int
    armor_pen_percent: float
    defender_original_def: float
    effective_defense: float
    final_damage: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "baseDamage": self.base_damage,
            "isCrit": self.is_crit,
            "critMultiplier": self.crit_multiplier,
            "critBonus": self.crit_bonus,
            "armorPenPercent": self.armor_pen_percent,
            "defenderOriginalDef": self.defender_original_def,
            "effectiveDefense": self.effective_defense,
            "finalDamage": self.final_damage,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DamageBreakdown":
        return cls(
            base_damage=data["baseDamage"],
            is_crit=data["isCrit"],
            crit_multiplier=data["critMultiplier"],
            crit_bonus=data["critBonus"],
            armor_pen_percent=data["armorPenPercent"],
            defender_original_def=data["defenderOriginalDef"],
            effective_defense=data["effectiveDefense"],
            final_damage=data["finalDamage"],
        )


@dataclass(frozen=True)
class LifestealDetail:
    """Attacker healing caused by one attack."""
    attacker_lifesteal_percent: float
    lifesteal_amount: int
    attacker_hp_before: int
    attacker_hp_after: int
    attacker_max_hp: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "attackerLifestealPercent": self.attacker_lifesteal_percent,
            "lifestealAmount": self.lifesteal_amount,
            "attackerHpBefore": self.attacker_hp_before,
            "attackerHpAfter": self.attacker_hp_after,
            "attackerMaxHp": self.attacker_max_hp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LifestealDetail":
        return cls(
            attacker_lifesteal_percent=data["attackerLifestealPercent"],
            lifesteal_amount=data["lifestealAmount"],
            attacker_hp_before=data["attackerHpBefore"],
            attacker_hp_after=data["attackerHpAfter"],
            attacker_max_hp=data["attackerMaxHp"],
        )


@dataclass(frozen=True)
class DefenderHpState:
    """Defender HP before and after one attack."""
    defender_hp_before: int
    defender_hp_after: int
    defender_max_hp: int
    is_knockout: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "defenderHpBefore": self.defender_hp_before,
            "defenderHpAfter": self.defender_hp_after,
            "defenderMaxHp": self.defender_max_hp,
            "isKnockout": self.is_knockout,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DefenderHpState":
        return cls(
            defender_hp_before=data["defenderHpBefore"],
            defender_hp_after=data["defenderHpAfter"],
            defender_max_hp=data["defenderMaxHp"],
            is_knockout=data["isKnockout"],
        )


@dataclass(frozen=True)
class TurnRecord:
    """One resolved attack."""
    turn_number: int
    timestamp: int
    attacker_id: str
    attacker_name: str
    defender_id: str
    defender_name: str
    damage: DamageBreakdown
    lifesteal: LifestealDetail
    defender_hp: DefenderHpState

    def to_dict(self) -> dict[str, Any]:
        return {
            "turnNumber": self.turn_number,
            "timestamp": self.timestamp,
            "attackerId": self.attacker_id,
            "attackerName": self.attacker_name,
            "defenderId": self.defender_id,
            "defenderName": self.defender_name,
            "damage": self.damage.to_dict(),
            "lifesteal": self.lifesteal.to_dict(),
            "defenderHp": self.defender_hp.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TurnRecord":
        return cls(
            turn_number=data["turnNumber"],
            timestamp=data["timestamp"],
            attacker_id=data["attackerId"],
            attacker_name=data["attackerName"],
            defender_id=data["defenderId"],
            defender_name=data["defenderName"],
            damage=DamageBreakdown.from_dict(data["damage"]),
            lifesteal=LifestealDetail.from_dict(data["lifesteal"]),
            defender_hp=DefenderHpState.from_dict(data["defenderHp"]),
        )


@dataclass(frozen=True)
class HpTimelineEntry:
    """Both combatants' HP after a turn (turn 0 is the pre-battle state)."""
    turn_number: int
    timestamp: int
    challenger_hp: int
    challenger_max_hp: int
    opponent_hp: int
    opponent_max_hp: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "turnNumber": self.turn_number,
            "timestamp": self.timestamp,
            "challengerHp": self.challenger_hp,
            "challengerMaxHp": self.challenger_max_hp,
            "opponentHp": self.opponent_hp,
            "opponentMaxHp": self.opponent_max_hp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HpTimelineEntry":
        return cls(
            turn_number=data["turnNumber"],
            timestamp=data["timestamp"],
            challenger_hp=data["challengerHp"],
            challenger_max_hp=data["challengerMaxHp"],
            opponent_hp=data["opponentHp"],
            opponent_max_hp=data["opponentMaxHp"],
        )


@dataclass(frozen=True)
class BattleRecord:
    """The complete, immutable history of one battle."""
    id: str
    started_at: int
    ended_at: int
    battle_duration_ms: int
    challenger: CombatantSnapshot
    opponent: CombatantSnapshot
    winner_id: str
    winner_name: str
    total_turns: int
    turns: tuple[TurnRecord, ...]
    hp_timeline: tuple[HpTimelineEntry, ...]

    def get_timeline_entry(self, turn_number: int) -> Optional[HpTimelineEntry]:
        """HP timeline entry for a turn, or None if the turn has no entry."""
        for entry in self.hp_timeline:
            if entry.turn_number == turn_number:
                return entry
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "startedAt": self.started_at,
            "endedAt": self.ended_at,
            "battleDurationMs": self.battle_duration_ms,
            "challenger": self.challenger.to_dict(),
            "opponent": self.opponent.to_dict(),
            "winnerId": self.winner_id,
            "winnerName": self.winner_name,
            "totalTurns": self.total_turns,
            "turns": [turn.to_dict() for turn in self.turns],
            "hpTimeline": [entry.to_dict() for entry in self.hp_timeline],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BattleRecord":
        """Read a record from its wire format.

        Raises:
            KeyError: If a required field is missing
        """
        return cls(
            id=data["id"],
            started_at=data["startedAt"],
            ended_at=data["endedAt"],
            battle_duration_ms=data["battleDurationMs"],
            challenger=CombatantSnapshot.from_dict(data["challenger"]),
            opponent=CombatantSnapshot.from_dict(data["opponent"]),
            winner_id=data["winnerId"],
            winner_name=data["winnerName"],
            total_turns=data["totalTurns"],
            turns=tuple(TurnRecord.from_dict(turn) for turn in data["turns"]),
            hp_timeline=tuple(HpTimelineEntry.from_dict(entry) for entry in data["hpTimeline"]),
        )

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, text: str) -> "BattleRecord":
        return cls.from_dict(json.loads(text))
