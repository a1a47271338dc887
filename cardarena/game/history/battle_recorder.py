"""
Battle recording for history and replay.

The recorder mirrors every resolved attack of a battle. It captures combatant
snapshots when recording starts, appends one TurnRecord and one HP timeline
entry per attack and seals everything into an immutable BattleRecord when the
battle finishes. Finishing resets the recorder so the same instance can record
the next battle.
"""

import time
import uuid
from typing import Callable, Optional

from ..combat.damage_calculator import AttackResult
from ..entities.combatant import Combatant
from .records import (
    BattleRecord,
    CombatantSnapshot,
    DamageBreakdown,
    DefenderHpState,
    HpTimelineEntry,
    LifestealDetail,
    TurnRecord,
)

NOT_RECORDING_MESSAGE = "Recording not started. Call start_recording() first."


class RecorderStateError(RuntimeError):
    """Raised when the recorder is used outside an active recording."""


def current_time_ms() -> int:
    """Wall-clock time in integer milliseconds."""
    return int(time.time() * 1000)


def create_damage_breakdown(
    attack_result: AttackResult, attacker: Combatant, defender: Combatant
) -> DamageBreakdown:
    damage_result = attack_result.damage_result
    armor_pen_percent = attacker.stats.armor_pen
    defender_original_def = defender.stats.def_
    return DamageBreakdown(
        base_damage=damage_result.base_damage,
        is_crit=damage_result.is_crit,
        crit_multiplier=attacker.stats.crit_damage / 100 if damage_result.is_crit else 1.0,
        crit_bonus=damage_result.crit_bonus,
        armor_pen_percent=armor_pen_percent,
        defender_original_def=defender_original_def,
        effective_defense=defender_original_def * (1 - armor_pen_percent / 100),
        final_damage=damage_result.final_damage,
    )


def create_lifesteal_detail(
    attack_result: AttackResult, attacker: Combatant, attacker_hp_before: int
) -> LifestealDetail:
    return LifestealDetail(
        attacker_lifesteal_percent=attacker.stats.lifesteal,
        lifesteal_amount=attack_result.lifesteal_heal,
        attacker_hp_before=attacker_hp_before,
        attacker_hp_after=attack_result.attacker_new_hp,
        attacker_max_hp=attacker.max_hp,
    )


def create_defender_hp_state(
    attack_result: AttackResult, defender: Combatant, defender_hp_before: int
) -> DefenderHpState:
    return DefenderHpState(
        defender_hp_before=defender_hp_before,
        defender_hp_after=attack_result.defender_new_hp,
        defender_max_hp=defender.max_hp,
        is_knockout=attack_result.is_knockout,
    )


class BattleRecorder:
    """Captures one battle at a time into a BattleRecord."""

    def __init__(
        self,
        clock: Optional[Callable[[], int]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """Initialize the recorder.

        Args:
            clock: Returns the current time in milliseconds (defaults to wall-clock time)
            id_factory: Returns a new battle id (defaults to a uuid4 string)
        """
        self._clock = clock or current_time_ms
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self.reset()

    def reset(self) -> None:
        """Discard any battle in progress."""
        self._recording = False
        self._battle_id = ""
        self._started_at = 0
        self._challenger: Optional[CombatantSnapshot] = None
        self._opponent: Optional[CombatantSnapshot] = None
        self._turns: list[TurnRecord] = []
        self._hp_timeline: list[HpTimelineEntry] = []

    def is_recording(self) -> bool:
        return self._recording

    @property
    def turn_count(self) -> int:
        return len(self._turns)

    def start_recording(self, challenger: Combatant, opponent: Combatant) -> None:
        """Start a new recording, discarding any unfinished one.

        Captures both combatant snapshots and HP timeline entry 0.
        """
        self._recording = True
        self._battle_id = self._id_factory()
        self._started_at = self._clock()
        self._challenger = CombatantSnapshot.from_combatant(challenger)
        self._opponent = CombatantSnapshot.from_combatant(opponent)
        self._turns = []
        self._hp_timeline = [
            HpTimelineEntry(
                turn_number=0,
                timestamp=self._started_at,
                challenger_hp=challenger.current_hp,
                challenger_max_hp=challenger.max_hp,
                opponent_hp=opponent.current_hp,
                opponent_max_hp=opponent.max_hp,
            )
        ]

    def record_turn(
        self,
        turn_number: int,
        attacker: Combatant,
        defender: Combatant,
        attack_result: AttackResult,
        defender_hp_before: int,
        attacker_hp_before: int,
    ) -> TurnRecord:
        """Record one resolved attack.

        Args:
            turn_number: 1-based number of this attack; must follow the last one
            attacker: The attacker as it was before the attack
            defender: The defender as it was before the attack
            attack_result: The resolved attack
            defender_hp_before: Defender HP before the attack
            attacker_hp_before: Attacker HP before the attack

        Returns:
            The TurnRecord that was appended

        Raises:
            RecorderStateError: If no recording is in progress
            ValueError: If turn_number does not continue the sequence
        """
        if not self._recording:
            raise RecorderStateError(NOT_RECORDING_MESSAGE)

        expected = len(self._turns) + 1
        if turn_number != expected:
            raise ValueError(f"Turn {turn_number} recorded out of sequence, expected turn {expected}")

        timestamp = self._clock()
        turn_record = TurnRecord(
            turn_number=turn_number,
            timestamp=timestamp,
            attacker_id=attacker.id,
            attacker_name=attacker.name,
            defender_id=defender.id,
            defender_name=defender.name,
            damage=create_damage_breakdown(attack_result, attacker, defender),
            lifesteal=create_lifesteal_detail(attack_result, attacker, attacker_hp_before),
            defender_hp=create_defender_hp_state(attack_result, defender, defender_hp_before),
        )
        self._turns.append(turn_record)

        # Sides are resolved by identity, not by who attacked
        attacker_is_challenger = attacker.id == self._challenger.id
        if attacker_is_challenger:
            challenger_hp = attack_result.attacker_new_hp
            opponent_hp = attack_result.defender_new_hp
        else:
            challenger_hp = attack_result.defender_new_hp
            opponent_hp = attack_result.attacker_new_hp

        self._hp_timeline.append(HpTimelineEntry(
            turn_number=turn_number,
            timestamp=timestamp,
            challenger_hp=challenger_hp,
            challenger_max_hp=self._challenger.max_hp,
            opponent_hp=opponent_hp,
            opponent_max_hp=self._opponent.max_hp,
        ))
        return turn_record

    def finish_recording(self, winner_id: str, winner_name: str) -> BattleRecord:
        """Seal the battle into a BattleRecord and reset the recorder.

        Raises:
            RecorderStateError: If no recording is in progress
        """
        if not self._recording:
            raise RecorderStateError(NOT_RECORDING_MESSAGE)

        # Never report a negative duration if the clock steps backwards
        ended_at = max(self._clock(), self._started_at)
        record = BattleRecord(
            id=self._battle_id,
            started_at=self._started_at,
            ended_at=ended_at,
            battle_duration_ms=ended_at - self._started_at,
            challenger=self._challenger,
            opponent=self._opponent,
            winner_id=winner_id,
            winner_name=winner_name,
            total_turns=len(self._turns),
            turns=tuple(self._turns),
            hp_timeline=tuple(self._hp_timeline),
        )

        self.reset()
        return record
