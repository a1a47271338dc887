"""
Arena battle state machine.

This module owns one arena battle: both combatants, their positions on the
8-cell track, whose turn it is, the phase, the user-facing battle log and the
result. Each ArenaManager is an independent instance, so several battles can
run side by side without sharing state.

Phases:
- SETUP: before init_arena
- MOVING: nobody can reach the other, combatants close the distance
- COMBAT: at least one combatant is within its effective range
- FINISHED: a knockout happened (terminal)

A turn is one execute_move or execute_attack call. Every completed turn ticks
the gem cooldowns of both combatants once and passes the turn to the other
side. Events published while a turn resolves are delivered once it is done.
"""

import itertools
from dataclasses import dataclass, replace
from typing import Callable, Optional

from ...core.data import (
    SKILL_TYPE_NAMES,
    ArenaPhase,
    ArenaPositions,
    BattleResult,
    BattleRole,
    LEFT_BOUNDARY_INDEX,
    LogCategory,
    LogEntryType,
    RIGHT_BOUNDARY_INDEX,
    determine_phase,
    get_next_position,
    is_in_range,
)
from ...core.events import (
    ArenaPhaseChanged,
    AttackResolved,
    AutoBattleToggled,
    BattleEnded,
    BattleStarted,
    CombatantMoved,
    EventManager,
    LogMessage,
    SkillActivated,
    TurnEnded,
)
from ..arena_track import ArenaTrack
from ..combat import (
    ActivatedSkill,
    AttackResult,
    DamageCalculator,
    RandomSource,
    SkillSystem,
)
from ..entities.combatant import Combatant
from ..entities.gems import CombatantGems
from ..history.battle_recorder import BattleRecorder, current_time_ms
from ..history.records import BattleRecord
from .log_manager import LogLevel

# HP fraction below which a combatant is shown as in danger
DANGER_THRESHOLD = 0.25

LOG_CATEGORIES = {
    LogEntryType.MOVE: LogCategory.MOVEMENT,
    LogEntryType.ATTACK: LogCategory.BATTLE,
    LogEntryType.SKILL: LogCategory.SKILL,
    LogEntryType.VICTORY: LogCategory.BATTLE,
}


@dataclass(frozen=True)
class BattleLogEntry:
    """One line of the user-facing battle log."""
    id: str
    timestamp: int
    type: LogEntryType
    message: str
    is_crit: Optional[bool] = None
    lifesteal_amount: Optional[int] = None

    @property
    def has_lifesteal(self) -> bool:
        return self.lifesteal_amount is not None and self.lifesteal_amount > 0


@dataclass(frozen=True)
class ArenaTurnOutcome:
    """Everything that happened during one completed turn."""
    role: BattleRole
    from_position: int
    to_position: int
    attack_results: tuple[AttackResult, ...]
    skills_activated: tuple[ActivatedSkill, ...]
    finished: bool

    @property
    def moved(self) -> bool:
        return self.from_position != self.to_position

    @property
    def attacked(self) -> bool:
        return len(self.attack_results) > 0


class ArenaManager:
    """State machine for one 1-D arena battle."""

    def __init__(
        self,
        event_manager: Optional[EventManager] = None,
        damage_calculator: Optional[DamageCalculator] = None,
        skill_system: Optional[SkillSystem] = None,
        recorder: Optional[BattleRecorder] = None,
        rng: Optional[RandomSource] = None,
        clock: Optional[Callable[[], int]] = None,
        danger_threshold: float = DANGER_THRESHOLD,
    ):
        """Initialize an empty arena in the SETUP phase.

        Args:
            event_manager: Event bus for battle events (a private one is created if omitted)
            damage_calculator: Damage engine (built on ``rng`` if omitted)
            skill_system: Skill engine (built on ``rng`` if omitted)
            recorder: Optional recorder that mirrors every resolved attack
            rng: Random source shared by the default damage and skill engines
            clock: Returns the current time in milliseconds, used for log timestamps
            danger_threshold: HP fraction below which is_in_danger reports True
        """
        self.event_manager = event_manager or EventManager()
        self.damage_calculator = damage_calculator or DamageCalculator(rng=rng)
        self.skill_system = skill_system or SkillSystem(rng=rng)
        self.recorder = recorder
        self.danger_threshold = danger_threshold
        self._clock = clock or current_time_ms
        self._log_sequence = itertools.count(1)

        self.track = ArenaTrack()
        self.last_record: Optional[BattleRecord] = None
        self._reset_state()

    def _reset_state(self) -> None:
        self.challenger: Optional[Combatant] = None
        self.opponent: Optional[Combatant] = None
        self.challenger_gems: Optional[CombatantGems] = None
        self.opponent_gems: Optional[CombatantGems] = None
        self._positions = ArenaPositions(LEFT_BOUNDARY_INDEX, RIGHT_BOUNDARY_INDEX)
        self.track.clear()
        self.arena_phase = ArenaPhase.SETUP
        self.current_turn = BattleRole.CHALLENGER
        self._battle_log: list[BattleLogEntry] = []
        self.result: Optional[BattleResult] = None
        self.is_auto_battle = False
        self.turn_count = 0
        self._recorded_attacks = 0

    # ============== Public state ==============

    @property
    def left_position(self) -> int:
        return self._positions.left

    @property
    def right_position(self) -> int:
        return self._positions.right

    @property
    def positions(self) -> ArenaPositions:
        return self._positions

    @property
    def battle_log(self) -> tuple[BattleLogEntry, ...]:
        return tuple(self._battle_log)

    def get_combatant(self, role: BattleRole) -> Optional[Combatant]:
        return self.challenger if role is BattleRole.CHALLENGER else self.opponent

    def get_gems(self, role: BattleRole) -> Optional[CombatantGems]:
        return self.challenger_gems if role is BattleRole.CHALLENGER else self.opponent_gems

    # ============== Selectors ==============

    @property
    def can_move(self) -> bool:
        return self.arena_phase is ArenaPhase.MOVING and self._has_combatants()

    @property
    def can_attack(self) -> bool:
        return self.arena_phase is ArenaPhase.COMBAT and self._has_combatants()

    @property
    def is_finished(self) -> bool:
        return self.arena_phase is ArenaPhase.FINISHED

    @property
    def is_in_combat(self) -> bool:
        return self.arena_phase is ArenaPhase.COMBAT

    @property
    def is_moving(self) -> bool:
        return self.arena_phase is ArenaPhase.MOVING

    @property
    def winner(self) -> Optional[Combatant]:
        if not self.is_finished or self.result is None:
            return None
        if self.result is BattleResult.CHALLENGER_WINS:
            return self.challenger
        return self.opponent

    @property
    def loser(self) -> Optional[Combatant]:
        if not self.is_finished or self.result is None:
            return None
        if self.result is BattleResult.CHALLENGER_WINS:
            return self.opponent
        return self.challenger

    def is_in_danger(self, role: BattleRole) -> bool:
        """True when the combatant's HP fraction is below the danger threshold."""
        combatant = self.get_combatant(role)
        if combatant is None or combatant.max_hp <= 0:
            return False
        return combatant.current_hp / combatant.max_hp < self.danger_threshold

    def get_cooldowns(self, role: BattleRole) -> dict[str, int]:
        """Remaining cooldown per equipped gem id."""
        gems = self.get_gems(role)
        if gems is None:
            return {}
        return gems.get_cooldowns()

    # ============== Actions ==============

    def init_arena(
        self,
        challenger: Combatant,
        opponent: Combatant,
        challenger_gems: Optional[CombatantGems] = None,
        opponent_gems: Optional[CombatantGems] = None,
    ) -> None:
        """Start a new battle between two combatants.

        The challenger is placed on the left boundary cell and acts first,
        the opponent on the right boundary cell. Any previous battle state,
        including auto-battle, is discarded.
        """
        old_phase = self.arena_phase
        self._reset_state()

        self.challenger = challenger
        self.opponent = opponent
        self.challenger_gems = challenger_gems or CombatantGems(challenger.id)
        self.opponent_gems = opponent_gems or CombatantGems(opponent.id)
        self._set_positions(LEFT_BOUNDARY_INDEX, RIGHT_BOUNDARY_INDEX)
        self.arena_phase = self._evaluate_phase()
        self.last_record = None

        if self.recorder is not None:
            self.recorder.start_recording(challenger, opponent)

        self.event_manager.publish(
            BattleStarted(
                turn=0,
                challenger=challenger,
                opponent=opponent,
                left_position=self.left_position,
                right_position=self.right_position,
            ),
            source="ArenaManager"
        )
        if old_phase is not self.arena_phase:
            self.event_manager.publish(
                ArenaPhaseChanged(turn=0, old_phase=old_phase, new_phase=self.arena_phase),
                source="ArenaManager"
            )
        self._emit_log(
            f"Battle started: {challenger.name} (cell {self.left_position}) vs "
            f"{opponent.name} (cell {self.right_position})",
            LogCategory.SYSTEM
        )
        self.event_manager.process_events()

    def execute_move(self) -> Optional[ArenaTurnOutcome]:
        """Move the acting combatant one cell toward the enemy.

        If the enemy is already within the mover's range the move is skipped
        and the mover attacks instead. If the move brings the enemy within
        range, the mover attacks in the same turn.

        Returns:
            The turn outcome, or None outside the MOVING phase
        """
        if not self.can_move:
            return None

        role = self.current_turn
        mover = self.get_combatant(role)
        current_pos = self._positions.of(role)
        enemy_pos = self._positions.of(role.opposite)

        if is_in_range(current_pos, enemy_pos, mover.effective_range):
            return self._finish_turn(role, current_pos, self._resolve_attacks(role))

        target_pos = get_next_position(current_pos, enemy_pos)
        movement = self.skill_system.process_movement_skills(
            self.get_gems(role), current_pos, target_pos, enemy_pos
        )
        self._set_gems(role, movement.card_gems)

        new_pos = movement.final_position
        new_enemy_pos = enemy_pos if movement.enemy_new_position is None else movement.enemy_new_position
        self._set_role_positions(role, new_pos, new_enemy_pos)

        self._add_log(LogEntryType.MOVE, f"[{mover.name}] moves from cell {current_pos} to cell {new_pos}")
        self._publish_moved(role, current_pos, new_pos, "move")
        for skill in movement.skills_activated:
            self._log_skill(role, skill)
        if new_enemy_pos != enemy_pos:
            enemy = self.get_combatant(role.opposite)
            self._add_log(
                LogEntryType.SKILL,
                f"[{enemy.name}] is knocked back from cell {enemy_pos} to cell {new_enemy_pos}"
            )
            self._publish_moved(role.opposite, enemy_pos, new_enemy_pos, "leap_strike")

        attacks: tuple[AttackResult, ...] = ()
        skills = movement.skills_activated
        if is_in_range(new_pos, new_enemy_pos, mover.effective_range):
            attacks, combat_skills = self._resolve_attacks(role)
            skills = skills + combat_skills

        return self._finish_turn(role, current_pos, (attacks, skills))

    def execute_attack(self) -> Optional[AttackResult]:
        """Attack with the acting combatant.

        If the target is out of the attacker's own range (possible when the
        ranges differ), the attacker moves one cell closer instead and the
        turn passes without damage.

        Returns:
            The primary AttackResult, or None if no attack happened
        """
        if not self.can_attack:
            return None

        role = self.current_turn
        attacker = self.get_combatant(role)
        current_pos = self._positions.of(role)
        enemy_pos = self._positions.of(role.opposite)

        if not is_in_range(current_pos, enemy_pos, attacker.effective_range):
            new_pos = get_next_position(current_pos, enemy_pos)
            self._set_role_positions(role, new_pos, enemy_pos)
            self._add_log(LogEntryType.MOVE, f"[{attacker.name}] moves from cell {current_pos} to cell {new_pos}")
            self._publish_moved(role, current_pos, new_pos, "move")
            self._finish_turn(role, current_pos, ((), ()))
            return None

        attacks, skills = self._resolve_attacks(role)
        self._finish_turn(role, current_pos, (attacks, skills))
        return attacks[0]

    def toggle_auto_battle(self) -> bool:
        """Switch auto-battle on or off while a battle is running.

        Returns:
            The auto-battle flag after the call (unchanged in SETUP and FINISHED)
        """
        if self.arena_phase in (ArenaPhase.SETUP, ArenaPhase.FINISHED):
            return self.is_auto_battle

        self.is_auto_battle = not self.is_auto_battle
        self.event_manager.publish(
            AutoBattleToggled(turn=self.turn_count, enabled=self.is_auto_battle),
            source="ArenaManager"
        )
        self._emit_log(
            f"Auto-battle {'enabled' if self.is_auto_battle else 'disabled'}", LogCategory.SYSTEM
        )
        self.event_manager.process_events()
        return self.is_auto_battle

    def reset_arena(self) -> None:
        """Return to the SETUP phase, discarding the battle and any unfinished recording."""
        old_phase = self.arena_phase
        if self.recorder is not None and self.recorder.is_recording():
            self.recorder.reset()
        self._reset_state()
        self.last_record = None

        if old_phase is not ArenaPhase.SETUP:
            self.event_manager.publish(
                ArenaPhaseChanged(turn=0, old_phase=old_phase, new_phase=ArenaPhase.SETUP),
                source="ArenaManager"
            )
        self._emit_log("Arena reset", LogCategory.SYSTEM)
        self.event_manager.process_events()

    # ============== Turn resolution ==============

    def _resolve_attacks(self, role: BattleRole) -> tuple[tuple[AttackResult, ...], tuple[ActivatedSkill, ...]]:
        """Resolve the primary attack, combat skills and any queued follow-up hits.

        Returns:
            The applied attack results in order, and the activated combat skills
        """
        attacker = self.get_combatant(role)
        defender = self.get_combatant(role.opposite)
        attacker_pos = self._positions.of(role)
        defender_pos = self._positions.of(role.opposite)

        result = self.damage_calculator.calculate_attack(attacker, defender)
        combat = self.skill_system.process_combat_skills(
            self.get_gems(role), attacker_pos, defender_pos, result
        )
        self._set_gems(role, combat.card_gems)

        # Execute lowers the defender's HP without dealing extra damage
        if combat.defender_new_hp != result.defender_new_hp:
            result = replace(
                result,
                defender_new_hp=combat.defender_new_hp,
                is_knockout=combat.defender_new_hp == 0,
            )

        results = [result]
        self._apply_attack(role, result, follow_up=False)

        for skill in combat.skills_activated:
            self._log_skill(role, skill)
        self._apply_skill_positions(role, attacker_pos, defender_pos,
                                    combat.attacker_new_position, combat.defender_new_position)

        if self._check_victory(role):
            return tuple(results), combat.skills_activated

        for _queued in combat.queued_attacks:
            attacker = self.get_combatant(role)
            defender = self.get_combatant(role.opposite)
            if defender.is_defeated:
                break
            follow_up = self.damage_calculator.calculate_attack(attacker, defender)
            results.append(follow_up)
            self._apply_attack(role, follow_up, follow_up=True)
            if self._check_victory(role):
                break

        return tuple(results), combat.skills_activated

    def _apply_attack(self, role: BattleRole, result: AttackResult, follow_up: bool) -> None:
        attacker = self.get_combatant(role)
        defender = self.get_combatant(role.opposite)

        if self.recorder is not None and self.recorder.is_recording():
            self._recorded_attacks += 1
            self.recorder.record_turn(
                self._recorded_attacks,
                attacker,
                defender,
                result,
                defender_hp_before=defender.current_hp,
                attacker_hp_before=attacker.current_hp,
            )

        self._set_combatant(role, attacker.apply_as_attacker(result))
        self._set_combatant(role.opposite, defender.apply_as_defender(result))

        self._add_log(
            LogEntryType.ATTACK,
            f"[{attacker.name}] attacks [{defender.name}] for [{result.damage}] damage. "
            f"[{defender.name}] has [{result.defender_new_hp}] HP remaining",
            is_crit=result.damage_result.is_crit,
            lifesteal_amount=result.lifesteal_heal,
        )
        self.event_manager.publish(
            AttackResolved(turn=self.turn_count, role=role, attack_result=result, follow_up=follow_up),
            source="ArenaManager"
        )

    def _apply_skill_positions(
        self,
        role: BattleRole,
        attacker_pos: int,
        defender_pos: int,
        attacker_new_pos: int,
        defender_new_pos: int,
    ) -> None:
        if attacker_new_pos == attacker_pos and defender_new_pos == defender_pos:
            return

        self._set_role_positions(role, attacker_new_pos, defender_new_pos)

        if defender_new_pos != defender_pos:
            defender = self.get_combatant(role.opposite)
            self._add_log(
                LogEntryType.SKILL,
                f"[{defender.name}] is knocked back from cell {defender_pos} to cell {defender_new_pos}"
            )
            self._publish_moved(role.opposite, defender_pos, defender_new_pos, "knockback")
        if attacker_new_pos != attacker_pos:
            attacker = self.get_combatant(role)
            self._add_log(
                LogEntryType.SKILL,
                f"[{attacker.name}] retreats from cell {attacker_pos} to cell {attacker_new_pos}"
            )
            self._publish_moved(role, attacker_pos, attacker_new_pos, "retreat")

    def _check_victory(self, role: BattleRole) -> bool:
        """End the battle in the attacker's favour if the defender is down."""
        defender = self.get_combatant(role.opposite)
        if not defender.is_defeated:
            return False

        winner = self.get_combatant(role)
        self.result = (
            BattleResult.CHALLENGER_WINS if role is BattleRole.CHALLENGER else BattleResult.OPPONENT_WINS
        )
        self._set_phase(ArenaPhase.FINISHED)
        self.is_auto_battle = False

        self._add_log(LogEntryType.VICTORY, f"[{winner.name}] wins the battle!")
        self.event_manager.publish(
            BattleEnded(turn=self.turn_count, result=self.result, winner=winner, loser=defender),
            source="ArenaManager"
        )

        if self.recorder is not None and self.recorder.is_recording():
            self.last_record = self.recorder.finish_recording(winner.id, winner.name)
        return True

    def _finish_turn(
        self,
        role: BattleRole,
        from_position: int,
        resolution: tuple[tuple[AttackResult, ...], tuple[ActivatedSkill, ...]],
    ) -> ArenaTurnOutcome:
        """Tick cooldowns, re-evaluate the phase and pass the turn."""
        attacks, skills = resolution

        self.challenger_gems = self.skill_system.decrement_cooldowns(self.challenger_gems)
        self.opponent_gems = self.skill_system.decrement_cooldowns(self.opponent_gems)

        if not self.is_finished:
            self._set_phase(self._evaluate_phase())
        self.current_turn = role.opposite
        self.turn_count += 1

        self.event_manager.publish(
            TurnEnded(turn=self.turn_count, role=role, attacked=bool(attacks)),
            source="ArenaManager"
        )
        self.event_manager.process_events()

        return ArenaTurnOutcome(
            role=role,
            from_position=from_position,
            to_position=self._positions.of(role),
            attack_results=attacks,
            skills_activated=skills,
            finished=self.is_finished,
        )

    # ============== Helpers ==============

    def _has_combatants(self) -> bool:
        return self.challenger is not None and self.opponent is not None

    def _evaluate_phase(self) -> ArenaPhase:
        return determine_phase(
            self.left_position,
            self.right_position,
            self.challenger.effective_range,
            self.opponent.effective_range,
        )

    def _set_phase(self, new_phase: ArenaPhase) -> None:
        old_phase = self.arena_phase
        if old_phase is new_phase:
            return
        self.arena_phase = new_phase
        self.event_manager.publish(
            ArenaPhaseChanged(turn=self.turn_count, old_phase=old_phase, new_phase=new_phase),
            source="ArenaManager"
        )

    def _set_combatant(self, role: BattleRole, combatant: Combatant) -> None:
        if role is BattleRole.CHALLENGER:
            self.challenger = combatant
        else:
            self.opponent = combatant

    def _set_gems(self, role: BattleRole, gems: CombatantGems) -> None:
        if role is BattleRole.CHALLENGER:
            self.challenger_gems = gems
        else:
            self.opponent_gems = gems

    def _set_positions(self, left: int, right: int) -> None:
        # The track rejects two combatants on one cell
        self.track.place_both(left, right)
        self._positions = ArenaPositions(
            self.track.position_of(BattleRole.CHALLENGER),
            self.track.position_of(BattleRole.OPPONENT),
        )

    def _set_role_positions(self, role: BattleRole, own_position: int, enemy_position: int) -> None:
        if role is BattleRole.CHALLENGER:
            self._set_positions(own_position, enemy_position)
        else:
            self._set_positions(enemy_position, own_position)

    def _log_skill(self, role: BattleRole, skill: ActivatedSkill) -> None:
        combatant = self.get_combatant(role)
        self._add_log(
            LogEntryType.SKILL,
            f"[{combatant.name}] activates {skill.gem_name} ({SKILL_TYPE_NAMES[skill.skill_type]})"
        )
        self.event_manager.publish(
            SkillActivated(turn=self.turn_count, role=role, skill=skill),
            source="ArenaManager"
        )

    def _publish_moved(self, role: BattleRole, from_position: int, to_position: int, reason: str) -> None:
        self.event_manager.publish(
            CombatantMoved(
                turn=self.turn_count,
                role=role,
                combatant=self.get_combatant(role),
                from_position=from_position,
                to_position=to_position,
                reason=reason,
            ),
            source="ArenaManager"
        )

    def _add_log(
        self,
        entry_type: LogEntryType,
        message: str,
        is_crit: Optional[bool] = None,
        lifesteal_amount: Optional[int] = None,
    ) -> None:
        timestamp = self._clock()
        self._battle_log.append(BattleLogEntry(
            id=f"log-{timestamp}-{next(self._log_sequence)}",
            timestamp=timestamp,
            type=entry_type,
            message=message,
            is_crit=is_crit,
            lifesteal_amount=lifesteal_amount,
        ))
        self._emit_log(message, LOG_CATEGORIES[entry_type])

    def _emit_log(self, message: str, category: LogCategory, level: LogLevel = LogLevel.INFO) -> None:
        """Emit a log message event."""
        self.event_manager.publish(
            LogMessage(
                turn=self.turn_count,
                message=message,
                category=category,
                level=level,
                source="ArenaManager",
            ),
            source="ArenaManager",
        )
