"""
Shared test fixtures for the card arena test suite.

Provides deterministic random sources, combatant and gem factories, and a
small recorded battle for history and replay tests.
"""

import sys
import os
import pytest

# Add the project root to the Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from cardarena.core.data import SKILL_TRIGGERS, SKILL_TYPE_NAMES
from cardarena.core.engine import ManualScheduler
from cardarena.core.events import EventManager
from cardarena.game.combat import DamageCalculator
from cardarena.game.entities import CombatStats, Combatant, Gem, create_effect
from cardarena.game.history import BattleRecorder


class FixedRandom:
    """Random source that replays a fixed sequence, repeating the last value."""

    def __init__(self, values=(0.99,)):
        self.values = list(values)
        self.calls = 0

    def random(self) -> float:
        value = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        return value


class StepClock:
    """Millisecond clock that advances by a fixed step on every read."""

    def __init__(self, start: int = 1_000, step: int = 100):
        self.now = start - step
        self.step = step

    def __call__(self) -> int:
        self.now += self.step
        return self.now


def build_combatant(
    id="hero",
    name="Hero",
    max_hp=100,
    current_hp=None,
    atk=10,
    def_=0,
    crit_chance=0,
    crit_damage=150,
    armor_pen=0,
    lifesteal=0,
    effective_range=1,
):
    return Combatant(
        id=id,
        name=name,
        max_hp=max_hp,
        current_hp=max_hp if current_hp is None else current_hp,
        stats=CombatStats(
            atk=atk,
            def_=def_,
            crit_chance=crit_chance,
            crit_damage=crit_damage,
            armor_pen=armor_pen,
            lifesteal=lifesteal,
        ),
        effective_range=effective_range,
    )


def build_gem(skill_type, gem_id=None, chance=100, cooldown=0, trigger=None, params=None):
    return Gem(
        id=gem_id or skill_type.value,
        name=f"{SKILL_TYPE_NAMES[skill_type]} Gem",
        trigger=trigger or SKILL_TRIGGERS[skill_type],
        activation_chance=chance,
        cooldown=cooldown,
        effect=create_effect(skill_type, params),
    )


def build_record(turn_count: int = 3):
    """Record a battle where Hero (30 ATK) and Foe (10 ATK) alternate hits.

    Hero wins once Foe reaches 0 HP; turn_count is capped by that.
    """
    hero = build_combatant("hero", "Hero", max_hp=100, atk=30)
    foe = build_combatant("foe", "Foe", max_hp=100, atk=10)
    recorder = BattleRecorder(clock=StepClock(), id_factory=lambda: "battle-1")
    calculator = DamageCalculator(rng=FixedRandom())

    recorder.start_recording(hero, foe)
    for turn_number in range(1, turn_count + 1):
        hero_attacks = turn_number % 2 == 1
        attacker, defender = (hero, foe) if hero_attacks else (foe, hero)
        result = calculator.calculate_attack(attacker, defender)
        recorder.record_turn(
            turn_number, attacker, defender, result,
            defender_hp_before=defender.current_hp,
            attacker_hp_before=attacker.current_hp,
        )
        attacker = attacker.apply_as_attacker(result)
        defender = defender.apply_as_defender(result)
        hero, foe = (attacker, defender) if hero_attacks else (defender, attacker)
        if hero.is_defeated or foe.is_defeated:
            break

    winner = foe if hero.is_defeated else hero
    return recorder.finish_recording(winner.id, winner.name)


@pytest.fixture
def event_manager():
    """Create an event manager for testing."""
    return EventManager(enable_debug_logging=False)


@pytest.fixture
def scheduler():
    """Create a manual scheduler at time 0."""
    return ManualScheduler()


@pytest.fixture
def fixed_random():
    """Factory for deterministic random sources."""
    return FixedRandom


@pytest.fixture
def step_clock():
    """Factory for stepping millisecond clocks."""
    return StepClock


@pytest.fixture
def make_combatant():
    """Factory for combatants with simple stats (no crits by default)."""
    return build_combatant


@pytest.fixture
def make_gem():
    """Factory for gems with a 100% activation chance by default."""
    return build_gem


@pytest.fixture
def sample_record():
    """A finished three-turn battle record."""
    return build_record(3)


@pytest.fixture
def make_record():
    """Factory for recorded battles of a given length."""
    return build_record
