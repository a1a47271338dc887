"""
Integration tests for complete battles.

These tests wire the arena, auto-battle, recorder, history store, replay and
command line entry point together the way the simulator uses them.
"""

import json
import random
import sys

import pytest
from hypothesis import given, settings, strategies as st

from cardarena.core.data import ArenaPhase, BattleResult, BattleRole, LogCategory
from cardarena.core.engine import ManualScheduler
from cardarena.core.events import EventManager
from cardarena.game.battle_config import load_battle_config
from cardarena.game.history import (
    BattleRecord,
    BattleRecorder,
    InMemoryBattleHistoryStore,
    ReplayController,
)
from cardarena.game.managers import ArenaManager, AutoBattleController, LogManager
from cardarena.main import main, run, run_battle

TEMPLATE_IDS = ["knight", "ranger", "berserker", "duelist"]


def assert_record_consistent(record):
    """Every recorded attack lowers the defender by at least its damage."""
    assert len(record.hp_timeline) == record.total_turns + 1
    assert [turn.turn_number for turn in record.turns] == list(range(1, record.total_turns + 1))
    for turn in record.turns:
        hp = turn.defender_hp
        assert hp.defender_hp_after <= max(0, hp.defender_hp_before - turn.damage.final_damage)
        assert hp.is_knockout == (hp.defender_hp_after == 0)
        assert turn.lifesteal.attacker_hp_after <= turn.lifesteal.attacker_max_hp
    last = record.turns[-1]
    assert last.attacker_id == record.winner_id
    assert last.defender_hp.is_knockout


def simulate(challenger_id, opponent_id, seed):
    scheduler = ManualScheduler()
    event_manager = EventManager()
    arena, record = run_battle(
        challenger_id, opponent_id, load_battle_config(), scheduler, event_manager, random.Random(seed)
    )
    return arena, record, scheduler


class TestScriptedBattle:
    """A scripted battle between a strong hero and a weak foe."""

    @pytest.fixture
    def setup(self, fixed_random, step_clock, make_combatant):
        event_manager = EventManager()
        log_manager = LogManager(event_manager)
        recorder = BattleRecorder(clock=step_clock(), id_factory=lambda: "scripted")
        arena = ArenaManager(event_manager=event_manager, recorder=recorder, rng=fixed_random())
        hero = make_combatant("hero", "Hero", max_hp=1000, atk=100)
        foe = make_combatant("foe", "Foe", max_hp=50, atk=10)
        arena.init_arena(hero, foe)
        return arena, log_manager

    def test_manual_battle(self, setup):
        arena, log_manager = setup
        arena.toggle_auto_battle()

        for _ in range(6):
            arena.execute_move()
        arena.execute_attack()

        assert arena.opponent.current_hp == 0
        assert arena.result == BattleResult.CHALLENGER_WINS
        assert arena.arena_phase == ArenaPhase.FINISHED
        assert not arena.is_auto_battle
        assert arena.turn_count == 7

        battle_lines = [record.text for record in log_manager.get_messages(categories={LogCategory.BATTLE})]
        assert battle_lines[-1] == "[Hero] wins the battle!"

        record = arena.last_record
        assert record.total_turns == 2
        assert_record_consistent(record)
        assert BattleRecord.from_json(record.to_json()) == record


class TestTemplateBattles:
    """Full auto-battles between the packaged combatant templates."""

    @pytest.mark.parametrize("challenger_id", TEMPLATE_IDS)
    @pytest.mark.parametrize("opponent_id", TEMPLATE_IDS)
    def test_battle_finishes(self, challenger_id, opponent_id):
        arena, record, scheduler = simulate(challenger_id, opponent_id, seed=3)

        assert arena.is_finished
        assert arena.result in (BattleResult.CHALLENGER_WINS, BattleResult.OPPONENT_WINS)
        assert arena.loser.current_hp == 0
        assert arena.winner.current_hp > 0
        assert not arena.is_auto_battle
        assert scheduler.pending_count == 0
        assert scheduler.current_time == arena.turn_count * 1500
        assert record.winner_id == arena.winner.id
        assert_record_consistent(record)

    def test_same_seed_same_battle(self):
        first_arena, first, _ = simulate("knight", "berserker", seed=11)
        second_arena, second, _ = simulate("knight", "berserker", seed=11)

        assert [entry.message for entry in first_arena.battle_log] == [
            entry.message for entry in second_arena.battle_log
        ]
        assert first.turns == second.turns
        assert first.hp_timeline == second.hp_timeline

    @given(seed=st.integers(min_value=0, max_value=2**32 - 1))
    @settings(max_examples=25, deadline=None)
    def test_any_seed_produces_valid_record(self, seed):
        arena, record, _ = simulate("ranger", "duelist", seed)

        assert arena.is_finished
        assert_record_consistent(record)
        final = record.hp_timeline[-1]
        assert final.challenger_hp == arena.challenger.current_hp
        assert final.opponent_hp == arena.opponent.current_hp

    def test_cooldowns_never_negative(self):
        scheduler = ManualScheduler()
        event_manager = EventManager()
        arena, _ = run_battle(
            "duelist", "berserker", load_battle_config(), scheduler, event_manager, random.Random(5)
        )
        for role in BattleRole:
            assert all(value >= 0 for value in arena.get_cooldowns(role).values())


class TestHistoryAndReplay:
    """Store finished battles and replay them."""

    def test_store_and_replay(self):
        store = InMemoryBattleHistoryStore()
        _, record, scheduler = simulate("knight", "ranger", seed=2)
        store.save_battle(record)

        loaded = store.get_battle_by_id(record.id)
        completions = []
        replay = ReplayController(loaded, scheduler, on_complete=lambda: completions.append(True))
        replay.set_speed(4)
        start = scheduler.current_time
        replay.play()
        scheduler.run_until_idle()

        assert completions == [True]
        assert replay.current_turn == record.total_turns
        assert scheduler.current_time - start == record.total_turns * 1125
        final = record.hp_timeline[-1]
        assert (replay.challenger_hp, replay.opponent_hp) == (final.challenger_hp, final.opponent_hp)

    def test_many_battles_paged(self):
        store = InMemoryBattleHistoryStore()
        for seed in range(4):
            store.save_battle(simulate("berserker", "knight", seed)[1])

        page = store.get_battles(page=1, limit=3)
        assert page.total == 4
        assert page.total_pages == 2


class TestAutoBattleWiring:
    """Auto-battle with a scripted arena."""

    def test_auto_battle_to_victory(self, fixed_random, make_combatant):
        scheduler = ManualScheduler()
        arena = ArenaManager(rng=fixed_random())
        controller = AutoBattleController(arena, scheduler)
        arena.init_arena(
            make_combatant("hero", "Hero", max_hp=100, atk=50),
            make_combatant("foe", "Foe", max_hp=100, atk=10),
        )

        arena.toggle_auto_battle()
        scheduler.run_until_idle()

        assert arena.result == BattleResult.CHALLENGER_WINS
        assert arena.turn_count == 9
        assert scheduler.current_time == 13_500
        assert arena.challenger.current_hp == 80
        assert not controller.is_running


class TestCommandLine:
    """Test the simulator entry point."""

    def test_list_templates(self, capsys):
        assert main(["--list"]) == 0

        out = capsys.readouterr().out
        assert "Knight" in out
        assert "Iron Fist" in out
        assert "leap_strike" in out

    def test_single_battle(self, capsys):
        assert main(["--challenger", "knight", "--opponent", "ranger", "--seed", "4"]) == 0

        out = capsys.readouterr().out
        assert "=== Battle 1: Knight vs Ranger ===" in out
        assert "wins the battle!" in out
        assert "Turns:" in out

    def test_record_written(self, tmp_path, capsys):
        path = tmp_path / "battle.json"

        assert main(["--seed", "1", "--record", str(path)]) == 0

        record = BattleRecord.from_dict(json.loads(path.read_text(encoding="utf-8")))
        assert record.challenger.name == "Knight"
        assert_record_consistent(record)
        assert f"Battle record written to {path}" in capsys.readouterr().out

    def test_several_rounds(self, capsys):
        assert main(["--seed", "8", "--rounds", "3"]) == 0

        out = capsys.readouterr().out
        assert "=== Battle 3:" in out
        assert "=== History: 3 battles ===" in out

    def test_replay(self, capsys):
        assert main(["--seed", "6", "--replay", "--replay-speed", "4"]) == 0

        out = capsys.readouterr().out
        assert "=== Replay (4x) ===" in out
        assert "Replay complete:" in out

    def test_save_log(self, tmp_path, capsys):
        assert main(["--seed", "9", "--save-log", str(tmp_path)]) == 0

        assert len(list(tmp_path.glob("battle_*.log"))) == 1
        assert "Log saved to" in capsys.readouterr().out

    def test_unknown_template(self):
        with pytest.raises(KeyError):
            main(["--challenger", "nobody"])

    def test_run_reports_errors(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["cardarena", "--opponent", "nobody"])

        with pytest.raises(SystemExit) as exc_info:
            run()

        assert exc_info.value.code == 2
        assert "Unknown combatant template: nobody" in capsys.readouterr().err
