"""
Unit tests for battle record types and their JSON wire format.
"""

import json

import pytest

from cardarena.game.history import BattleRecord, CombatantSnapshot


class TestBattleRecord:
    """Test BattleRecord contents and serialization."""

    def test_sample_record_contents(self, sample_record):
        assert sample_record.id == "battle-1"
        assert sample_record.started_at == 1000
        assert sample_record.ended_at == 1400
        assert sample_record.battle_duration_ms == 400
        assert sample_record.total_turns == 3
        assert sample_record.winner_id == "hero"
        assert sample_record.winner_name == "Hero"

    def test_hp_timeline(self, sample_record):
        assert [
            (entry.turn_number, entry.challenger_hp, entry.opponent_hp)
            for entry in sample_record.hp_timeline
        ] == [(0, 100, 100), (1, 100, 70), (2, 90, 70), (3, 90, 40)]

    def test_turn_timestamps(self, sample_record):
        assert [turn.timestamp for turn in sample_record.turns] == [1100, 1200, 1300]

    def test_get_timeline_entry(self, sample_record):
        assert sample_record.get_timeline_entry(2).challenger_hp == 90
        assert sample_record.get_timeline_entry(7) is None

    def test_wire_format_uses_camel_case(self, sample_record):
        data = sample_record.to_dict()

        assert {"id", "startedAt", "endedAt", "battleDurationMs", "winnerId", "winnerName",
                "totalTurns", "turns", "hpTimeline", "challenger", "opponent"} <= set(data)
        assert data["challenger"]["maxHp"] == 100
        assert data["challenger"]["def"] == 0
        assert data["turns"][0]["attackerId"] == "hero"
        assert data["turns"][0]["defenderHp"]["defenderHpAfter"] == 70
        assert data["hpTimeline"][0]["opponentMaxHp"] == 100

    def test_json_round_trip(self, sample_record):
        text = sample_record.to_json()

        assert isinstance(json.loads(text), dict)
        assert BattleRecord.from_json(text) == sample_record

    def test_missing_field_raises(self, sample_record):
        data = sample_record.to_dict()
        del data["winnerId"]

        with pytest.raises(KeyError):
            BattleRecord.from_dict(data)

    def test_records_are_immutable(self, sample_record):
        with pytest.raises(AttributeError):
            sample_record.winner_id = "foe"


class TestCombatantSnapshot:
    """Test combatant snapshots."""

    def test_snapshot_copies_stats(self, make_combatant):
        combatant = make_combatant(max_hp=80, current_hp=60, atk=25, crit_chance=12, lifesteal=5)

        snapshot = CombatantSnapshot.from_combatant(combatant)

        assert snapshot.max_hp == 80
        assert snapshot.current_hp == 60
        assert snapshot.atk == 25
        assert snapshot.crit_chance == 12
        assert snapshot.lifesteal == 5
        assert CombatantSnapshot.from_dict(snapshot.to_dict()) == snapshot
