"""
Unit tests for arena position helpers and phase determination.
"""

import pytest
from hypothesis import given, strategies as st

from cardarena.core.data import (
    CELL_COUNT,
    LEFT_BOUNDARY_INDEX,
    RIGHT_BOUNDARY_INDEX,
    ArenaPhase,
    ArenaPositions,
    BattleRole,
    are_adjacent,
    clamp_position,
    determine_phase,
    direction_sign,
    get_distance,
    get_next_position,
    is_boundary_cell,
    is_in_range,
    is_valid_cell_index,
)

cells = st.integers(min_value=LEFT_BOUNDARY_INDEX, max_value=RIGHT_BOUNDARY_INDEX)
ranges = st.integers(min_value=1, max_value=CELL_COUNT)


class TestPositionHelpers:
    """Test the cell index helpers."""

    def test_arena_geometry(self):
        """The arena is eight cells wide."""
        assert CELL_COUNT == 8
        assert LEFT_BOUNDARY_INDEX == 0
        assert RIGHT_BOUNDARY_INDEX == 7

    @pytest.mark.parametrize("position,expected", [(-3, 0), (0, 0), (4, 4), (7, 7), (12, 7)])
    def test_clamp_position(self, position, expected):
        """Positions are clamped into [0, 7]."""
        assert clamp_position(position) == expected

    def test_direction_sign(self):
        """Direction is +1 to the right, -1 to the left, 0 in place."""
        assert direction_sign(2, 5) == 1
        assert direction_sign(5, 2) == -1
        assert direction_sign(3, 3) == 0

    def test_distance_and_adjacency(self):
        """Distance is symmetric and adjacency means distance 1."""
        assert get_distance(1, 6) == 5
        assert get_distance(6, 1) == 5
        assert are_adjacent(3, 4)
        assert not are_adjacent(3, 5)
        assert not are_adjacent(3, 3)

    def test_next_position_steps_one_cell(self):
        """Stepping moves exactly one cell toward the target."""
        assert get_next_position(0, 7) == 1
        assert get_next_position(7, 0) == 6
        assert get_next_position(3, 4) == 4

    def test_next_position_stays_on_track(self):
        """Stepping from a boundary never leaves the track."""
        assert get_next_position(0, 0) == 0

    def test_valid_cell_index(self):
        """Only integer cells on the track are valid."""
        assert is_valid_cell_index(0)
        assert is_valid_cell_index(7)
        assert not is_valid_cell_index(8)
        assert not is_valid_cell_index(-1)
        assert not is_valid_cell_index(2.0)
        assert not is_valid_cell_index(True)
        assert not is_valid_cell_index("3")

    def test_boundary_cells(self):
        """Only the two end cells are boundaries."""
        assert is_boundary_cell(0)
        assert is_boundary_cell(7)
        assert not is_boundary_cell(3)

    def test_is_in_range(self):
        """Range is inclusive of the effective range."""
        assert is_in_range(0, 3, 3)
        assert not is_in_range(0, 4, 3)
        assert is_in_range(5, 4, 1)


class TestDeterminePhase:
    """Test phase determination from positions and ranges."""

    def test_starting_positions_are_moving(self):
        """Melee combatants at opposite ends must close the distance."""
        assert determine_phase(0, 7, 1, 1) == ArenaPhase.MOVING

    def test_adjacent_combatants_are_in_combat(self):
        """Adjacent melee combatants fight."""
        assert determine_phase(3, 4, 1, 1) == ArenaPhase.COMBAT

    def test_either_range_is_enough(self):
        """One long-range combatant puts the arena in combat."""
        assert determine_phase(0, 7, 7, 1) == ArenaPhase.COMBAT
        assert determine_phase(0, 7, 1, 7) == ArenaPhase.COMBAT
        assert determine_phase(0, 7, 6, 6) == ArenaPhase.MOVING

    @given(left=cells, right=cells, left_range=ranges, right_range=ranges)
    def test_phase_rule(self, left, right, left_range, right_range):
        """Combat exactly when the distance is within either range."""
        distance = abs(left - right)
        expected = (
            ArenaPhase.COMBAT
            if distance <= left_range or distance <= right_range
            else ArenaPhase.MOVING
        )
        assert determine_phase(left, right, left_range, right_range) == expected


class TestArenaPositions:
    """Test the ArenaPositions value object."""

    def test_defaults_are_the_boundaries(self):
        """Combatants start on the two boundary cells."""
        positions = ArenaPositions()
        assert positions.left == 0
        assert positions.right == 7
        assert positions.distance == 7

    def test_lookup_by_role(self):
        """The challenger is on the left, the opponent on the right."""
        positions = ArenaPositions(2, 5)
        assert positions.of(BattleRole.CHALLENGER) == 2
        assert positions.of(BattleRole.OPPONENT) == 5

    def test_with_position_is_a_clamped_copy(self):
        """Moving returns a new object with the position clamped."""
        positions = ArenaPositions(2, 5)
        moved = positions.with_position(BattleRole.OPPONENT, 10)

        assert moved == ArenaPositions(2, 7)
        assert positions == ArenaPositions(2, 5)

    def test_role_opposite(self):
        """Each role's opposite is the other role."""
        assert BattleRole.CHALLENGER.opposite is BattleRole.OPPONENT
        assert BattleRole.OPPONENT.opposite is BattleRole.CHALLENGER
