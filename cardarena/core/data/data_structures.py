"""Position data structures and helpers for the 1-D arena.

The arena is a single line of ``CELL_COUNT`` cells. A position is a plain
``int`` cell index; every helper here clamps or validates against the
``[LEFT_BOUNDARY_INDEX, RIGHT_BOUNDARY_INDEX]`` bounds so callers never have
to handle out-of-bounds movement themselves.
"""

from dataclasses import dataclass

from .game_enums import (
    ADJACENT_DISTANCE,
    LEFT_BOUNDARY_INDEX,
    RIGHT_BOUNDARY_INDEX,
    ArenaPhase,
    BattleRole,
)

CellIndex = int


def clamp_position(position: int) -> CellIndex:
    """Clamp a position to valid arena bounds [0, 7]."""
    return max(LEFT_BOUNDARY_INDEX, min(RIGHT_BOUNDARY_INDEX, position))


def direction_sign(from_pos: int, to_pos: int) -> int:
    """Get the direction from one position to another.

    Returns:
        1 if target is to the right, -1 if to the left, 0 if same position
    """
    if to_pos > from_pos:
        return 1
    if to_pos < from_pos:
        return -1
    return 0


def get_distance(pos1: CellIndex, pos2: CellIndex) -> int:
    """Distance in cells between two positions."""
    return abs(pos1 - pos2)


def are_adjacent(pos1: CellIndex, pos2: CellIndex) -> bool:
    return get_distance(pos1, pos2) == ADJACENT_DISTANCE


def get_next_position(current_pos: CellIndex, target_pos: CellIndex) -> CellIndex:
    """Step exactly one cell toward the target."""
    if current_pos < target_pos:
        return clamp_position(current_pos + 1)
    return clamp_position(current_pos - 1)


def is_valid_cell_index(value: object) -> bool:
    """Check whether a value is an integer cell index on the arena."""
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and LEFT_BOUNDARY_INDEX <= value <= RIGHT_BOUNDARY_INDEX
    )


def is_boundary_cell(index: CellIndex) -> bool:
    return index in (LEFT_BOUNDARY_INDEX, RIGHT_BOUNDARY_INDEX)


def is_in_range(attacker_pos: CellIndex, target_pos: CellIndex, effective_range: int) -> bool:
    """Check whether a target cell is within an attacker's effective range."""
    return get_distance(attacker_pos, target_pos) <= effective_range


def determine_phase(
    left_pos: CellIndex,
    right_pos: CellIndex,
    left_range: int,
    right_range: int,
) -> ArenaPhase:
    """Determine the arena phase from positions and effective ranges.

    The phase is COMBAT as soon as either combatant can reach the other,
    otherwise MOVING. SETUP and FINISHED are never produced here; they are
    owned by the arena manager.

    Args:
        left_pos: Position of the left (challenger) combatant
        right_pos: Position of the right (opponent) combatant
        left_range: Effective range of the left combatant
        right_range: Effective range of the right combatant

    Returns:
        ArenaPhase.COMBAT or ArenaPhase.MOVING
    """
    distance = get_distance(left_pos, right_pos)
    if distance <= left_range or distance <= right_range:
        return ArenaPhase.COMBAT
    return ArenaPhase.MOVING


@dataclass(frozen=True)
class ArenaPositions:
    """Positions of both combatants, keyed by side.

    The challenger always starts on the left and the opponent on the right,
    so ``left`` belongs to the challenger for the whole battle.
    """
    left: CellIndex = LEFT_BOUNDARY_INDEX
    right: CellIndex = RIGHT_BOUNDARY_INDEX

    @property
    def distance(self) -> int:
        return get_distance(self.left, self.right)

    def of(self, role: BattleRole) -> CellIndex:
        """Get the position of the combatant with the given role."""
        return self.left if role is BattleRole.CHALLENGER else self.right

    def with_position(self, role: BattleRole, position: CellIndex) -> "ArenaPositions":
        """Return a copy with one combatant moved (clamped to the arena)."""
        position = clamp_position(position)
        if role is BattleRole.CHALLENGER:
            return ArenaPositions(position, self.right)
        return ArenaPositions(self.left, position)
