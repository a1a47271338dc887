"""
The 1-D battle track.

This module keeps the cell occupancy of the arena as a numpy array so that
position updates can be checked in one place: a combatant may never move onto
a cell the other combatant occupies. It also provides vectorized cell masks
used for range highlighting and a compact text rendering of the track.
"""

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from ..core.data import CELL_COUNT, BattleRole, clamp_position

# Occupancy values
EMPTY_CELL = -1
ROLE_INDEX = {BattleRole.CHALLENGER: 0, BattleRole.OPPONENT: 1}


@dataclass
class ArenaTrack:
    """Cell occupancy of the arena line.

    ``occupancy[i]`` holds the role index of the combatant on cell ``i``
    (0 challenger, 1 opponent) or -1 for an empty cell.
    """
    cell_count: int = CELL_COUNT
    occupancy: np.ndarray = field(init=False)

    def __post_init__(self):
        self.occupancy = np.full(self.cell_count, EMPTY_CELL, dtype=np.int8)

    def clear(self) -> None:
        self.occupancy.fill(EMPTY_CELL)

    def position_of(self, role: BattleRole) -> int:
        """Get the cell of a combatant.

        Raises:
            KeyError: If the combatant is not on the track
        """
        cells = np.flatnonzero(self.occupancy == ROLE_INDEX[role])
        if cells.size == 0:
            raise KeyError(f"{role.value} is not placed on the track")
        return int(cells[0])

    def is_occupied(self, cell: int) -> bool:
        return bool(self.occupancy[cell] != EMPTY_CELL)

    def place(self, role: BattleRole, cell: int) -> int:
        """Put a combatant on a cell, moving it if already placed.

        Positions are clamped to the track.

        Returns:
            The cell the combatant now occupies

        Raises:
            ValueError: If the other combatant occupies the cell
        """
        cell = clamp_position(cell)
        role_index = ROLE_INDEX[role]
        occupant = int(self.occupancy[cell])
        if occupant not in (EMPTY_CELL, role_index):
            raise ValueError(f"Cell {cell} is already occupied; {role.value} cannot move there")

        self.occupancy[self.occupancy == role_index] = EMPTY_CELL
        self.occupancy[cell] = role_index
        return cell

    def place_both(self, left: int, right: int) -> None:
        """Set both positions at once (used when skills move both combatants)."""
        left = clamp_position(left)
        right = clamp_position(right)
        if left == right:
            raise ValueError(f"Both combatants cannot occupy cell {left}")
        self.clear()
        self.occupancy[left] = ROLE_INDEX[BattleRole.CHALLENGER]
        self.occupancy[right] = ROLE_INDEX[BattleRole.OPPONENT]

    def get_occupied_mask(self) -> NDArray[np.bool_]:
        return self.occupancy != EMPTY_CELL

    def get_range_mask(self, role: BattleRole, effective_range: int) -> NDArray[np.bool_]:
        """Cells within ``effective_range`` of a combatant, excluding its own cell."""
        origin = self.position_of(role)
        distances = np.abs(np.arange(self.cell_count) - origin)
        return (distances > 0) & (distances <= effective_range)

    def render(self, challenger_symbol: str = "C", opponent_symbol: str = "O") -> str:
        """Render the track as text, e.g. ``[C . . . . . . O]``."""
        symbols = {
            EMPTY_CELL: ".",
            ROLE_INDEX[BattleRole.CHALLENGER]: challenger_symbol,
            ROLE_INDEX[BattleRole.OPPONENT]: opponent_symbol,
        }
        return "[" + " ".join(symbols[int(value)] for value in self.occupancy) + "]"
