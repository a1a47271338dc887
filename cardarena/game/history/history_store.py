"""Battle history persistence interface.

The battle core only produces and consumes BattleRecords; storage belongs to
an external collaborator. ``BattleHistoryStore`` describes the interface that
collaborator offers. ``InMemoryBattleHistoryStore`` keeps records as JSON
text, exercising the same wire format a remote store would receive.
"""

import math
from dataclasses import dataclass
from typing import Optional, Protocol

from .records import BattleRecord


@dataclass(frozen=True)
class PaginatedBattles:
    """One page of stored battles, newest first."""
    data: tuple[BattleRecord, ...]
    total: int
    page: int
    total_pages: int


class BattleHistoryStore(Protocol):
    """Storage for finished battles."""

    def save_battle(self, record: BattleRecord) -> BattleRecord:
        ...

    def get_battles(self, page: int = 1, limit: int = 10) -> PaginatedBattles:
        ...

    def get_battle_by_id(self, battle_id: str) -> Optional[BattleRecord]:
        ...

    def delete_battle(self, battle_id: str) -> None:
        ...


class InMemoryBattleHistoryStore:
    """Battle history kept in memory as serialized JSON."""

    def __init__(self):
        self._battles: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._battles)

    def save_battle(self, record: BattleRecord) -> BattleRecord:
        """Store a record, replacing any record with the same id."""
        self._battles[record.id] = record.to_json()
        return record

    def get_battles(self, page: int = 1, limit: int = 10) -> PaginatedBattles:
        """Get one page of battles sorted by start time, newest first.

        Raises:
            ValueError: If page or limit is below 1
        """
        if page < 1 or limit < 1:
            raise ValueError(f"Invalid pagination: page={page}, limit={limit}")

        records = sorted(
            (BattleRecord.from_json(text) for text in self._battles.values()),
            key=lambda record: record.started_at,
            reverse=True,
        )
        start = (page - 1) * limit
        return PaginatedBattles(
            data=tuple(records[start:start + limit]),
            total=len(records),
            page=page,
            total_pages=math.ceil(len(records) / limit),
        )

    def get_battle_by_id(self, battle_id: str) -> Optional[BattleRecord]:
        text = self._battles.get(battle_id)
        if text is None:
            return None
        return BattleRecord.from_json(text)

    def delete_battle(self, battle_id: str) -> None:
        """Remove a record; unknown ids are ignored."""
        self._battles.pop(battle_id, None)
