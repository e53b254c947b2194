from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..attendance.memory_attendance_repository import InMemoryAttendanceStore
from ..core.enums import AttendanceStatus
from .model import Player, PlayerStats
from .repository import PlayerRepository


class InMemoryPlayerRepository(PlayerRepository):
    def __init__(self, players: Iterable[Player] = (), *, attendance_store: Optional[InMemoryAttendanceStore] = None):
        self._players: dict[str, Player] = {p.player_id: p for p in players}
        self._attendance_store = attendance_store

    def add(self, player: Player) -> None:
        self._players[player.player_id] = player

    def get_by_id(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    def list_by_age_group(self, age_group: str) -> Sequence[Player]:
        items = [p for p in self._players.values() if p.age_group == age_group]
        items.sort(key=lambda p: p.name)
        return items

    def list_stats_for_age_group(self, age_group: str) -> Sequence[PlayerStats]:
        records = self._attendance_store.snapshot() if self._attendance_store else []

        out: list[PlayerStats] = []
        for p in self.list_by_age_group(age_group):
            mine = [r for r in records if r.player_id == p.player_id]
            out.append(
                PlayerStats(
                    player_id=p.player_id,
                    name=p.name,
                    age_group=p.age_group,
                    booked_sessions=p.booked_sessions,
                    attended_sessions=sum(1 for r in mine if r.status.is_present),
                    complimentary_sessions=sum(1 for r in mine if r.status == AttendanceStatus.PRESENT_COMPLIMENTARY),
                    join_date=p.join_date,
                )
            )
        return out
