from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Player, PlayerStats


class PlayerRepository(Protocol):
    def get_by_id(self, player_id: str) -> Optional[Player]:
        raise NotImplementedError

    def list_by_age_group(self, age_group: str) -> Sequence[Player]:
        raise NotImplementedError

    def list_stats_for_age_group(self, age_group: str) -> Sequence[PlayerStats]:
        """Players of one age group with attended/complimentary counts."""

        raise NotImplementedError
