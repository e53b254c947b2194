from __future__ import annotations

from typing import Optional, Protocol

from .model import Coach


class CoachRepository(Protocol):
    """Repository interface for Coach.

    Services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, coach_id: str) -> Optional[Coach]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[Coach]:
        raise NotImplementedError
