"""Demo coaches, players and today's sessions.

Shared by the in-memory backend and the MySQL seeding helper so both start
from the same data set.
"""

from __future__ import annotations

import uuid
from datetime import date

from ..coaches.model import Coach
from ..core.enums import TimeSlot
from ..players.model import Player
from ..sessions.model import TrainingSession

_NS = uuid.UUID("6f1c2d7e-5b0a-4c3e-9a51-2f8e7d4c1b90")

DEMO_PASSWORD = "password123"


def demo_id(kind: str, name: str) -> str:
    return str(uuid.uuid5(_NS, f"{kind}:{name}"))


_COACHES = [
    ("john_doe", "John Doe", "U-12"),
    ("jane_smith", "Jane Smith", "U-16"),
]

_PLAYERS = [
    ("Alex Johnson", "U-12"),
    ("Emma Wilson", "U-12"),
    ("Liam Brown", "U-12"),
    ("Sophia Davis", "U-12"),
    ("Noah Miller", "U-12"),
    ("Olivia Garcia", "U-16"),
    ("William Rodriguez", "U-16"),
    ("Ava Martinez", "U-16"),
    ("James Anderson", "U-16"),
    ("Isabella Taylor", "U-16"),
]


def demo_coaches(password_hash: str) -> list[Coach]:
    return [
        Coach(
            coach_id=demo_id("coach", username),
            username=username,
            name=name,
            password_hash=password_hash,
            age_group=age_group,
        )
        for username, name, age_group in _COACHES
    ]


def demo_players(join_date: date = date(2024, 9, 1)) -> list[Player]:
    return [
        Player(
            player_id=demo_id("player", name),
            name=name,
            age_group=age_group,
            booked_sessions=12,
            join_date=join_date,
        )
        for name, age_group in _PLAYERS
    ]


def demo_sessions(session_date: date) -> list[TrainingSession]:
    out: list[TrainingSession] = []
    for username, _, age_group in _COACHES:
        for slot in (TimeSlot.MORNING, TimeSlot.EVENING):
            out.append(
                TrainingSession(
                    session_id=demo_id("session", f"{session_date.isoformat()}:{age_group}:{slot.value}"),
                    session_date=session_date,
                    time_slot=slot,
                    age_group=age_group,
                    coach_id=demo_id("coach", username),
                )
            )
    return out
