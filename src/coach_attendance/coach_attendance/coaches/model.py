from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Coach:
    """Domain entity: a coach account scoped to one age group.

    Plain data object (no DB access code).
    """

    coach_id: str
    username: str
    name: str
    password_hash: str
    age_group: str
    is_active: bool = True
