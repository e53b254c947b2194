from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from werkzeug.security import generate_password_hash

from .attendance.memory_attendance_repository import InMemoryAttendanceRepository, InMemoryAttendanceStore
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .coaches.memory_coach_repository import InMemoryCoachRepository
from .coaches.mysql_coach_repository import MySQLCoachRepository
from .coaches.repository import CoachRepository
from .coaches.service import AuthService
from .core.constants import DEFAULT_LOCK_TIMEOUT_SECONDS, DEFAULT_PHOTO_MAX_BYTES
from .dashboard.service import DashboardService
from .database.connection import DBConfig, DatabaseConnection
from .database.demo_data import DEMO_PASSWORD, demo_coaches, demo_players, demo_sessions
from .photos.storage import LocalPhotoStorage, PhotoStorage, S3PhotoStorage
from .players.memory_player_repository import InMemoryPlayerRepository
from .players.mysql_player_repository import MySQLPlayerRepository
from .players.repository import PlayerRepository
from .reports.service import AttendanceExportService
from .sessions.memory_session_repository import InMemorySessionRepository
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository


@dataclass(frozen=True)
class Container:
    coaches_repo: CoachRepository
    players_repo: PlayerRepository
    sessions_repo: SessionRepository
    attendance_repo: AttendanceRepository
    photo_storage: Optional[PhotoStorage]

    auth_service: AuthService
    attendance_service: AttendanceService
    dashboard_service: DashboardService
    export_service: AttendanceExportService


def build_photo_storage(photo_config: Optional[dict]) -> Optional[PhotoStorage]:
    cfg = photo_config or {}
    backend = str(cfg.get("backend") or "none").lower()
    max_bytes = int(cfg.get("max_bytes") or DEFAULT_PHOTO_MAX_BYTES)

    if backend == "s3":
        return S3PhotoStorage(
            bucket_name=str(cfg["bucket_name"]),
            endpoint_url=cfg.get("endpoint_url"),
            access_key=cfg.get("access_key"),
            secret_key=cfg.get("secret_key"),
            public_domain=cfg.get("public_domain"),
            max_bytes=max_bytes,
        )
    if backend == "local":
        return LocalPhotoStorage(
            directory=cfg.get("local_directory") or "instance/photos",
            base_url=cfg.get("local_base_url") or "/photos",
            max_bytes=max_bytes,
        )
    if backend == "none":
        return None
    raise ValueError(f"Unknown photo storage backend: {backend!r}")


def _assemble(
    *,
    coaches_repo: CoachRepository,
    players_repo: PlayerRepository,
    sessions_repo: SessionRepository,
    attendance_repo: AttendanceRepository,
    photo_storage: Optional[PhotoStorage],
    attendance_config: dict,
) -> Container:
    attendance_service = AttendanceService(
        attendance_repo,
        sessions_repo,
        photo_storage,
        batch_size=int(attendance_config.get("batch_size", 50)),
        complimentary_limit=int(attendance_config.get("complimentary_limit", 3)),
        retry_attempts=int(attendance_config.get("retry_attempts", 3)),
        strict_quota_lock=bool(attendance_config.get("strict_quota_lock", False)),
    )

    return Container(
        coaches_repo=coaches_repo,
        players_repo=players_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        photo_storage=photo_storage,
        auth_service=AuthService(coaches_repo),
        attendance_service=attendance_service,
        dashboard_service=DashboardService(players_repo, sessions_repo),
        export_service=AttendanceExportService(players_repo),
    )


def build_container(
    *,
    db_config: dict,
    attendance_config: Optional[dict] = None,
    photo_config: Optional[dict] = None,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return _assemble(
        coaches_repo=MySQLCoachRepository(conn),
        players_repo=MySQLPlayerRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        photo_storage=build_photo_storage(photo_config),
        attendance_config=attendance_config or {},
    )


def build_memory_container(
    *,
    today: date,
    seed: bool = True,
    attendance_config: Optional[dict] = None,
    photo_config: Optional[dict] = None,
    photo_storage: Optional[PhotoStorage] = None,
) -> Container:
    """Everything in process; ``seed`` loads the demo coaches, players and today's sessions."""

    attendance_config = attendance_config or {}
    coaches_repo = InMemoryCoachRepository(demo_coaches(generate_password_hash(DEMO_PASSWORD)) if seed else ())
    sessions_repo = InMemorySessionRepository(demo_sessions(today) if seed else ())
    store = InMemoryAttendanceStore()
    attendance_repo = InMemoryAttendanceRepository(
        store,
        sessions=sessions_repo,
        lock_timeout=float(attendance_config.get("lock_timeout", DEFAULT_LOCK_TIMEOUT_SECONDS)),
    )
    players_repo = InMemoryPlayerRepository(demo_players() if seed else (), attendance_store=store)

    return _assemble(
        coaches_repo=coaches_repo,
        players_repo=players_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        photo_storage=photo_storage or build_photo_storage(photo_config),
        attendance_config=attendance_config,
    )
