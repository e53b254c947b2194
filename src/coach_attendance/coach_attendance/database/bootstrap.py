from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from .demo_data import DEMO_PASSWORD, demo_coaches, demo_players, demo_sessions


@dataclass(frozen=True)
class DBTarget:
    host: str
    port: int
    user: str
    password: str
    database: str


def _as_target(db_config: dict) -> DBTarget:
    return DBTarget(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        database=str(db_config.get("database", "coach_attendance_db")),
    )


def _connect(target: DBTarget, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter: handles delimiters inside quotes and mysql-client
    # style DELIMITER directives (trigger bodies contain ';').
    delimiter = ";"
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    for line in sql.splitlines(keepends=True):
        stripped = line.strip()
        if (
            not in_single
            and not in_double
            and not "".join(buf).strip()
            and stripped.upper().startswith("DELIMITER ")
        ):
            delimiter = stripped.split(None, 1)[1]
            buf.clear()
            continue

        i = 0
        while i < len(line):
            ch = line[i]

            if escape:
                buf.append(ch)
                escape = False
                i += 1
                continue

            if ch == "\\":
                buf.append(ch)
                escape = True
                i += 1
                continue

            if ch == "'" and not in_double:
                in_single = not in_single
            elif ch == '"' and not in_single:
                in_double = not in_double
            elif not in_single and not in_double and line.startswith(delimiter, i):
                stmt = "".join(buf).strip()
                buf.clear()
                if stmt:
                    yield stmt
                i += len(delimiter)
                continue

            buf.append(ch)
            i += 1

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _exec_sql(cur, sql: str) -> None:
    for stmt in _iter_sql_statements(sql):
        cur.execute(stmt)


def ensure_database_exists(db_config: dict) -> None:
    target = _as_target(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    target = _as_target(db_config)
    ensure_database_exists(db_config)

    schema_path = Path(schema_path)
    sql = _strip_create_db_and_use(schema_path.read_text(encoding="utf-8"))

    conn = _connect(target)
    try:
        cur = conn.cursor()
        _exec_sql(cur, sql)
        conn.commit()
    finally:
        conn.close()


def ensure_demo_data(db_config: dict, *, today: date) -> None:
    """Upsert demo coaches/players and today's sessions (idempotent)."""

    target = _as_target(db_config)
    password_hash = generate_password_hash(DEMO_PASSWORD)

    conn = _connect(target)
    try:
        cur = conn.cursor()
        for c in demo_coaches(password_hash):
            cur.execute(
                """
                INSERT INTO coaches (coach_id, username, name, password_hash, age_group)
                VALUES (%s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE name=VALUES(name), password_hash=VALUES(password_hash),
                    age_group=VALUES(age_group), is_active=1
                """,
                (c.coach_id, c.username, c.name, c.password_hash, c.age_group),
            )

        for p in demo_players():
            cur.execute(
                """
                INSERT INTO players (player_id, name, age_group, booked_sessions, join_date)
                VALUES (%s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE name=VALUES(name), age_group=VALUES(age_group)
                """,
                (p.player_id, p.name, p.age_group, p.booked_sessions, p.join_date),
            )

        for s in demo_sessions(today):
            cur.execute(
                """
                INSERT IGNORE INTO sessions (session_id, session_date, time_slot, age_group, coach_id)
                VALUES (%s, %s, %s, %s, %s)
                """,
                (s.session_id, s.session_date, s.time_slot.value, s.age_group, s.coach_id),
            )

        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    target = _as_target(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
