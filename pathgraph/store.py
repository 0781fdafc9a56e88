"""
SQLite persistence for learning paths.

Implements the persistence collaborator expected by the engine:
``load(path_id) -> LearningPath`` (or ``NotFoundError``) and ``save(path)``.
The service never calls it on its own; callers commit after each successful
operation.

Provides:
- ``migrate_store``: create ``LearningPaths``, ``LearningNodes`` and
  ``PathConnections`` with indexes.
- ``PathStore``: load / save / delete / list on top of those tables.
"""

import functools
import json
import logging
import os
import sqlite3
import time
from datetime import datetime, timezone
from typing import List

from pathgraph.errors import NotFoundError
from pathgraph.models import Connection, LearningNode, LearningPath

logger = logging.getLogger(__name__)

# =========================================================================
# Schema
# =========================================================================

_CREATE_LEARNING_PATHS = """\
CREATE TABLE IF NOT EXISTS LearningPaths (
    id           TEXT PRIMARY KEY,
    title        TEXT NOT NULL,
    description  TEXT,
    metadata     TEXT,
    updated_at   TIMESTAMP
);
"""

_CREATE_LEARNING_NODES = """\
CREATE TABLE IF NOT EXISTS LearningNodes (
    path_id        TEXT    NOT NULL,
    node_id        TEXT    NOT NULL,
    ordinal        INTEGER NOT NULL,
    title          TEXT    NOT NULL,
    type           TEXT    NOT NULL,
    status         TEXT    CHECK(status IN ('active','completed','locked')),
    prerequisites  TEXT    NOT NULL,
    PRIMARY KEY (path_id, node_id),
    FOREIGN KEY (path_id) REFERENCES LearningPaths(id)
);
"""

_CREATE_PATH_CONNECTIONS = """\
CREATE TABLE IF NOT EXISTS PathConnections (
    path_id       TEXT    NOT NULL,
    from_node_id  TEXT    NOT NULL,
    to_node_id    TEXT    NOT NULL,
    type          TEXT    CHECK(type IN ('prerequisite','optional')),
    ordinal       INTEGER NOT NULL,
    FOREIGN KEY (path_id) REFERENCES LearningPaths(id),
    UNIQUE(path_id, from_node_id, to_node_id)
);
"""

_CREATE_IDX_NODES = """\
CREATE INDEX IF NOT EXISTS idx_nodes_path
    ON LearningNodes(path_id);
"""

_CREATE_IDX_CONNECTIONS = """\
CREATE INDEX IF NOT EXISTS idx_connections_path
    ON PathConnections(path_id);
"""

_SCHEMA = (
    _CREATE_LEARNING_PATHS,
    _CREATE_LEARNING_NODES,
    _CREATE_PATH_CONNECTIONS,
    _CREATE_IDX_NODES,
    _CREATE_IDX_CONNECTIONS,
)


# =========================================================================
# Connection helper
# =========================================================================


def get_connection(db_path: str, timeout: float = 10.0) -> sqlite3.Connection:
    """Open *db_path* in WAL mode with foreign keys enforced.

    Rows come back as ``sqlite3.Row``; the parent directory is created on
    first use.
    """
    os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
    conn = sqlite3.connect(db_path, timeout=timeout)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA foreign_keys=ON;")
    return conn


# =========================================================================
# Migration
# =========================================================================


def migrate_store(db_path: str) -> None:
    """Create (or verify) the learning-path tables + indexes."""
    conn = get_connection(db_path)
    try:
        with conn:
            for statement in _SCHEMA:
                conn.execute(statement)
        logger.info("Path store migration OK at %s", os.path.abspath(db_path))
    finally:
        conn.close()


# =========================================================================
# Lock retry
# =========================================================================

_LOCK_RETRIES = 5
_LOCK_BASE_DELAY = 0.1


def retry_on_lock(method):  # type: ignore[no-untyped-def]
    """Re-run a store write with exponential back-off while SQLite is locked."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        for attempt in range(1, _LOCK_RETRIES + 1):
            try:
                return method(self, *args, **kwargs)
            except sqlite3.OperationalError as exc:
                if "locked" not in str(exc).lower() or attempt == _LOCK_RETRIES:
                    raise
                delay = _LOCK_BASE_DELAY * (2 ** (attempt - 1))
                logger.warning(
                    "%s: store %s locked (attempt %d/%d), retrying in %.2fs",
                    method.__name__, self.db_path, attempt, _LOCK_RETRIES, delay,
                )
                time.sleep(delay)

    return wrapper


# =========================================================================
# Store
# =========================================================================


class PathStore:
    """Load and save whole learning paths in a SQLite database.

    Each call opens its own connection, so a store object can be shared
    freely; concurrent writers to the same path are not coordinated.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        migrate_store(db_path)

    @retry_on_lock
    def save(self, path: LearningPath) -> None:
        """Replace the stored copy of *path* in a single transaction."""
        now = datetime.now(timezone.utc).isoformat()
        conn = get_connection(self.db_path)
        try:
            with conn:
                conn.execute(
                    """INSERT INTO LearningPaths
                           (id, title, description, metadata, updated_at)
                       VALUES (?, ?, ?, ?, ?)
                       ON CONFLICT(id) DO UPDATE SET
                           title = excluded.title,
                           description = excluded.description,
                           metadata = excluded.metadata,
                           updated_at = excluded.updated_at""",
                    (path.id, path.title, path.description,
                     json.dumps(path.metadata, default=str), now),
                )
                conn.execute("DELETE FROM LearningNodes WHERE path_id = ?", (path.id,))
                conn.execute("DELETE FROM PathConnections WHERE path_id = ?", (path.id,))
                conn.executemany(
                    """INSERT INTO LearningNodes
                           (path_id, node_id, ordinal, title, type,
                            status, prerequisites)
                       VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    [
                        (path.id, n.id, i, n.title, n.type, n.status,
                         json.dumps(n.prerequisites))
                        for i, n in enumerate(path.nodes)
                    ],
                )
                conn.executemany(
                    """INSERT INTO PathConnections
                           (path_id, from_node_id, to_node_id, type, ordinal)
                       VALUES (?, ?, ?, ?, ?)""",
                    [
                        (path.id, c.from_id, c.to_id, c.type, i)
                        for i, c in enumerate(path.connections)
                    ],
                )
        finally:
            conn.close()
        logger.debug(
            "Saved path %s (%d node(s), %d connection(s)).",
            path.id, len(path.nodes), len(path.connections),
        )

    def load(self, path_id: str) -> LearningPath:
        """Return the stored path, or raise ``NotFoundError``."""
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT * FROM LearningPaths WHERE id = ?", (path_id,)
            ).fetchone()
            if row is None:
                raise NotFoundError("path", path_id)
            node_rows = conn.execute(
                """SELECT * FROM LearningNodes
                   WHERE path_id = ? ORDER BY ordinal""",
                (path_id,),
            ).fetchall()
            conn_rows = conn.execute(
                """SELECT * FROM PathConnections
                   WHERE path_id = ? ORDER BY ordinal""",
                (path_id,),
            ).fetchall()
        finally:
            conn.close()

        return LearningPath(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            metadata=json.loads(row["metadata"]) if row["metadata"] else {},
            nodes=[
                LearningNode(
                    id=r["node_id"],
                    title=r["title"],
                    type=r["type"],
                    status=r["status"],
                    prerequisites=json.loads(r["prerequisites"]),
                )
                for r in node_rows
            ],
            connections=[
                Connection(from_id=r["from_node_id"], to_id=r["to_node_id"], type=r["type"])
                for r in conn_rows
            ],
        )

    @retry_on_lock
    def delete(self, path_id: str) -> bool:
        """Delete a path and its rows; return ``True`` if it existed."""
        conn = get_connection(self.db_path)
        try:
            with conn:
                conn.execute("DELETE FROM LearningNodes WHERE path_id = ?", (path_id,))
                conn.execute("DELETE FROM PathConnections WHERE path_id = ?", (path_id,))
                cursor = conn.execute("DELETE FROM LearningPaths WHERE id = ?", (path_id,))
            return cursor.rowcount == 1
        finally:
            conn.close()

    def list_ids(self) -> List[str]:
        """Return every stored path id, ordered by id."""
        conn = get_connection(self.db_path)
        try:
            rows = conn.execute("SELECT id FROM LearningPaths ORDER BY id").fetchall()
        finally:
            conn.close()
        return [r["id"] for r in rows]
