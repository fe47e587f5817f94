# manages connection to the audit db, provides helper methods internal to db package
import asyncio
import os.path
from contextlib import asynccontextmanager
from sqlite3 import Row
from typing import Optional, Set

import aiosqlite

from utils.logger import get_logger

_logger = get_logger(__name__)

DB_PATH = "data/audit.sqlite"

DB_INIT_SCRIPT = """
CREATE TABLE IF NOT EXISTS order_audit (
    id    INTEGER PRIMARY KEY AUTOINCREMENT,
    ts    TEXT NOT NULL,
    entry TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_order_audit_ts ON order_audit(ts);
"""

_initialized: Set[str] = set()
_init_lock = asyncio.Lock()


async def _init_db(conn: aiosqlite.Connection) -> None:
    await conn.executescript(DB_INIT_SCRIPT)
    await conn.commit()


async def _table_exists(conn: aiosqlite.Connection, table_name: str) -> bool:
    cur = await conn.execute(
        """
        SELECT name
        FROM sqlite_master
        WHERE type = 'table'
          AND name = ?;
        """,
        (table_name,),
    )
    row = await cur.fetchone()
    await cur.close()
    return row is not None


@asynccontextmanager
async def connect(db_path: Optional[str] = None) -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection.

    Ensures the audit schema exists on first use of each database file.
    Falls back to the module level DB_PATH when no path is given.
    """
    path = db_path or DB_PATH
    parent = os.path.dirname(path)
    if parent and not os.path.isdir(parent):
        os.makedirs(parent, exist_ok=True)

    conn = await aiosqlite.connect(path)
    conn.row_factory = Row

    try:
        if path not in _initialized:
            async with _init_lock:
                if path not in _initialized:
                    exists = await _table_exists(conn, "order_audit")
                    if not exists:
                        _logger.info(f"Initializing audit database at {path}...")
                        await _init_db(conn)
                    _initialized.add(path)
        yield conn
    finally:
        await conn.close()
