# durable log of order traffic, kept so a failed or disputed order can be traced
# after the session that placed it is gone
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from db.database import connect


@dataclass(frozen=True)
class AuditEntry:
    id: int
    ts: datetime
    entry: str


class OrderAuditLog:
    """
    Append-only audit log stored in sqlite.

    One instance per session; it only remembers which file to write to,
    every call opens its own connection.
    """

    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = db_path

    async def record(self, entry: str, when: Optional[datetime] = None) -> int:
        """Append one entry, returns its row id."""
        when = when or datetime.now(timezone.utc)
        async with connect(self.db_path) as conn:
            cur = await conn.execute(
                "INSERT INTO order_audit(ts, entry) VALUES (?, ?);",
                (when.isoformat(), entry),
            )
            row_id = cur.lastrowid
            await cur.close()
            await conn.commit()
        return row_id

    async def recent(self, limit: Optional[int] = None) -> List[AuditEntry]:
        """Entries oldest first; with a limit, only the newest `limit` of them."""
        async with connect(self.db_path) as conn:
            if limit is None:
                cur = await conn.execute(
                    "SELECT id, ts, entry FROM order_audit ORDER BY id;"
                )
            else:
                cur = await conn.execute(
                    """
                    SELECT id, ts, entry
                    FROM (SELECT id, ts, entry FROM order_audit ORDER BY id DESC LIMIT ?)
                    ORDER BY id;
                    """,
                    (limit,),
                )
            rows = await cur.fetchall()
            await cur.close()
        return [
            AuditEntry(id=row[0], ts=datetime.fromisoformat(row[1]), entry=row[2])
            for row in rows
        ]

