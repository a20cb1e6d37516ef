# =============================================================================
# scentbox_core/offline/local_database.py
# Local SQLite store for offline catalog browsing
# =============================================================================
"""
LocalDatabase - SQLite-based local store that mirrors the remote catalog.

Features:
- Automatic schema creation
- Catalog upsert with find-or-create of brands and notes by name
- Deterministic paginated scans and case-insensitive search
- Per-user status records with a pending-sync flag
- One write lock + one transaction per batch (no duplicate brands/notes
  when several items introduce the same name at once)
"""

from __future__ import annotations
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import pandas as pd

from scentbox_core.domain import (
    NOTE_ROLES,
    Brand,
    CatalogItem,
    Note,
    PerfumeFilter,
    UserStatus,
    UserStatusRecord,
    decode_status,
    encode_status,
)
from scentbox_core.errors import StorageError
from scentbox_core.logging import get_logger

logger = get_logger(__name__)

MEMORY = ":memory:"

# Owner of status changes made while signed out; adopted on the next sign-in
ANONYMOUS_USER_ID = "local"


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


def _to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _from_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


class LocalDatabase:
    """
    Local SQLite store for catalog items, brands, notes and user statuses.

    A single connection is shared by all threads and every access goes
    through ``_lock``, so the store is one sequential execution context
    per database file.
    """

    DEFAULT_DB_PATH = Path(__file__).parent.parent.parent / "local_data" / "scentbox.db"

    # Ordering keys accepted by find_page/search_page
    ORDER_KEYS = ("name", "performance", "created")

    SCHEMA = {
        "brands": """
            CREATE TABLE IF NOT EXISTS brands (
                name TEXT PRIMARY KEY,
                country TEXT,
                updated_at TEXT
            )
        """,
        "notes": """
            CREATE TABLE IF NOT EXISTS notes (
                name TEXT PRIMARY KEY,
                category TEXT,
                updated_at TEXT
            )
        """,
        "catalog_items": """
            CREATE TABLE IF NOT EXISTS catalog_items (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL CHECK (length(trim(name)) > 0),
                brand_name TEXT REFERENCES brands(name),
                concentration TEXT,
                longevity TEXT,
                sillage TEXT,
                performance REAL NOT NULL DEFAULT 0,
                description TEXT,
                image_url TEXT,
                created_at TEXT,
                cached_at TEXT
            )
        """,
        "item_notes": """
            CREATE TABLE IF NOT EXISTS item_notes (
                item_id TEXT NOT NULL REFERENCES catalog_items(id) ON DELETE CASCADE,
                role TEXT NOT NULL CHECK (role IN ('top', 'mid', 'base')),
                note_name TEXT NOT NULL REFERENCES notes(name),
                position INTEGER NOT NULL,
                PRIMARY KEY (item_id, role, note_name)
            )
        """,
        "item_occasions": """
            CREATE TABLE IF NOT EXISTS item_occasions (
                item_id TEXT NOT NULL REFERENCES catalog_items(id) ON DELETE CASCADE,
                occasion TEXT NOT NULL,
                position INTEGER NOT NULL,
                PRIMARY KEY (item_id, occasion)
            )
        """,
        "user_statuses": """
            CREATE TABLE IF NOT EXISTS user_statuses (
                user_id TEXT NOT NULL,
                item_id TEXT NOT NULL REFERENCES catalog_items(id) ON DELETE CASCADE,
                status TEXT NOT NULL,
                created_at TEXT NOT NULL,
                personal_notes TEXT,
                pending_sync INTEGER NOT NULL DEFAULT 0,
                updated_at TEXT,
                PRIMARY KEY (user_id, item_id)
            )
        """,
    }

    INDEXES = (
        "CREATE INDEX IF NOT EXISTS idx_items_name ON catalog_items(name COLLATE NOCASE)",
        "CREATE INDEX IF NOT EXISTS idx_items_performance ON catalog_items(performance)",
        "CREATE INDEX IF NOT EXISTS idx_items_brand ON catalog_items(brand_name)",
        "CREATE INDEX IF NOT EXISTS idx_item_notes_note ON item_notes(note_name)",
        "CREATE INDEX IF NOT EXISTS idx_statuses_pending ON user_statuses(user_id, pending_sync)",
    )

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        """
        Initialize local database.

        Args:
            db_path: Path to SQLite database file, or ":memory:"
        """
        if db_path is None:
            db_path = self.DEFAULT_DB_PATH
        self.db_path = db_path if str(db_path) == MEMORY else Path(db_path)
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()
        self._batch_depth = 0
        self._initialized = False

    def _ensure_directory(self) -> None:
        """Ensure database directory exists."""
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get the shared database connection."""
        if self._connection is None:
            self._ensure_directory()
            try:
                conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            except sqlite3.Error as e:
                raise StorageError(f"Cannot open local database: {e}") from e
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            conn.create_function("casefold", 1, _casefold, deterministic=True)
            self._connection = conn
        return self._connection

    @contextmanager
    def write_batch(self) -> Iterator[sqlite3.Connection]:
        """
        Serialized write transaction.

        Nested batches join the outermost one; only the outermost commits.
        Any failure rolls the whole batch back and sqlite errors surface as
        StorageError.
        """
        with self._lock:
            conn = self._get_connection()
            outermost = self._batch_depth == 0
            self._batch_depth += 1
            try:
                yield conn
                if outermost:
                    conn.commit()
            except sqlite3.Error as e:
                if outermost:
                    conn.rollback()
                raise StorageError(f"Local write failed: {e}") from e
            except Exception:
                if outermost:
                    conn.rollback()
                raise
            finally:
                self._batch_depth -= 1

    def _query(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        with self._lock:
            try:
                return self._get_connection().execute(sql, list(params)).fetchall()
            except sqlite3.Error as e:
                raise StorageError(f"Local read failed: {e}") from e

    def initialize(self) -> None:
        """Initialize database schema."""
        if self._initialized:
            return

        with self.write_batch() as conn:
            for table_name, schema in self.SCHEMA.items():
                conn.execute(schema)
                logger.debug(f"Created/verified table: {table_name}")
            for index in self.INDEXES:
                conn.execute(index)

        self._initialized = True
        logger.info(f"Local database initialized at: {self.db_path}")

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
                self._initialized = False

    # =========================================================================
    # FIND-OR-CREATE (natural keys)
    # =========================================================================

    def find_or_create_brand(self, name: str, country: Optional[str] = None) -> Brand:
        """Return the brand with this name, refreshing its country, or create it."""
        now = datetime.now().isoformat()
        with self.write_batch() as conn:
            row = conn.execute("SELECT name FROM brands WHERE name = ?", [name]).fetchone()
            if row is not None:
                conn.execute(
                    "UPDATE brands SET country = ?, updated_at = ? WHERE name = ?",
                    [country, now, name],
                )
            else:
                conn.execute(
                    "INSERT INTO brands (name, country, updated_at) VALUES (?, ?, ?)",
                    [name, country, now],
                )
        return Brand(name=name, country=country)

    def find_or_create_note(self, name: str, category: Optional[str] = None) -> Note:
        """Return the note with this name, refreshing its category, or create it."""
        now = datetime.now().isoformat()
        with self.write_batch() as conn:
            row = conn.execute("SELECT name FROM notes WHERE name = ?", [name]).fetchone()
            if row is not None:
                conn.execute(
                    "UPDATE notes SET category = ?, updated_at = ? WHERE name = ?",
                    [category, now, name],
                )
            else:
                conn.execute(
                    "INSERT INTO notes (name, category, updated_at) VALUES (?, ?, ?)",
                    [name, category, now],
                )
        return Note(name=name, category=category)

    # =========================================================================
    # CATALOG WRITES
    # =========================================================================

    def upsert(self, item: CatalogItem) -> None:
        """
        Insert or update a catalog item by id.

        Scalars are overwritten; brand and note links are re-resolved by
        name so shared records are never duplicated.
        """
        with self.write_batch() as conn:
            brand_name = None
            if item.brand is not None:
                brand_name = self.find_or_create_brand(item.brand.name, item.brand.country).name

            values = [
                item.name,
                brand_name,
                item.concentration,
                item.longevity,
                item.sillage,
                float(item.performance or 0.0),
                item.description,
                item.image_url,
                _to_iso(item.created_at),
                datetime.now().isoformat(),
            ]

            exists = conn.execute("SELECT 1 FROM catalog_items WHERE id = ?", [item.id]).fetchone()
            if exists:
                conn.execute(
                    """
                    UPDATE catalog_items
                    SET name = ?, brand_name = ?, concentration = ?, longevity = ?,
                        sillage = ?, performance = ?, description = ?, image_url = ?,
                        created_at = ?, cached_at = ?
                    WHERE id = ?
                    """,
                    values + [item.id],
                )
            else:
                conn.execute(
                    """
                    INSERT INTO catalog_items
                        (name, brand_name, concentration, longevity, sillage,
                         performance, description, image_url, created_at, cached_at, id)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    values + [item.id],
                )

            conn.execute("DELETE FROM item_notes WHERE item_id = ?", [item.id])
            for role in NOTE_ROLES:
                for position, note in enumerate(item.notes_for(role)):
                    self.find_or_create_note(note.name, note.category)
                    conn.execute(
                        """
                        INSERT OR IGNORE INTO item_notes (item_id, role, note_name, position)
                        VALUES (?, ?, ?, ?)
                        """,
                        [item.id, role, note.name, position],
                    )

            conn.execute("DELETE FROM item_occasions WHERE item_id = ?", [item.id])
            for position, occasion in enumerate(item.occasions):
                conn.execute(
                    "INSERT OR IGNORE INTO item_occasions (item_id, occasion, position) VALUES (?, ?, ?)",
                    [item.id, occasion, position],
                )

    def upsert_many(self, items: Iterable[CatalogItem]) -> int:
        """Upsert several items in one transaction."""
        count = 0
        with self.write_batch():
            for item in items:
                self.upsert(item)
                count += 1
        return count

    # =========================================================================
    # CATALOG READS
    # =========================================================================

    def _filter_clauses(
        self,
        filter: Optional[PerfumeFilter],
        search: Optional[str],
    ) -> Tuple[List[str], List[Any]]:
        clauses: List[str] = []
        params: List[Any] = []

        if search:
            clauses.append("instr(casefold(ci.name), ?) > 0")
            params.append(search.casefold())

        if filter is None or filter.is_empty:
            return clauses, params

        if filter.brand_name is not None:
            clauses.append("ci.brand_name = ?")
            params.append(filter.brand_name)
        if filter.concentration is not None:
            clauses.append("ci.concentration = ?")
            params.append(filter.concentration)
        if filter.longevity is not None:
            clauses.append("casefold(ci.longevity) = ?")
            params.append(filter.longevity.casefold())
        if filter.sillage is not None:
            clauses.append("casefold(ci.sillage) = ?")
            params.append(filter.sillage.casefold())
        if filter.note_names:
            names = sorted({n.casefold() for n in filter.note_names})
            clauses.append(
                "EXISTS (SELECT 1 FROM item_notes n WHERE n.item_id = ci.id "
                f"AND casefold(n.note_name) IN ({', '.join('?' for _ in names)}))"
            )
            params.extend(names)
        if filter.occasions:
            tags = sorted({o.casefold() for o in filter.occasions})
            clauses.append(
                "EXISTS (SELECT 1 FROM item_occasions o WHERE o.item_id = ci.id "
                f"AND casefold(o.occasion) IN ({', '.join('?' for _ in tags)}))"
            )
            params.extend(tags)
        if filter.min_rating is not None:
            clauses.append("ci.performance >= ?")
            params.append(float(filter.min_rating))
        if filter.max_rating is not None:
            clauses.append("ci.performance <= ?")
            params.append(float(filter.max_rating))

        return clauses, params

    def _order_clause(self, order_by: str, descending: bool) -> str:
        if order_by not in self.ORDER_KEYS:
            raise ValueError(f"Unknown ordering key: {order_by}")
        direction = "DESC" if descending else "ASC"
        if order_by == "name":
            return f"ci.name COLLATE NOCASE {direction}, ci.name {direction}, ci.id ASC"
        if order_by == "performance":
            return f"ci.performance {direction}, ci.id ASC"
        # Remote creation time first, then local insertion order
        return f"ci.created_at IS NULL, ci.created_at {direction}, ci.rowid {direction}, ci.id ASC"

    def _select_items(
        self,
        order_by: str,
        descending: bool,
        offset: int,
        limit: int,
        filter: Optional[PerfumeFilter] = None,
        search: Optional[str] = None,
    ) -> List[CatalogItem]:
        if offset < 0 or limit < 0:
            raise ValueError("offset and limit must not be negative")

        clauses, params = self._filter_clauses(filter, search)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        sql = f"""
            SELECT ci.*, b.country AS brand_country
            FROM catalog_items ci
            LEFT JOIN brands b ON b.name = ci.brand_name
            {where}
            ORDER BY {self._order_clause(order_by, descending)}
            LIMIT ? OFFSET ?
        """
        rows = self._query(sql, params + [limit, offset])
        return self._hydrate(rows)

    def find_page(
        self,
        order_by: str = "name",
        offset: int = 0,
        limit: int = 20,
        descending: bool = False,
        filter: Optional[PerfumeFilter] = None,
    ) -> List[CatalogItem]:
        """
        One page of the catalog in a deterministic order.

        Args:
            order_by: "name", "performance" or "created"
            offset: Rows to skip
            limit: Maximum rows to return
            descending: Reverse the ordering key (id tie-break stays ascending)
            filter: Optional catalog filter, applied in SQL

        Returns:
            List of CatalogItem
        """
        return self._select_items(order_by, descending, offset, limit, filter=filter)

    def search_page(
        self,
        substring: str,
        offset: int = 0,
        limit: int = 20,
        order_by: str = "name",
        descending: bool = False,
        filter: Optional[PerfumeFilter] = None,
    ) -> List[CatalogItem]:
        """Case-insensitive substring search on item names, paginated like find_page."""
        return self._select_items(order_by, descending, offset, limit, filter=filter, search=substring)

    def get_item(self, item_id: str) -> Optional[CatalogItem]:
        rows = self._query(
            """
            SELECT ci.*, b.country AS brand_country
            FROM catalog_items ci
            LEFT JOIN brands b ON b.name = ci.brand_name
            WHERE ci.id = ?
            """,
            [item_id],
        )
        items = self._hydrate(rows)
        return items[0] if items else None

    def all_item_ids(self) -> List[str]:
        return [row["id"] for row in self._query("SELECT id FROM catalog_items ORDER BY rowid")]

    def count_items(self) -> int:
        return self._query("SELECT COUNT(*) AS count FROM catalog_items")[0]["count"]

    def brand_count(self) -> int:
        return self._query("SELECT COUNT(*) AS count FROM brands")[0]["count"]

    def note_count(self) -> int:
        return self._query("SELECT COUNT(*) AS count FROM notes")[0]["count"]

    def get_brand(self, name: str) -> Optional[Brand]:
        rows = self._query("SELECT name, country FROM brands WHERE name = ?", [name])
        return Brand(name=rows[0]["name"], country=rows[0]["country"]) if rows else None

    def get_note(self, name: str) -> Optional[Note]:
        rows = self._query("SELECT name, category FROM notes WHERE name = ?", [name])
        return Note(name=rows[0]["name"], category=rows[0]["category"]) if rows else None

    def items_for_brand(self, brand_name: str) -> List[CatalogItem]:
        """Items referencing a brand (computed back-reference)."""
        return self.find_page(
            "name", 0, self.count_items() or 1, filter=PerfumeFilter(brand_name=brand_name)
        )

    def _hydrate(self, rows: List[sqlite3.Row]) -> List[CatalogItem]:
        if not rows:
            return []

        ids = [row["id"] for row in rows]
        marks = ", ".join("?" for _ in ids)

        notes: Dict[str, Dict[str, List[Note]]] = {i: {r: [] for r in NOTE_ROLES} for i in ids}
        for row in self._query(
            f"""
            SELECT n.item_id, n.role, n.note_name, nt.category
            FROM item_notes n JOIN notes nt ON nt.name = n.note_name
            WHERE n.item_id IN ({marks})
            ORDER BY n.item_id, n.role, n.position
            """,
            ids,
        ):
            notes[row["item_id"]][row["role"]].append(Note(name=row["note_name"], category=row["category"]))

        occasions: Dict[str, List[str]] = {i: [] for i in ids}
        for row in self._query(
            f"SELECT item_id, occasion FROM item_occasions WHERE item_id IN ({marks}) ORDER BY item_id, position",
            ids,
        ):
            occasions[row["item_id"]].append(row["occasion"])

        items = []
        for row in rows:
            brand = None
            if row["brand_name"] is not None:
                brand = Brand(name=row["brand_name"], country=row["brand_country"])
            items.append(
                CatalogItem(
                    id=row["id"],
                    name=row["name"],
                    concentration=row["concentration"],
                    longevity=row["longevity"],
                    sillage=row["sillage"],
                    performance=row["performance"],
                    description=row["description"],
                    image_url=row["image_url"],
                    occasions=occasions[row["id"]],
                    brand=brand,
                    top_notes=notes[row["id"]]["top"],
                    mid_notes=notes[row["id"]]["mid"],
                    base_notes=notes[row["id"]]["base"],
                    created_at=_from_iso(row["created_at"]),
                )
            )
        return items

    # =========================================================================
    # USER STATUS
    # =========================================================================

    def _status_from_row(self, row: sqlite3.Row) -> UserStatusRecord:
        return UserStatusRecord(
            user_id=row["user_id"],
            item_id=row["item_id"],
            status=decode_status(row["status"]),
            created_at=_from_iso(row["created_at"]),
            personal_notes=row["personal_notes"],
            pending_sync=bool(row["pending_sync"]),
        )

    def get_status(self, user_id: str, item_id: str) -> Optional[UserStatusRecord]:
        rows = self._query(
            "SELECT * FROM user_statuses WHERE user_id = ? AND item_id = ?",
            [user_id, item_id],
        )
        return self._status_from_row(rows[0]) if rows else None

    def save_status(self, record: UserStatusRecord) -> None:
        """Insert or overwrite a status record (creation time is kept on update)."""
        with self.write_batch() as conn:
            conn.execute(
                """
                INSERT INTO user_statuses
                    (user_id, item_id, status, created_at, personal_notes, pending_sync, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id, item_id) DO UPDATE SET
                    status = excluded.status,
                    personal_notes = excluded.personal_notes,
                    pending_sync = excluded.pending_sync,
                    updated_at = excluded.updated_at
                """,
                [
                    record.user_id,
                    record.item_id,
                    encode_status(record.status),
                    _to_iso(record.created_at) or datetime.now().isoformat(),
                    record.personal_notes,
                    int(record.pending_sync),
                    datetime.now().isoformat(),
                ],
            )

    def apply_remote_status(
        self,
        user_id: str,
        item_id: str,
        status: UserStatus,
        created_at: Optional[datetime] = None,
    ) -> bool:
        """
        Overwrite the local status with a confirmed remote value.

        A record with a pending local change is left untouched; the check
        and the write happen in one statement.

        Returns:
            True if the local record was written
        """
        with self.write_batch() as conn:
            cursor = conn.execute(
                """
                INSERT INTO user_statuses
                    (user_id, item_id, status, created_at, pending_sync, updated_at)
                VALUES (?, ?, ?, ?, 0, ?)
                ON CONFLICT (user_id, item_id) DO UPDATE SET
                    status = excluded.status,
                    updated_at = excluded.updated_at
                WHERE user_statuses.pending_sync = 0
                """,
                [
                    user_id,
                    item_id,
                    encode_status(status),
                    _to_iso(created_at) or datetime.now().isoformat(),
                    datetime.now().isoformat(),
                ],
            )
            return cursor.rowcount > 0

    def clear_pending(self, user_id: str, item_id: str, expected_status: UserStatus) -> bool:
        """
        Mark a record as acknowledged, only if it still holds the uploaded value.

        Returns:
            True if the flag was cleared
        """
        with self.write_batch() as conn:
            cursor = conn.execute(
                """
                UPDATE user_statuses
                SET pending_sync = 0, updated_at = ?
                WHERE user_id = ? AND item_id = ? AND status = ? AND pending_sync = 1
                """,
                [datetime.now().isoformat(), user_id, item_id, encode_status(expected_status)],
            )
            return cursor.rowcount > 0

    def reassign_statuses(self, from_user: str, to_user: str) -> int:
        """
        Move all status records of one user to another.

        Records of ``from_user`` replace conflicting records of ``to_user``.

        Returns:
            Number of records moved
        """
        with self.write_batch() as conn:
            cursor = conn.execute(
                "UPDATE OR REPLACE user_statuses SET user_id = ?, updated_at = ? WHERE user_id = ?",
                [to_user, datetime.now().isoformat(), from_user],
            )
            return cursor.rowcount

    def pending_statuses(self, user_id: str) -> List[UserStatusRecord]:
        rows = self._query(
            "SELECT * FROM user_statuses WHERE user_id = ? AND pending_sync = 1 ORDER BY updated_at, item_id",
            [user_id],
        )
        return [self._status_from_row(row) for row in rows]

    def pending_count(self, user_id: Optional[str] = None) -> int:
        if user_id is None:
            rows = self._query("SELECT COUNT(*) AS count FROM user_statuses WHERE pending_sync = 1")
        else:
            rows = self._query(
                "SELECT COUNT(*) AS count FROM user_statuses WHERE user_id = ? AND pending_sync = 1",
                [user_id],
            )
        return rows[0]["count"]

    def items_with_status(self, user_id: str, status: UserStatus) -> List[CatalogItem]:
        """Local wishlist / collection views, newest status first."""
        rows = self._query(
            """
            SELECT ci.*, b.country AS brand_country
            FROM user_statuses us
            JOIN catalog_items ci ON ci.id = us.item_id
            LEFT JOIN brands b ON b.name = ci.brand_name
            WHERE us.user_id = ? AND us.status = ?
            ORDER BY us.created_at DESC, ci.id ASC
            """,
            [user_id, encode_status(status)],
        )
        return self._hydrate(rows)

    # =========================================================================
    # PANDAS INTEGRATION
    # =========================================================================

    def to_dataframe(self) -> pd.DataFrame:
        """
        Load the cached catalog into a pandas DataFrame.

        One row per item with brand and comma-joined note names per role.
        """
        sql = """
            SELECT ci.id, ci.name, ci.brand_name AS brand, b.country AS brand_country,
                   ci.concentration, ci.longevity, ci.sillage, ci.performance,
                   ci.created_at, ci.cached_at,
                   (SELECT group_concat(note_name, ',') FROM
                        (SELECT note_name FROM item_notes WHERE item_id = ci.id AND role = 'top' ORDER BY position)
                   ) AS top_notes,
                   (SELECT group_concat(note_name, ',') FROM
                        (SELECT note_name FROM item_notes WHERE item_id = ci.id AND role = 'mid' ORDER BY position)
                   ) AS mid_notes,
                   (SELECT group_concat(note_name, ',') FROM
                        (SELECT note_name FROM item_notes WHERE item_id = ci.id AND role = 'base' ORDER BY position)
                   ) AS base_notes
            FROM catalog_items ci
            LEFT JOIN brands b ON b.name = ci.brand_name
            ORDER BY ci.rowid
        """
        with self._lock:
            try:
                return pd.read_sql_query(sql, self._get_connection())
            except (sqlite3.Error, pd.errors.DatabaseError) as e:
                raise StorageError(f"Catalog export failed: {e}") from e
