"""Read-write database client for saved setlists.

Setlist entries are stored as a JSON array in the setlist item schema.
Library songs and presentations are stored by reference and hydrated from
the content library on load; everything else (temporary songs, Bible
passages, images, blanks, sections, YouTube references and tool entries)
is stored in full.
"""

import json
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Generator, Optional

from worship_presenter.core.models import (
    PresentableItem,
    Presentation,
    SetlistEntry,
    Song,
    item_from_dict,
    item_to_dict,
)
from worship_presenter.db.content_client import ContentClient, ContentNotFoundError
from worship_presenter.db.schema import ALL_SCHEMA_STATEMENTS
from worship_presenter.logging_config import get_logger

logger = get_logger(__name__)


class SetlistStoreError(Exception):
    """Error reading or writing saved setlists."""


@dataclass
class StoredSetlist:
    """A setlist as saved in the store.

    Attributes:
        id: Setlist ID
        name: Display name
        entries: Hydrated entries
        linked_room_id: Room the setlist is linked to, if any
        created_at: ISO timestamp of creation
        updated_at: ISO timestamp of the last save
    """

    id: str
    name: str
    entries: list[SetlistEntry] = field(default_factory=list)
    linked_room_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class SetlistSummary:
    """A row of the saved setlist listing."""

    id: str
    name: str
    item_count: int
    linked_room_id: Optional[str] = None
    updated_at: Optional[str] = None


def generate_setlist_id() -> str:
    """Generate a new unique setlist ID.

    Returns:
        Unique ID string
    """
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S%f")
    return f"setlist_{timestamp}"


class SetlistStore:
    """Client for setlist CRUD operations.

    Attributes:
        db_path: Path to the SQLite database file
        content: Content library used to hydrate references on load
        connection: Active database connection
    """

    def __init__(self, db_path: Path, content: Optional[ContentClient] = None):
        """Initialize the setlist store.

        Args:
            db_path: Path to the SQLite database file
            content: Content library for hydrating song and presentation references
        """
        self.db_path = db_path
        self.content = content
        self._connection: Optional[sqlite3.Connection] = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection.

        Returns:
            Active SQLite connection
        """
        if self._connection is None:
            # Ensure directory exists
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self._connection = sqlite3.connect(self.db_path)
            self._connection.row_factory = sqlite3.Row

        return self._connection

    def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None

    def __enter__(self) -> "SetlistStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database transactions.

        Yields:
            SQLite connection with active transaction

        Raises:
            SetlistStoreError: If the transaction fails
        """
        conn = self.connection
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise SetlistStoreError(f"Setlist store error: {e}") from e
        except Exception:
            conn.rollback()
            raise

    def initialize_schema(self) -> None:
        """Create the content and setlist tables if they don't exist."""
        with self.transaction() as conn:
            cursor = conn.cursor()
            for statement in ALL_SCHEMA_STATEMENTS:
                cursor.execute(statement)

    def _hydrate(self, item: PresentableItem) -> PresentableItem:
        """Replace a library reference with the full item from the content library."""
        if self.content is None:
            return item
        try:
            if isinstance(item, Song) and not item.is_temporary and not item.is_bible:
                return self.content.get_song(item.id)
            if isinstance(item, Presentation):
                return self.content.get_presentation(item.id)
        except ContentNotFoundError as e:
            logger.warning(f"Keeping unresolved reference: {e}")
        return item

    def _decode_items(self, raw: str) -> list[SetlistEntry]:
        try:
            data = json.loads(raw or "[]")
            return [SetlistEntry(item=self._hydrate(item_from_dict(d))) for d in data]
        except (ValueError, KeyError, TypeError) as e:
            raise SetlistStoreError(f"Corrupt setlist items: {e}") from e

    def load_setlist(self, setlist_id: str) -> StoredSetlist:
        """Load a setlist by ID.

        Args:
            setlist_id: The setlist ID

        Returns:
            StoredSetlist with hydrated entries

        Raises:
            SetlistStoreError: If the setlist does not exist or cannot be read
        """
        try:
            cursor = self.connection.cursor()
            cursor.execute("SELECT * FROM setlists WHERE id = ?", (setlist_id,))
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise SetlistStoreError(f"Setlist store error: {e}") from e

        if row is None:
            raise SetlistStoreError(f"Setlist not found: {setlist_id}")

        return StoredSetlist(
            id=row["id"],
            name=row["name"],
            entries=self._decode_items(row["items"]),
            linked_room_id=row["linked_room_id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def save_setlist(
        self,
        room_id: Optional[str],
        entries: list[SetlistEntry],
        name: str,
        setlist_id: Optional[str] = None,
    ) -> str:
        """Create or overwrite a setlist.

        Args:
            room_id: Room a new setlist is linked to (ignored on update)
            entries: Entries to save
            name: Display name
            setlist_id: Existing setlist to overwrite; a new one is created if None

        Returns:
            ID of the saved setlist

        Raises:
            SetlistStoreError: If the write fails
        """
        items = json.dumps([item_to_dict(entry.item) for entry in entries], ensure_ascii=False)
        now = datetime.now().isoformat()

        with self.transaction() as conn:
            cursor = conn.cursor()
            if setlist_id is not None:
                cursor.execute(
                    "UPDATE setlists SET name = ?, items = ?, updated_at = ? WHERE id = ?",
                    (name, items, now, setlist_id),
                )
                if cursor.rowcount > 0:
                    return setlist_id
            else:
                setlist_id = generate_setlist_id()

            cursor.execute(
                """
                INSERT INTO setlists (id, name, items, linked_room_id, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (setlist_id, name, items, room_id, now, now),
            )

        return setlist_id

    def link_setlist(self, room_id: str, setlist_id: str) -> None:
        """Link a setlist to a room, unlinking whatever was linked before.

        Raises:
            SetlistStoreError: If the setlist does not exist
        """
        with self.transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE setlists SET linked_room_id = NULL WHERE linked_room_id = ?",
                (room_id,),
            )
            cursor.execute(
                "UPDATE setlists SET linked_room_id = ? WHERE id = ?",
                (room_id, setlist_id),
            )
            if cursor.rowcount == 0:
                raise SetlistStoreError(f"Setlist not found: {setlist_id}")

    def unlink_setlist(self, room_id: str) -> None:
        """Remove the link between a room and its setlist."""
        with self.transaction() as conn:
            conn.execute(
                "UPDATE setlists SET linked_room_id = NULL WHERE linked_room_id = ?",
                (room_id,),
            )

    def get_linked_setlist_id(self, room_id: str) -> Optional[str]:
        """Get the ID of the setlist linked to a room, if any."""
        try:
            cursor = self.connection.cursor()
            cursor.execute("SELECT id FROM setlists WHERE linked_room_id = ?", (room_id,))
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise SetlistStoreError(f"Setlist store error: {e}") from e
        return row["id"] if row else None

    def list_setlists(self, limit: Optional[int] = None) -> list[SetlistSummary]:
        """List saved setlists, most recently saved first.

        Args:
            limit: Maximum number of results

        Returns:
            List of setlist summaries
        """
        query = "SELECT id, name, items, linked_room_id, updated_at FROM setlists ORDER BY updated_at DESC"
        if limit:
            query += f" LIMIT {int(limit)}"

        try:
            cursor = self.connection.cursor()
            cursor.execute(query)
            rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise SetlistStoreError(f"Setlist store error: {e}") from e

        return [
            SetlistSummary(
                id=row["id"],
                name=row["name"],
                item_count=len(json.loads(row["items"] or "[]")),
                linked_room_id=row["linked_room_id"],
                updated_at=row["updated_at"],
            )
            for row in rows
        ]

    def delete_setlist(self, setlist_id: str) -> bool:
        """Delete a setlist.

        Returns:
            True if deleted, False if not found
        """
        with self.transaction() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM setlists WHERE id = ?", (setlist_id,))
            return cursor.rowcount > 0
