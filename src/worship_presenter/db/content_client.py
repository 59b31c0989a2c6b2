"""Read-only client for the content library.

Provides songs, media, Bible passages and presentations to the presenter.
The library is never modified from here.
"""

import json
import sqlite3
from pathlib import Path
from typing import Optional

from worship_presenter.core.models import (
    BiblePassage,
    Image,
    Presentation,
    PresentationSlide,
    Slide,
    Song,
)
from worship_presenter.logging_config import get_logger

logger = get_logger(__name__)


class ContentNotFoundError(Exception):
    """Requested content does not exist or cannot be read."""


class ContentClient:
    """Read-only client for the content tables.

    Attributes:
        db_path: Path to the SQLite database file
        connection: Active database connection
    """

    def __init__(self, db_path: Path):
        """Initialize the content client.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = db_path
        self._connection: Optional[sqlite3.Connection] = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection.

        Returns:
            Active SQLite connection
        """
        if self._connection is None:
            self._connection = sqlite3.connect(self.db_path)
            self._connection.row_factory = sqlite3.Row

        return self._connection

    def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None

    def __enter__(self) -> "ContentClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _fetchone(self, query: str, params: tuple) -> Optional[sqlite3.Row]:
        try:
            cursor = self.connection.cursor()
            cursor.execute(query, params)
            return cursor.fetchone()
        except sqlite3.Error as e:
            raise ContentNotFoundError(f"Content library unavailable: {e}")

    def get_song(self, song_id: str) -> Song:
        """Get a song by ID.

        Args:
            song_id: The song ID

        Returns:
            Song with its slides

        Raises:
            ContentNotFoundError: If the song does not exist
        """
        row = self._fetchone("SELECT * FROM songs WHERE id = ?", (song_id,))
        if row is None:
            raise ContentNotFoundError(f"Song not found: {song_id}")

        return Song(
            id=row["id"],
            title=row["title"],
            slides=[Slide.from_dict(s) for s in json.loads(row["slides"] or "[]")],
            original_language=row["original_language"] or "he",
        )

    def list_songs(self, query: Optional[str] = None, limit: Optional[int] = None) -> list[tuple[str, str]]:
        """List songs for the library browser.

        Args:
            query: Case-insensitive title filter
            limit: Maximum number of results

        Returns:
            (id, title) pairs ordered by title
        """
        sql = "SELECT id, title FROM songs"
        params: list = []
        if query:
            sql += " WHERE title LIKE ?"
            params.append(f"%{query}%")
        sql += " ORDER BY title"
        if limit:
            sql += f" LIMIT {int(limit)}"

        try:
            cursor = self.connection.cursor()
            cursor.execute(sql, params)
            return [(row["id"], row["title"]) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error(f"Failed to list songs: {e}")
            return []

    def get_media(self, media_id: str) -> Image:
        """Get an image by ID.

        Raises:
            ContentNotFoundError: If the image does not exist
        """
        row = self._fetchone("SELECT * FROM media WHERE id = ?", (media_id,))
        if row is None:
            raise ContentNotFoundError(f"Media not found: {media_id}")
        return Image(id=row["id"], name=row["name"], url=row["url"])

    def get_bible_passage(self, book: str, chapter: int) -> BiblePassage:
        """Get a Bible chapter with one slide per verse.

        Args:
            book: Book name
            chapter: Chapter number

        Returns:
            Temporary BiblePassage

        Raises:
            ContentNotFoundError: If the chapter has no verses
        """
        try:
            cursor = self.connection.cursor()
            cursor.execute(
                "SELECT * FROM bible_verses WHERE book = ? AND chapter = ? ORDER BY verse",
                (book, chapter),
            )
            rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise ContentNotFoundError(f"Content library unavailable: {e}")

        if not rows:
            raise ContentNotFoundError(f"No verses for {book} {chapter}")

        slides = [
            Slide(
                original_text=row["original_text"] or "",
                translation=row["translation"] or "",
                verse_number=row["verse"],
            )
            for row in rows
        ]
        return BiblePassage(
            id=f"bible-{book.lower().replace(' ', '-')}-{chapter}",
            title=f"{book} {chapter}",
            slides=slides,
            book=book,
            chapter=chapter,
        )

    def get_presentation(self, presentation_id: str) -> Presentation:
        """Get a presentation by ID.

        Raises:
            ContentNotFoundError: If the presentation does not exist
        """
        row = self._fetchone("SELECT * FROM presentations WHERE id = ?", (presentation_id,))
        if row is None:
            raise ContentNotFoundError(f"Presentation not found: {presentation_id}")

        return Presentation(
            id=row["id"],
            title=row["title"],
            slides=[PresentationSlide.from_dict(s) for s in json.loads(row["slides"] or "[]")],
            canvas_width=row["canvas_width"] or 1920,
            canvas_height=row["canvas_height"] or 1080,
        )
