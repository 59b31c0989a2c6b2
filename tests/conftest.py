"""Shared fixtures for presenter tests."""

import json
import sqlite3

import pytest

from worship_presenter.core.models import Slide, Song
from worship_presenter.core.scheduler import ManualScheduler
from worship_presenter.core.session import PresenterSession
from worship_presenter.db.schema import ALL_SCHEMA_STATEMENTS
from worship_presenter.services.rooms import RoomInfo
from worship_presenter.services.transport import InMemoryTransport


@pytest.fixture
def make_song():
    """Factory for songs with numbered slides."""

    def _make(song_id="song_0001", title="Amazing Grace", count=3, verse_types=None):
        verse_types = verse_types or [""] * count
        slides = [
            Slide(
                original_text=f"{title} line {i + 1}",
                translation=f"{title} translation {i + 1}",
                verse_type=verse_types[i],
            )
            for i in range(len(verse_types))
        ]
        return Song(id=song_id, title=title, slides=slides)

    return _make


@pytest.fixture
def scheduler():
    """Virtual clock starting at 2024-01-07 10:00:00."""
    return ManualScheduler()


@pytest.fixture
def transport():
    """Transport that records every payload."""
    return InMemoryTransport()


@pytest.fixture
def room():
    """A room on the relay."""
    return RoomInfo(room_id="room-1", pin="ABCD", background_image="bg.png")


@pytest.fixture
def notifications():
    """Collected (message, severity) notifications."""
    return []


@pytest.fixture
def session(scheduler, transport, room, notifications):
    """Presenter session broadcasting into an in-memory transport."""
    return PresenterSession(
        scheduler,
        transport=transport,
        room=room,
        notifier=lambda message, severity: notifications.append((message, severity)),
    )


@pytest.fixture
def content_db(tmp_path):
    """Database with the full schema and a small content library."""
    db_path = tmp_path / "presenter.db"
    conn = sqlite3.connect(db_path)
    for statement in ALL_SCHEMA_STATEMENTS:
        conn.execute(statement)

    slides = [
        {"original_text": "Verse line 1", "translation": "Verse translation 1", "verse_type": "verse1"},
        {"original_text": "Verse line 2", "translation": "Verse translation 2", "verse_type": "verse1"},
        {"original_text": "Chorus line", "translation": "Chorus translation", "verse_type": "chorus"},
    ]
    conn.execute(
        "INSERT INTO songs (id, title, original_language, slides) VALUES (?, ?, ?, ?)",
        ("song_0001", "Amazing Grace", "en", json.dumps(slides)),
    )
    conn.execute(
        "INSERT INTO songs (id, title, original_language, slides) VALUES (?, ?, ?, ?)",
        ("song_0002", "Hallelujah", "he", json.dumps([{"original_text": "Hallelujah"}])),
    )
    conn.execute(
        "INSERT INTO media (id, name, url) VALUES (?, ?, ?)",
        ("media_0001", "Sunrise", "https://example.com/sunrise.png"),
    )
    for verse, (original, translation) in enumerate(
        [("Bereshit", "In the beginning"), ("Vehaaretz", "And the earth"), ("Vayomer", "And God said")],
        start=1,
    ):
        conn.execute(
            "INSERT INTO bible_verses (book, chapter, verse, original_text, translation) VALUES (?, ?, ?, ?, ?)",
            ("Genesis", 1, verse, original, translation),
        )
    presentation_slides = [
        {"id": "s1", "text_boxes": [{"text": "Welcome", "x": 10, "y": 10}], "background_color": "#112233"},
        {"id": "s2", "text_boxes": [{"text": "Offering"}]},
    ]
    conn.execute(
        "INSERT INTO presentations (id, title, slides, canvas_width, canvas_height) VALUES (?, ?, ?, ?, ?)",
        ("pres_0001", "Announcements", json.dumps(presentation_slides), 1280, 720),
    )
    conn.commit()
    conn.close()
    return db_path
