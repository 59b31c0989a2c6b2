"""SQL schema definitions for the presenter database.

The content tables (songs, media, bible_verses, presentations) hold the
library the presenter reads from. The setlists table is written by the
presenter; each row keeps its entries as a JSON array in the setlist item
schema.
"""

# SQL to create the songs table (slides stored pre-split as JSON)
CREATE_SONGS_TABLE = """
CREATE TABLE IF NOT EXISTS songs (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    original_language TEXT DEFAULT 'he',
    slides TEXT NOT NULL DEFAULT '[]',
    created_at TEXT DEFAULT (datetime('now'))
);
"""

# SQL to create the media table (still images)
CREATE_MEDIA_TABLE = """
CREATE TABLE IF NOT EXISTS media (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    url TEXT NOT NULL,
    created_at TEXT DEFAULT (datetime('now'))
);
"""

# SQL to create the bible_verses table (one row per verse)
CREATE_BIBLE_VERSES_TABLE = """
CREATE TABLE IF NOT EXISTS bible_verses (
    book TEXT NOT NULL,
    chapter INTEGER NOT NULL,
    verse INTEGER NOT NULL,
    original_text TEXT DEFAULT '',
    translation TEXT DEFAULT '',
    PRIMARY KEY (book, chapter, verse)
);
"""

# SQL to create the presentations table
CREATE_PRESENTATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS presentations (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    slides TEXT NOT NULL DEFAULT '[]',
    canvas_width INTEGER DEFAULT 1920,
    canvas_height INTEGER DEFAULT 1080,
    created_at TEXT DEFAULT (datetime('now'))
);
"""

# SQL to create the setlists table (entries as JSON, optional linked room)
CREATE_SETLISTS_TABLE = """
CREATE TABLE IF NOT EXISTS setlists (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    items TEXT NOT NULL DEFAULT '[]',
    linked_room_id TEXT,
    created_at TEXT DEFAULT (datetime('now')),
    updated_at TEXT DEFAULT (datetime('now'))
);
"""

CREATE_INDEXES = [
    """
    CREATE INDEX IF NOT EXISTS idx_songs_title
    ON songs(title);
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_setlists_linked_room_id
    ON setlists(linked_room_id);
    """,
]

# All content schema statements in order
CONTENT_SCHEMA_STATEMENTS = [
    CREATE_SONGS_TABLE,
    CREATE_MEDIA_TABLE,
    CREATE_BIBLE_VERSES_TABLE,
    CREATE_PRESENTATIONS_TABLE,
]

# All schema creation statements in order
ALL_SCHEMA_STATEMENTS = [
    *CONTENT_SCHEMA_STATEMENTS,
    CREATE_SETLISTS_TABLE,
    *CREATE_INDEXES,
]
