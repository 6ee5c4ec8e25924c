import sqlite3
from contextlib import contextmanager
from pathlib import Path

from typerace.config import settings
from typerace.errors import UsernameTaken

DB_PATH = Path(settings.database_url.removeprefix("sqlite:///"))

# Seeded into an empty corpus so a room can always be given a text
DEFAULT_TEXT_LINES = [
    "The quick brown fox jumps over the lazy dog.",
    "Pack my box with five dozen liquor jugs.",
    "How vexingly quick daft zebras jump!",
    "Sphinx of black quartz, judge my vow.",
    "A journey of a thousand miles begins with a single step.",
]


def get_db_path() -> Path:
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    return DB_PATH


def init_db():
    """Create tables if they don't exist and seed the text corpus."""
    with get_connection() as conn:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT UNIQUE NOT NULL,
                password_hash TEXT NOT NULL,
                victories INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS tokens (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                token TEXT UNIQUE NOT NULL,
                username TEXT NOT NULL,
                created_at REAL NOT NULL,
                expires_at REAL NOT NULL,
                FOREIGN KEY (username) REFERENCES users(username) ON DELETE CASCADE
            );

            CREATE INDEX IF NOT EXISTS idx_tokens_username ON tokens(username);
            CREATE INDEX IF NOT EXISTS idx_tokens_expires_at ON tokens(expires_at);

            CREATE TABLE IF NOT EXISTS text_lines (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                text TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
        """)
        count = conn.execute("SELECT COUNT(*) FROM text_lines").fetchone()[0]
        if count == 0:
            conn.executemany(
                "INSERT INTO text_lines (text) VALUES (?)",
                [(line,) for line in DEFAULT_TEXT_LINES],
            )


@contextmanager
def get_connection():
    conn = sqlite3.connect(get_db_path())
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


# User ledger
def create_user(username: str, password_hash: str) -> int:
    try:
        with get_connection() as conn:
            cursor = conn.execute(
                "INSERT INTO users (username, password_hash) VALUES (?, ?)",
                (username, password_hash),
            )
            return cursor.lastrowid
    except sqlite3.IntegrityError:
        raise UsernameTaken(username)


def get_user(username: str) -> dict | None:
    with get_connection() as conn:
        row = conn.execute(
            "SELECT id, username, password_hash, victories FROM users WHERE username = ?",
            (username,),
        ).fetchone()
    return dict(row) if row else None


def increment_victories(username: str):
    with get_connection() as conn:
        conn.execute(
            "UPDATE users SET victories = victories + 1 WHERE username = ?",
            (username,),
        )


# Text corpus. Indexes are 0-based positions in insertion order.
def list_text_lines() -> list[str]:
    with get_connection() as conn:
        rows = conn.execute("SELECT text FROM text_lines ORDER BY id").fetchall()
    return [row["text"] for row in rows]


def get_text_line(index: int) -> str | None:
    if index < 0:
        return None
    with get_connection() as conn:
        row = conn.execute(
            "SELECT text FROM text_lines ORDER BY id LIMIT 1 OFFSET ?", (index,)
        ).fetchone()
    return row["text"] if row else None


def random_text_line() -> str:
    with get_connection() as conn:
        row = conn.execute("SELECT text FROM text_lines ORDER BY RANDOM() LIMIT 1").fetchone()
    return row["text"] if row else DEFAULT_TEXT_LINES[0]


def add_text_line(text: str) -> int:
    """Append a line to the corpus and return its index."""
    with get_connection() as conn:
        conn.execute("INSERT INTO text_lines (text) VALUES (?)", (text,))
        return conn.execute("SELECT COUNT(*) FROM text_lines").fetchone()[0] - 1


def delete_text_line(index: int) -> bool:
    if index < 0:
        return False
    with get_connection() as conn:
        row = conn.execute(
            "SELECT id FROM text_lines ORDER BY id LIMIT 1 OFFSET ?", (index,)
        ).fetchone()
        if not row:
            return False
        conn.execute("DELETE FROM text_lines WHERE id = ?", (row["id"],))
    return True
