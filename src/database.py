"""SQLite key-value storage for the client session."""

from pathlib import Path
import sqlite3


TOKEN_KEY = "token"


def create_database(db_path: Path | str) -> sqlite3.Connection:
    """Open (or create) the session database with its key-value table."""
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS session (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
    """)

    conn.commit()
    return conn


def get_value(conn: sqlite3.Connection, key: str) -> str | None:
    cursor = conn.cursor()
    cursor.execute("SELECT value FROM session WHERE key = ?", (key,))
    row = cursor.fetchone()
    return row[0] if row else None


def set_value(conn: sqlite3.Connection, key: str, value: str):
    conn.execute("INSERT OR REPLACE INTO session (key, value) VALUES (?, ?)", (key, value))
    conn.commit()


def delete_value(conn: sqlite3.Connection, key: str):
    conn.execute("DELETE FROM session WHERE key = ?", (key,))
    conn.commit()


def clear_values(conn: sqlite3.Connection):
    """Remove every stored session value."""
    conn.execute("DELETE FROM session")
    conn.commit()


def get_token(conn: sqlite3.Connection) -> str | None:
    return get_value(conn, TOKEN_KEY)


def set_token(conn: sqlite3.Connection, token: str):
    set_value(conn, TOKEN_KEY, token)


def remove_token(conn: sqlite3.Connection):
    delete_value(conn, TOKEN_KEY)
