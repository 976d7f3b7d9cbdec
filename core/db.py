"""
Database initialization and migrations for the labeling backend.
"""

import sqlite3

# Current schema version
SCHEMA_VERSION = 1


def get_connection(db_path: str) -> sqlite3.Connection:
    """Get a database connection with row factory enabled."""
    # Export streaming reads from a worker thread
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """
    Create all required tables on an open connection.

    Args:
        conn: Connection returned by get_connection
    """
    cursor = conn.cursor()

    # Version tracking table
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS projects (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            form_json TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # Images are never cascaded away with their project
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS images (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            project_id INTEGER NOT NULL,
            original_name TEXT NOT NULL,
            link TEXT,
            external_link TEXT,
            local_path TEXT,
            label_data_json TEXT,
            labeled INTEGER NOT NULL DEFAULT 0,
            last_edited REAL,
            lease_expires_at REAL,
            FOREIGN KEY (project_id) REFERENCES projects(id)
        )
    """)

    # Allocation scans unlabeled images of one project in id order
    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_images_project
        ON images(project_id, labeled, id)
    """)

    cursor.execute("""
        INSERT OR IGNORE INTO schema_version (version) VALUES (?)
    """, (SCHEMA_VERSION,))

    conn.commit()


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Get the current schema version of the database."""
    try:
        row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] if row and row[0] else 0
    except sqlite3.OperationalError:
        return 0


def migrate_db(conn: sqlite3.Connection) -> None:
    """
    Run any pending migrations on the database.

    Args:
        conn: Connection returned by get_connection
    """
    current_version = get_schema_version(conn)

    if current_version < SCHEMA_VERSION:
        # Migration 0 -> 1: Initial schema
        if current_version < 1:
            init_db(conn)
        conn.commit()


def open_database(db_path: str) -> sqlite3.Connection:
    """
    Open a connection and bring its schema up to date.

    Args:
        db_path: Path to the SQLite database file, or ":memory:"

    Returns:
        Ready-to-use connection shared by the project and image stores
    """
    conn = get_connection(db_path)
    migrate_db(conn)
    return conn
