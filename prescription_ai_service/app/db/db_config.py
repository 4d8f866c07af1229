# app/db/db_config.py

import os
import sqlite3
from pathlib import Path


# Base project directory (prescription_ai_service/)
BASE_DIR = Path(__file__).resolve().parents[2]

# Database directory (prescription_ai_service/app/db/)
DB_DIR = BASE_DIR / "app" / "db"

# Default database file path (PRESCRIPTION_DB_PATH overrides it)
DB_PATH = DB_DIR / "prescriptions.db"

SCHEMA = """
CREATE TABLE IF NOT EXISTS prescription_records (
    record_id TEXT PRIMARY KEY,
    doctor_id TEXT NOT NULL,
    created_at TEXT NOT NULL,
    payload TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_records_doctor_created
    ON prescription_records (doctor_id, created_at);

CREATE TABLE IF NOT EXISTS symptom_patterns (
    doctor_id TEXT PRIMARY KEY,
    version INTEGER NOT NULL,
    document TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS learnings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    doctor_id TEXT,
    disease TEXT NOT NULL,
    disease_key TEXT NOT NULL,
    symptoms TEXT NOT NULL,
    prescription TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_learnings_disease ON learnings (disease_key, id);
"""


def get_db_path() -> Path:
    # read at call time so tests and deployments can point elsewhere
    override = os.getenv("PRESCRIPTION_DB_PATH", "").strip()
    return Path(override) if override else DB_PATH


def get_sqlite_connection() -> sqlite3.Connection:
    """
    Create and configure SQLite connection with recommended PRAGMA settings.
    The schema is created on first use.
    """
    path = get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), check_same_thread=False)

    # Performance & concurrency settings
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA busy_timeout=5000;")

    conn.executescript(SCHEMA)
    return conn
