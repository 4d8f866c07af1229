# app/services/pattern_store.py
"""
Durable storage for prescription history and per-doctor symptom patterns.

Each doctor's patterns live in a single JSON document guarded by a version
column. Writers hold a per-doctor lock and commit with a compare-and-swap on
that version, so two finalizations for the same doctor can never overwrite
each other's updates (even across processes sharing the database file).
"""
import json
import logging
import sqlite3
import threading
from contextlib import closing
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from app.core.llm_config import PATTERN_WRITE_ATTEMPTS
from app.db.db_config import get_sqlite_connection
from app.schemas.models import PatternDocument, PrescriptionRecord
from app.services.errors import PersistenceUnavailable

logger = logging.getLogger("prescription_ai.pattern_store")

_LOCKS: Dict[str, threading.Lock] = {}
_LOCKS_GUARD = threading.Lock()


class PatternConflict(RuntimeError):
    """Another writer committed a newer version of the document first."""


def _doctor_lock(doctor_id: str) -> threading.Lock:
    with _LOCKS_GUARD:
        lock = _LOCKS.get(doctor_id)
        if lock is None:
            lock = _LOCKS[doctor_id] = threading.Lock()
        return lock


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _connect() -> sqlite3.Connection:
    try:
        return get_sqlite_connection()
    except sqlite3.Error as e:
        raise PersistenceUnavailable(f"cannot open prescription store: {e}") from e


def _read_document(conn: sqlite3.Connection, doctor_id: str) -> PatternDocument:
    row = conn.execute(
        "SELECT version, document FROM symptom_patterns WHERE doctor_id = ?",
        (doctor_id,),
    ).fetchone()
    if row is None:
        return PatternDocument(doctor_id=doctor_id, version=0)

    version, document = row
    doc = PatternDocument.model_validate_json(document)
    doc.version = version
    return doc


def _compare_and_swap(conn: sqlite3.Connection, doc: PatternDocument, expected_version: int) -> None:
    payload = doc.model_dump_json(exclude={"version"})
    now = _now_iso()
    if expected_version == 0:
        cur = conn.execute(
            "INSERT OR IGNORE INTO symptom_patterns (doctor_id, version, document, updated_at) "
            "VALUES (?, 1, ?, ?)",
            (doc.doctor_id, payload, now),
        )
    else:
        cur = conn.execute(
            "UPDATE symptom_patterns SET version = version + 1, document = ?, updated_at = ? "
            "WHERE doctor_id = ? AND version = ?",
            (payload, now, doc.doctor_id, expected_version),
        )
    if cur.rowcount != 1:
        raise PatternConflict(f"symptom patterns for {doc.doctor_id} changed (expected v{expected_version})")
    doc.version = expected_version + 1


def load_patterns(doctor_id: str) -> PatternDocument:
    """Return the doctor's pattern document; an empty one if none exists yet."""
    try:
        with closing(_connect()) as conn:
            return _read_document(conn, doctor_id)
    except sqlite3.Error as e:
        raise PersistenceUnavailable(f"cannot read symptom patterns: {e}") from e


def save_prescription(
    record: PrescriptionRecord,
    fold: Callable[[PatternDocument], None],
    max_attempts: Optional[int] = None,
) -> PatternDocument:
    """
    Append `record` to the history and apply `fold` to the doctor's pattern
    document, both in one transaction.

    On a version conflict the document is re-read and `fold` re-applied to the
    fresh copy; storage errors are never retried.
    """
    attempts = max(1, max_attempts or PATTERN_WRITE_ATTEMPTS)
    record_json = record.model_dump_json()

    with _doctor_lock(record.doctor_id):
        for attempt in range(1, attempts + 1):
            try:
                with closing(_connect()) as conn:
                    conn.execute("BEGIN IMMEDIATE")
                    try:
                        doc = _read_document(conn, record.doctor_id)
                        expected = doc.version
                        fold(doc)
                        conn.execute(
                            "INSERT INTO prescription_records (record_id, doctor_id, created_at, payload) "
                            "VALUES (?, ?, ?, ?)",
                            (record.record_id, record.doctor_id, record.timestamp, record_json),
                        )
                        _compare_and_swap(conn, doc, expected)
                    except BaseException:
                        conn.rollback()
                        raise
                    conn.commit()
                    return doc
            except PatternConflict as e:
                logger.warning(f"pattern write conflict (attempt {attempt}/{attempts}): {e}")
            except sqlite3.Error as e:
                raise PersistenceUnavailable(f"cannot write prescription: {e}") from e

    raise PersistenceUnavailable(
        f"symptom patterns for doctor {record.doctor_id} kept changing; gave up after {attempts} attempts"
    )


def recent_records(doctor_id: str, limit: int) -> List[PrescriptionRecord]:
    """Most recent `limit` prescription records for the doctor, newest first."""
    try:
        with closing(_connect()) as conn:
            rows = conn.execute(
                "SELECT payload FROM prescription_records WHERE doctor_id = ? "
                "ORDER BY created_at DESC, rowid DESC LIMIT ?",
                (doctor_id, int(limit)),
            ).fetchall()
    except sqlite3.Error as e:
        raise PersistenceUnavailable(f"cannot read prescription history: {e}") from e

    return [PrescriptionRecord.model_validate(json.loads(payload)) for (payload,) in rows]
