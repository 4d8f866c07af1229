# app/services/learning_store.py
import json
import logging
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from typing import List, Optional

from app.db.db_config import get_sqlite_connection
from app.schemas.models import Medication
from app.services.errors import PersistenceUnavailable

logger = logging.getLogger("prescription_ai.learnings")


def _disease_key(disease: str) -> str:
    return " ".join((disease or "").split()).lower()


def save_learning(
    disease: str,
    prescription: List[Medication],
    symptoms: Optional[List[str]] = None,
    doctor_id: Optional[str] = None,
) -> int:
    """Store a doctor-approved prescription for a diagnosis. Append-only."""
    try:
        with closing(get_sqlite_connection()) as conn:
            cur = conn.execute(
                "INSERT INTO learnings (doctor_id, disease, disease_key, symptoms, prescription, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    doctor_id,
                    disease.strip(),
                    _disease_key(disease),
                    json.dumps(list(symptoms or [])),
                    json.dumps([m.model_dump() for m in prescription]),
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
            conn.commit()
            learning_id = cur.lastrowid
    except sqlite3.Error as e:
        raise PersistenceUnavailable(f"cannot save learning: {e}") from e

    logger.info(f"learning saved id={learning_id} disease={_disease_key(disease)!r}")
    return learning_id


def find_learning(disease: str) -> Optional[List[Medication]]:
    """First prescription learned for this diagnosis, or None."""
    key = _disease_key(disease)
    if not key:
        return None
    try:
        with closing(get_sqlite_connection()) as conn:
            row = conn.execute(
                "SELECT prescription FROM learnings WHERE disease_key = ? ORDER BY id LIMIT 1",
                (key,),
            ).fetchone()
    except sqlite3.Error as e:
        raise PersistenceUnavailable(f"cannot read learnings: {e}") from e

    if row is None:
        return None
    return [Medication.model_validate(m) for m in json.loads(row[0])]
