# app/services/preferences.py
from typing import Dict, List, Optional

from app.core.llm_config import PREFERENCE_HISTORY_LIMIT
from app.services import pattern_store
from app.services.pattern_aggregator import clean_symptoms


def frequent_medications(
    doctor_id: str,
    symptoms: Optional[List[str]] = None,
    limit: Optional[int] = None,
) -> List[str]:
    """
    Medication names from the doctor's latest prescriptions, most frequent
    first. This reads the raw history, not the symptom-pattern aggregate.
    """
    records = pattern_store.recent_records(doctor_id, limit or PREFERENCE_HISTORY_LIMIT)

    wanted = set(clean_symptoms(symptoms or []))
    if wanted:
        records = [r for r in records if wanted.intersection(r.symptoms)]

    freq: Dict[str, int] = {}
    for r in records:
        for med in r.final_prescription:
            freq[med.name] = freq.get(med.name, 0) + 1

    return sorted(freq, key=lambda name: (-freq[name], name))
