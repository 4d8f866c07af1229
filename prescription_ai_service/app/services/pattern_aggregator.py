# app/services/pattern_aggregator.py
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from app.schemas.models import (
    DosagePattern,
    Medication,
    MedicationPattern,
    PatternDocument,
    PrescriptionRecord,
    SymptomPattern,
)
from app.services import pattern_store

logger = logging.getLogger("prescription_ai.aggregator")


def clean_symptoms(symptoms: Iterable[str]) -> List[str]:
    """Strip, drop blanks, de-duplicate (first occurrence wins)."""
    out: List[str] = []
    seen = set()
    for s in symptoms or []:
        label = (s or "").strip()
        if not label or label in seen:
            continue
        seen.add(label)
        out.append(label)
    return out


def _record_id() -> str:
    # history is keyed by creation time; the suffix keeps same-millisecond saves apart
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def fold_prescription(
    doc: PatternDocument,
    symptoms: List[str],
    medications: List[Medication],
    now_iso: str,
) -> PatternDocument:
    """Merge one finalized prescription into the doctor's pattern document (in place)."""
    for symptom in symptoms:
        sp = doc.symptoms.get(symptom)
        if sp is None:
            sp = doc.symptoms[symptom] = SymptomPattern(symptom=symptom)

        for med in medications:
            mp = next((m for m in sp.medications if m.name == med.name), None)
            if mp is None:
                mp = MedicationPattern(name=med.name, count=0, last_used=now_iso)
                sp.medications.append(mp)

            mp.count += 1
            mp.last_used = now_iso

            variant = next((p for p in mp.patterns if p.matches(med)), None)
            if variant is not None:
                variant.use_count += 1
            else:
                mp.patterns.append(DosagePattern(
                    dosage=med.dosage,
                    frequency=med.frequency,
                    duration=med.duration,
                    use_count=1,
                ))
    return doc


def record_prescription(
    doctor_id: str,
    patient_id: str,
    symptoms: List[str],
    medications: List[Medication],
    ai_prescription: Optional[List[Medication]] = None,
) -> PrescriptionRecord:
    """
    Persist a finalized prescription and fold it into the doctor's symptom
    patterns. Raises PersistenceUnavailable if either write fails; nothing is
    stored in that case.
    """
    now_iso = datetime.now(timezone.utc).isoformat()
    labels = clean_symptoms(symptoms)

    record = PrescriptionRecord(
        record_id=_record_id(),
        doctor_id=doctor_id,
        patient_id=patient_id,
        symptoms=labels,
        final_prescription=list(medications),
        ai_prescription=list(ai_prescription or []),
        timestamp=now_iso,
    )

    doc = pattern_store.save_prescription(
        record,
        lambda d: fold_prescription(d, labels, record.final_prescription, now_iso),
    )
    logger.info(
        f"prescription recorded id={record.record_id} doctor={doctor_id} "
        f"symptoms={len(labels)} meds={len(medications)} patterns_v={doc.version}"
    )
    return record
