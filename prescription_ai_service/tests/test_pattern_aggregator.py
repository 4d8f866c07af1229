import sqlite3
import threading

import pytest

from app.schemas.models import PatternDocument
from app.services import pattern_store
from app.services.errors import PersistenceUnavailable
from app.services.pattern_aggregator import clean_symptoms, fold_prescription, record_prescription
from conftest import med


def test_clean_symptoms_strips_and_dedupes():
    assert clean_symptoms([" fever", "cough ", "", "fever", "  "]) == ["fever", "cough"]


def test_fold_creates_symptom_medication_and_dosage():
    doc = PatternDocument(doctor_id="d1")
    fold_prescription(doc, ["fever"], [med("Paracetamol")], "2026-01-01T00:00:00+00:00")

    sp = doc.symptoms["fever"]
    assert sp.symptom == "fever"
    assert len(sp.medications) == 1
    mp = sp.medications[0]
    assert (mp.name, mp.count, mp.last_used) == ("Paracetamol", 1, "2026-01-01T00:00:00+00:00")
    assert [(p.dosage, p.frequency, p.duration, p.use_count) for p in mp.patterns] == [("500mg", "6h", "3d", 1)]


def test_fold_new_dosage_variant_is_appended():
    doc = PatternDocument(doctor_id="d1")
    fold_prescription(doc, ["fever"], [med("Paracetamol")], "t1")
    fold_prescription(doc, ["fever"], [med("Paracetamol", dosage="650mg")], "t2")
    fold_prescription(doc, ["fever"], [med("Paracetamol", dosage="650mg")], "t3")

    mp = doc.symptoms["fever"].medications[0]
    assert mp.count == 3
    assert mp.last_used == "t3"
    assert [(p.dosage, p.use_count) for p in mp.patterns] == [("500mg", 1), ("650mg", 2)]
    assert mp.count == sum(p.use_count for p in mp.patterns)


def test_fold_medication_name_match_is_case_sensitive():
    doc = PatternDocument(doctor_id="d1")
    fold_prescription(doc, ["fever"], [med("Paracetamol"), med("paracetamol")], "t1")
    assert [m.name for m in doc.symptoms["fever"].medications] == ["Paracetamol", "paracetamol"]


def test_fold_applies_every_medication_to_every_symptom():
    doc = PatternDocument(doctor_id="d1")
    fold_prescription(doc, ["fever", "cough"], [med("A"), med("B")], "t1")
    for symptom in ("fever", "cough"):
        assert [m.name for m in doc.symptoms[symptom].medications] == ["A", "B"]


def test_recording_same_prescription_n_times_counts_n():
    for _ in range(4):
        record_prescription("d1", "p1", ["fever"], [med("Paracetamol")])

    doc = pattern_store.load_patterns("d1")
    mp = doc.symptoms["fever"].medications[0]
    assert mp.count == 4
    assert len(mp.patterns) == 1
    assert mp.patterns[0].use_count == 4
    assert doc.version == 4


def test_record_prescription_appends_history():
    rec = record_prescription(
        "d1", "p1", ["fever", " fever "], [med("Paracetamol")], ai_prescription=[med("Ibuprofen")]
    )
    assert rec.symptoms == ["fever"]

    history = pattern_store.recent_records("d1", 10)
    assert [r.record_id for r in history] == [rec.record_id]
    assert history[0].patient_id == "p1"
    assert [m.name for m in history[0].ai_prescription] == ["Ibuprofen"]


def test_unknown_doctor_has_empty_document():
    doc = pattern_store.load_patterns("nobody")
    assert doc.symptoms == {}
    assert doc.version == 0


def test_concurrent_recordings_do_not_lose_updates():
    errors = []

    def worker():
        try:
            record_prescription("d1", "p1", ["fever"], [med("Paracetamol")])
        except Exception as e:  # pragma: no cover - surfaced below
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    mp = pattern_store.load_patterns("d1").symptoms["fever"].medications[0]
    assert mp.count == 8
    assert len(pattern_store.recent_records("d1", 20)) == 8


def test_version_conflict_is_retried_on_fresh_document(monkeypatch):
    record_prescription("d1", "p1", ["fever"], [med("Paracetamol")])

    real_read = pattern_store._read_document
    calls = {"n": 0}

    def stale_once(conn, doctor_id):
        doc = real_read(conn, doctor_id)
        calls["n"] += 1
        if calls["n"] == 1:
            doc.version -= 1  # pretend another writer committed after our read
        return doc

    monkeypatch.setattr(pattern_store, "_read_document", stale_once)
    record_prescription("d1", "p1", ["fever"], [med("Paracetamol")])

    assert calls["n"] == 2
    monkeypatch.setattr(pattern_store, "_read_document", real_read)
    doc = pattern_store.load_patterns("d1")
    assert doc.symptoms["fever"].medications[0].count == 2
    # the losing attempt was rolled back with its history row
    assert len(pattern_store.recent_records("d1", 10)) == 2


def test_persistent_conflict_raises_persistence_unavailable(monkeypatch):
    record_prescription("d1", "p1", ["fever"], [med("Paracetamol")])
    real_read = pattern_store._read_document

    def always_stale(conn, doctor_id):
        doc = real_read(conn, doctor_id)
        doc.version -= 1
        return doc

    monkeypatch.setattr(pattern_store, "_read_document", always_stale)
    with pytest.raises(PersistenceUnavailable):
        record_prescription("d1", "p1", ["fever"], [med("Paracetamol")])

    monkeypatch.setattr(pattern_store, "_read_document", real_read)
    assert pattern_store.load_patterns("d1").symptoms["fever"].medications[0].count == 1


def test_storage_failure_is_persistence_unavailable(monkeypatch):
    def broken():
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(pattern_store, "get_sqlite_connection", broken)
    with pytest.raises(PersistenceUnavailable) as exc:
        record_prescription("d1", "p1", ["fever"], [med("Paracetamol")])
    assert exc.value.retryable is True

    with pytest.raises(PersistenceUnavailable):
        pattern_store.load_patterns("d1")
