import pytest

from app.schemas.models import MedicationPattern, PatternDocument
from app.services.pattern_aggregator import fold_prescription, record_prescription
from app.services.ranker import rank_from_document, rank_medications
from conftest import med


def _doc(*prescriptions):
    doc = PatternDocument(doctor_id="d1")
    for i, (symptoms, meds) in enumerate(prescriptions):
        fold_prescription(doc, symptoms, meds, f"t{i}")
    return doc


def test_fresh_doctor_gets_no_candidates():
    assert rank_medications("fresh", ["fever"]) == []


def test_single_history_entry():
    record_prescription(
        "d1", "p1", ["fever"], [med("Paracetamol", dosage="500mg", frequency="6h", duration="3d")]
    )
    out = rank_medications("d1", ["fever"])
    assert [c.model_dump() for c in out] == [
        {"name": "Paracetamol", "dosage": "500mg", "frequency": "6h", "duration": "3d", "count": 1}
    ]


def test_unrelated_symptom_returns_nothing():
    record_prescription("d1", "p1", ["fever"], [med("Paracetamol")])
    assert rank_medications("d1", ["rash"]) == []


def test_union_of_disjoint_symptoms_keeps_own_counts():
    doc = _doc(
        (["fever"], [med("Paracetamol")]),
        (["fever"], [med("Paracetamol")]),
        (["cough"], [med("Dextromethorphan")]),
    )
    out = rank_from_document(doc, ["fever", "cough"])
    assert [(c.name, c.count) for c in out] == [("Paracetamol", 2), ("Dextromethorphan", 1)]


def test_shared_medication_appears_once():
    doc = _doc((["fever", "headache"], [med("Paracetamol")]))
    out = rank_from_document(doc, ["fever", "headache", "fever"])
    assert [(c.name, c.count) for c in out] == [("Paracetamol", 2)]


def test_sorted_by_count_then_name():
    doc = _doc(
        (["fever"], [med("Zinc"), med("Ibuprofen"), med("Aspirin")]),
        (["fever"], [med("Ibuprofen")]),
    )
    out = rank_from_document(doc, ["fever"])
    assert [c.name for c in out] == ["Ibuprofen", "Aspirin", "Zinc"]
    counts = [c.count for c in out]
    assert counts == sorted(counts, reverse=True)


def test_never_more_than_five():
    doc = _doc((["fever"], [med(f"Med{i}") for i in range(9)]))
    assert len(rank_from_document(doc, ["fever"])) == 5
    assert len(rank_from_document(doc, ["fever"], limit=3)) == 3


def test_representative_dosage_most_used_vs_first_seen():
    doc = _doc(
        (["fever"], [med("Paracetamol", dosage="500mg")]),
        (["fever"], [med("Paracetamol", dosage="650mg")]),
        (["fever"], [med("Paracetamol", dosage="650mg")]),
    )
    assert rank_from_document(doc, ["fever"], policy="most_used")[0].dosage == "650mg"
    assert rank_from_document(doc, ["fever"], policy="first_seen")[0].dosage == "500mg"


def test_most_used_tie_keeps_first_observed_variant():
    doc = _doc(
        (["fever"], [med("Paracetamol", dosage="500mg")]),
        (["fever"], [med("Paracetamol", dosage="650mg")]),
    )
    assert rank_from_document(doc, ["fever"], policy="most_used")[0].dosage == "500mg"


def test_variants_merged_across_requested_symptoms():
    doc = _doc(
        (["fever"], [med("Paracetamol", dosage="500mg")]),
        (["headache"], [med("Paracetamol", dosage="650mg")]),
        (["headache"], [med("Paracetamol", dosage="650mg")]),
    )
    top = rank_from_document(doc, ["fever", "headache"], policy="most_used")[0]
    assert (top.dosage, top.count) == ("650mg", 3)


def test_unknown_policy_rejected():
    with pytest.raises(ValueError):
        rank_from_document(PatternDocument(doctor_id="d1"), ["fever"], policy="random")


def test_count_includes_symptoms_that_were_not_requested():
    doc = _doc(
        (["fever"], [med("Paracetamol")]),
        (["headache"], [med("Paracetamol")]),
        (["headache"], [med("Paracetamol")]),
        (["headache"], [med("Sumatriptan")]),
    )
    out = rank_from_document(doc, ["fever"])
    assert [(c.name, c.count) for c in out] == [("Paracetamol", 3)]


def test_first_seen_variant_comes_from_whole_history():
    doc = _doc(
        (["headache"], [med("Paracetamol", dosage="650mg")]),
        (["fever"], [med("Paracetamol", dosage="500mg")]),
    )
    assert rank_from_document(doc, ["fever"], policy="first_seen")[0].dosage == "650mg"


def test_default_policy_uses_first_stored_variant():
    record_prescription("d1", "p1", ["fever"], [med("Paracetamol", dosage="500mg")])
    record_prescription("d1", "p1", ["fever"], [med("Paracetamol", dosage="650mg")])
    record_prescription("d1", "p1", ["fever"], [med("Paracetamol", dosage="650mg")])

    top = rank_medications("d1", ["fever"])[0]
    assert (top.dosage, top.count) == ("500mg", 3)


def test_medications_without_variants_do_not_use_up_slots():
    doc = _doc((["fever"], [med(f"Med{i}") for i in range(5)]))
    damaged = doc.symptoms["fever"].medications
    damaged.append(MedicationPattern(name="Broken", count=50, last_used="t9", patterns=[]))

    out = rank_from_document(doc, ["fever"])
    assert [c.name for c in out] == [f"Med{i}" for i in range(5)]
