# app/services/ranker.py
from typing import Dict, List, Optional, Tuple

from app.core.llm_config import RECOMMENDATION_LIMIT, REPRESENTATIVE_DOSAGE, REPRESENTATIVE_DOSAGE_POLICIES
from app.schemas.models import PatternDocument, RecommendationCandidate
from app.services import pattern_store
from app.services.pattern_aggregator import clean_symptoms

Triple = Tuple[str, str, str]

_POLICIES = REPRESENTATIVE_DOSAGE_POLICIES


def _representative(variants: Dict[Triple, int], policy: str) -> Triple:
    # dicts keep insertion order, so the first key is the first observed variant
    triples = list(variants)
    if policy == "first_seen":
        return triples[0]
    best = triples[0]
    for t in triples[1:]:
        if variants[t] > variants[best]:
            best = t
    return best


def rank_from_document(
    doc: PatternDocument,
    symptoms: List[str],
    limit: int = RECOMMENDATION_LIMIT,
    policy: str = REPRESENTATIVE_DOSAGE,
) -> List[RecommendationCandidate]:
    if policy not in _POLICIES:
        raise ValueError(f"unknown representative dosage policy: {policy!r}")

    # requested symptoms only decide which names qualify
    wanted = set()
    for symptom in clean_symptoms(symptoms):
        sp = doc.symptoms.get(symptom)
        if sp is not None:
            wanted.update(mp.name for mp in sp.medications)

    # counts and variants come from every symptom the name was prescribed for
    counts: Dict[str, int] = {}
    variants: Dict[str, Dict[Triple, int]] = {}
    for sp in doc.symptoms.values():
        for mp in sp.medications:
            if mp.name not in wanted:
                continue
            counts[mp.name] = counts.get(mp.name, 0) + mp.count
            merged = variants.setdefault(mp.name, {})
            for p in mp.patterns:
                key = (p.dosage, p.frequency, p.duration)
                merged[key] = merged.get(key, 0) + p.use_count

    usable = [name for name in counts if variants[name]]
    ranked = sorted(usable, key=lambda name: (-counts[name], name))[: max(0, limit)]

    out: List[RecommendationCandidate] = []
    for name in ranked:
        dosage, frequency, duration = _representative(variants[name], policy)
        out.append(RecommendationCandidate(
            name=name,
            dosage=dosage,
            frequency=frequency,
            duration=duration,
            count=counts[name],
        ))
    return out


def rank_medications(
    doctor_id: str,
    symptoms: List[str],
    limit: Optional[int] = None,
    policy: Optional[str] = None,
) -> List[RecommendationCandidate]:
    """
    Medications this doctor has prescribed for any of `symptoms`, ranked by
    their total count across all of the doctor's symptoms (ties by name),
    each reduced to one representative dosage/frequency/duration.
    A doctor without history gets [].
    """
    doc = pattern_store.load_patterns(doctor_id)
    return rank_from_document(
        doc,
        symptoms,
        limit=RECOMMENDATION_LIMIT if limit is None else limit,
        policy=policy or REPRESENTATIVE_DOSAGE,
    )
