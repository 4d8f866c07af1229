# app/services/recommender.py
import logging
from typing import List, Optional

from app.agent.graph import recommend_graph
from app.schemas.models import (
    DiagnosisSuggestion,
    LearnedPrescriptionResponse,
    PersonalizedSuggestion,
    SuggestionResult,
)
from app.services.errors import InvalidGenerationOutput
from app.services.learning_store import find_learning
from app.services.pattern_aggregator import clean_symptoms

logger = logging.getLogger("prescription_ai.recommender")


def recommend(symptoms: List[str], doctor_id: Optional[str] = None, doctor_name: str = "") -> SuggestionResult:
    """
    Rank the doctor's history for `symptoms` and ask the model for a
    prescription. Without usable history the symptom-only diagnosis prompt
    is used instead; the result's `mode` says which one ran.
    """
    labels = clean_symptoms(symptoms)
    if not labels:
        raise ValueError("at least one symptom is required")

    initial_state = {
        "doctor_id": doctor_id,
        "doctor_name": doctor_name or "",
        "symptoms": labels,
        "audit": [],
    }

    try:
        final_state = recommend_graph.invoke(initial_state)
    except InvalidGenerationOutput as e:
        logger.warning(f"discarding model output ({e.detail}); raw={e.raw_text[:500]!r}")
        raise

    logger.info(f"recommendation done doctor={doctor_id} audit={final_state.get('audit')}")

    result = final_state["result"]
    if final_state.get("mode") == "personalized":
        return PersonalizedSuggestion.model_validate(result)
    return DiagnosisSuggestion.model_validate(result)


def learned_or_generated(disease: str, symptoms: List[str]) -> LearnedPrescriptionResponse:
    """A prescription previously learned for `disease`, else a fresh diagnosis-path suggestion."""
    learned = find_learning(disease)
    if learned is not None:
        return LearnedPrescriptionResponse(source="learned", prescription=learned)

    result = recommend(symptoms)
    # no doctor id, so this is always the diagnosis path
    return LearnedPrescriptionResponse(source="ai", prescription=result.medicines, diagnosis=result.diagnosis)
