# app/api/routes_ai.py
from typing import List, Union

from fastapi import APIRouter, HTTPException

from app.schemas.models import (
    DiagnoseRequest,
    DiagnosisSuggestion,
    LearnedPrescriptionResponse,
    LearningLookupRequest,
    PersonalizedSuggestion,
    RecommendRequest,
)
from app.services.recommender import learned_or_generated, recommend

router = APIRouter(prefix="/ai", tags=["ai"])

def _require_symptoms(symptoms: List[str]) -> None:
    if not any((s or "").strip() for s in symptoms):
        raise HTTPException(status_code=400, detail="Symptoms array is required")

@router.post("/recommend", response_model=Union[PersonalizedSuggestion, DiagnosisSuggestion])
def ai_recommend(req: RecommendRequest):
    _require_symptoms(req.symptoms)
    return recommend(req.symptoms, doctor_id=req.doctor_id, doctor_name=req.doctor_name)

@router.post("/diagnose", response_model=DiagnosisSuggestion)
def ai_diagnose(req: DiagnoseRequest):
    _require_symptoms(req.symptoms)
    return recommend(req.symptoms)

@router.post("/prescriptions", response_model=LearnedPrescriptionResponse)
def ai_prescriptions(req: LearningLookupRequest):
    try:
        return learned_or_generated(req.disease, req.symptoms)
    except ValueError:
        # nothing learned for this disease and no symptoms to fall back on
        raise HTTPException(status_code=400, detail="No learned prescription; symptoms are required for AI fallback.")
