# app/api/routes_prescriptions.py
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from app.schemas.models import (
    LearningRequest,
    MessageResponse,
    PatternDocument,
    PreferencesResponse,
    RecordPrescriptionRequest,
    RecordPrescriptionResponse,
)
from app.services.learning_store import save_learning
from app.services.pattern_aggregator import record_prescription
from app.services.pattern_store import load_patterns
from app.services.preferences import frequent_medications

router = APIRouter(tags=["prescriptions"])

@router.post("/prescriptions", response_model=RecordPrescriptionResponse)
def save_prescription(req: RecordPrescriptionRequest):
    if not req.final_prescription:
        raise HTTPException(status_code=400, detail="finalPrescription must contain at least one medicine")

    record = record_prescription(
        doctor_id=req.doctor_id,
        patient_id=req.patient_id,
        symptoms=req.symptoms,
        medications=req.final_prescription,
        ai_prescription=req.ai_prescription,
    )
    return RecordPrescriptionResponse(prescription_id=record.record_id)

@router.get("/prescriptions/preferences", response_model=PreferencesResponse)
def preferences(
    doctor_id: Optional[str] = Query(default=None, alias="doctorId"),
    symptoms: Optional[str] = Query(default=None, description="comma-separated symptom filter"),
    limit: Optional[int] = Query(default=None, ge=1, le=100),
):
    if not doctor_id:
        raise HTTPException(status_code=400, detail="Doctor ID is required")

    wanted = [s for s in (symptoms or "").split(",") if s.strip()]
    return PreferencesResponse(
        doctor_id=doctor_id,
        frequent_meds=frequent_medications(doctor_id, wanted or None, limit),
    )

@router.get("/prescriptions/patterns", response_model=PatternDocument)
def patterns(doctor_id: str = Query(..., alias="doctorId", min_length=1)):
    return load_patterns(doctor_id)

@router.post("/learnings", response_model=MessageResponse)
def save_learning_route(req: LearningRequest):
    if not req.prescription:
        raise HTTPException(status_code=400, detail="prescription must contain at least one medicine")
    save_learning(req.disease, req.prescription, symptoms=req.symptoms, doctor_id=req.doctor_id)
    return MessageResponse(message="Prescription saved successfully")
