from typing import Annotated, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

LearningSource = Literal["learned", "ai"]

SAFETY_NOTE = (
    "AI-generated suggestion based on prescription history. "
    "It must be reviewed by the prescribing doctor before use."
)

class WireModel(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class Medication(WireModel):
    name: str
    dosage: str
    frequency: str = ""
    duration: str = ""
    notes: Optional[str] = None

# ---------------------------
# Pattern store aggregate
# ---------------------------
class DosagePattern(WireModel):
    dosage: str
    frequency: str
    duration: str
    use_count: int = Field(default=1, ge=1)

    def matches(self, med: Medication) -> bool:
        return (self.dosage, self.frequency, self.duration) == (med.dosage, med.frequency, med.duration)

class MedicationPattern(WireModel):
    name: str
    count: int = 0
    last_used: str
    patterns: List[DosagePattern] = Field(default_factory=list)

class SymptomPattern(WireModel):
    symptom: str
    medications: List[MedicationPattern] = Field(default_factory=list)

class PatternDocument(WireModel):
    doctor_id: str
    version: int = 0
    symptoms: Dict[str, SymptomPattern] = Field(default_factory=dict)

class PrescriptionRecord(WireModel):
    record_id: str
    doctor_id: str
    patient_id: str
    symptoms: List[str]
    final_prescription: List[Medication]
    ai_prescription: List[Medication] = Field(default_factory=list)
    timestamp: str

class RecommendationCandidate(WireModel):
    name: str
    dosage: str
    frequency: str
    duration: str
    count: int

# ---------------------------
# Suggestion results (tagged by mode)
# ---------------------------
class PersonalizedSuggestion(WireModel):
    mode: Literal["personalized"] = "personalized"
    suggestions: List[Medication]
    candidates: List[RecommendationCandidate] = Field(default_factory=list)
    safety_note: str = SAFETY_NOTE

class DiagnosisSuggestion(WireModel):
    mode: Literal["diagnosis"] = "diagnosis"
    diagnosis: str
    medicines: List[Medication]
    safety_note: str = SAFETY_NOTE

SuggestionResult = Annotated[Union[PersonalizedSuggestion, DiagnosisSuggestion], Field(discriminator="mode")]

# ---------------------------
# Requests / responses
# ---------------------------
class RecordPrescriptionRequest(WireModel):
    doctor_id: str = Field(..., min_length=1)
    patient_id: str = Field(..., min_length=1)
    symptoms: List[str] = Field(default_factory=list)
    final_prescription: List[Medication]
    ai_prescription: Optional[List[Medication]] = None

class RecordPrescriptionResponse(WireModel):
    success: bool = True
    prescription_id: str

class RecommendRequest(WireModel):
    doctor_id: str = Field(..., min_length=1)
    doctor_name: str = ""
    symptoms: List[str]

class DiagnoseRequest(WireModel):
    symptoms: List[str]

class PreferencesResponse(WireModel):
    doctor_id: str
    frequent_meds: List[str]

class LearningRequest(WireModel):
    doctor_id: Optional[str] = None
    disease: str = Field(..., min_length=1)
    symptoms: List[str] = Field(default_factory=list)
    prescription: List[Medication]

class LearningLookupRequest(WireModel):
    disease: str = ""
    symptoms: List[str] = Field(default_factory=list)

class LearnedPrescriptionResponse(WireModel):
    source: LearningSource
    prescription: List[Medication]
    diagnosis: Optional[str] = None

class MessageResponse(WireModel):
    message: str

class GenerationConfig(BaseModel):
    temperature: float = Field(default=0.3, ge=0.0, le=1.0)
    top_k: int = Field(default=1, ge=1)
    top_p: float = Field(default=1.0, gt=0.0, le=1.0)
    max_output_tokens: int = Field(default=1024, ge=1)

    def to_request(self) -> Dict[str, float]:
        return {
            "temperature": self.temperature,
            "topK": self.top_k,
            "topP": self.top_p,
            "maxOutputTokens": self.max_output_tokens,
        }
