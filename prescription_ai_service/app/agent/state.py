from typing import Any, Dict, List, Optional, TypedDict

class RecommendState(TypedDict, total=False):
    # inputs
    doctor_id: Optional[str]
    doctor_name: str
    symptoms: List[str]

    # rank -> prompt
    candidates: List[Dict[str, Any]]   # RecommendationCandidate dicts
    mode: str                          # "personalized" | "diagnosis"
    prompt: str

    # generate -> validate
    raw_text: str
    result: Dict[str, Any]             # PersonalizedSuggestion / DiagnosisSuggestion dict

    audit: List[Dict[str, Any]]
