# app/services/llm/prompts.py
from typing import List

from app.schemas.models import RecommendationCandidate
from app.services.llm.schemas import DIAGNOSIS_CONTRACT, SUGGESTIONS_CONTRACT


def _candidate_block(c: RecommendationCandidate) -> str:
    return (
        f"- {c.name}:\n"
        f"  * Prescribed {c.count} times\n"
        f"  * Typical dosage: {c.dosage}\n"
        f"  * Usually given: {c.frequency}\n"
        f"  * Common duration: {c.duration}"
    )


def build_personalized_prompt(
    doctor_name: str,
    symptoms: List[str],
    candidates: List[RecommendationCandidate],
) -> str:
    history = "\n".join(_candidate_block(c) for c in candidates) or "- (no prior prescriptions)"
    return (
        f"Based on Dr. {doctor_name.strip() or 'Unknown'}'s prescription history:\n"
        "\n"
        f"Current Symptoms: {', '.join(symptoms)}\n"
        "\n"
        "Most frequently prescribed medications for these symptoms:\n"
        f"{history}\n"
        "\n"
        "Generate a prescription following these patterns and current medical best practices.\n"
        "Return ONLY a JSON array with this structure:\n"
        f"{SUGGESTIONS_CONTRACT}\n"
        "Do not wrap the JSON in explanations, headings or any other text.\n"
    )


def build_diagnosis_prompt(symptoms: List[str]) -> str:
    return (
        f"Given the following symptoms: {', '.join(symptoms)}, provide a clinical assessment that includes:\n"
        "1. A likely medical diagnosis based on the presented symptoms\n"
        "2. A list of appropriate medicines with their dosage, frequency, duration, "
        "and any specific notes relevant to administration\n"
        "\n"
        "Format the output strictly as a JSON object using the structure below:\n"
        f"{DIAGNOSIS_CONTRACT}\n"
        "\n"
        "This output will be reviewed by a supervising physician. Do not include general health "
        "disclaimers, warnings, or follow-up advice. Respond only with the JSON object and no additional text.\n"
    )
