# app/agent/nodes.py
from typing import Any, Dict

from app.agent.state import RecommendState
from app.schemas.models import PersonalizedSuggestion, RecommendationCandidate
from app.services.gemini_client import generate_text
from app.services.llm.prompts import build_diagnosis_prompt, build_personalized_prompt
from app.services.llm.sanitize import parse_diagnosis_response, parse_suggestions
from app.services.llm.schemas import DIAGNOSIS_GENERATION, PERSONALIZED_GENERATION
from app.services.ranker import rank_medications

def _audit(state: RecommendState, event: str, extra: Dict[str, Any] | None = None) -> Dict[str, Any]:
    audit = list(state.get("audit") or [])
    audit.append({"event": event, **(extra or {})})
    return {"audit": audit}

def rank_node(state: RecommendState) -> Dict[str, Any]:
    doctor_id = (state.get("doctor_id") or "").strip()
    if not doctor_id:
        return {"candidates": [], **_audit(state, "rank.skip", {"reason": "no doctor"})}

    candidates = rank_medications(doctor_id, state.get("symptoms") or [])
    return {
        "candidates": [c.model_dump() for c in candidates],
        **_audit(state, "rank.done", {"count": len(candidates)}),
    }

def route_after_rank(state: RecommendState) -> str:
    # personalized only when this doctor has history for these symptoms
    return "personalized" if state.get("candidates") else "diagnosis"

def personalized_prompt_node(state: RecommendState) -> Dict[str, Any]:
    candidates = [RecommendationCandidate(**c) for c in state["candidates"]]
    prompt = build_personalized_prompt(state.get("doctor_name") or "", state["symptoms"], candidates)
    return {"mode": "personalized", "prompt": prompt, **_audit(state, "prompt.personalized")}

def diagnosis_prompt_node(state: RecommendState) -> Dict[str, Any]:
    prompt = build_diagnosis_prompt(state["symptoms"])
    return {"mode": "diagnosis", "prompt": prompt, **_audit(state, "prompt.diagnosis")}

def generate_node(state: RecommendState) -> Dict[str, Any]:
    config = PERSONALIZED_GENERATION if state["mode"] == "personalized" else DIAGNOSIS_GENERATION
    raw = generate_text(state["prompt"], config=config)
    return {"raw_text": raw, **_audit(state, "generate.done", {"chars": len(raw)})}

def validate_node(state: RecommendState) -> Dict[str, Any]:
    raw = state["raw_text"]
    if state["mode"] == "personalized":
        result = PersonalizedSuggestion(
            suggestions=parse_suggestions(raw),
            candidates=[RecommendationCandidate(**c) for c in state["candidates"]],
        )
        count = len(result.suggestions)
    else:
        result = parse_diagnosis_response(raw)
        count = len(result.medicines)
    return {"result": result.model_dump(), **_audit(state, "validate.done", {"count": count})}
