# app/services/llm/sanitize.py
import json
from typing import Any, Dict, List, Optional

from app.schemas.models import DiagnosisSuggestion, Medication
from app.services.errors import InvalidGenerationOutput
from app.services.llm.schemas import MEDICATION_KEYS, REQUIRED_MEDICATION_KEYS

_FENCE_OPENERS = ("```json", "```")
_FENCE = "```"


def strip_code_fence(text: str) -> str:
    """Remove a leading ```json / ``` and a trailing ``` (prefix/suffix only)."""
    out = (text or "").strip()
    for opener in _FENCE_OPENERS:
        if out.startswith(opener):
            out = out[len(opener):]
            break
    if out.endswith(_FENCE):
        out = out[: -len(_FENCE)]
    return out.strip()


def _load_json(raw: str) -> Any:
    cleaned = strip_code_fence(raw)
    if not cleaned:
        raise InvalidGenerationOutput("model returned no content", raw_text=raw or "")
    try:
        return json.loads(cleaned)
    except ValueError as e:
        raise InvalidGenerationOutput(f"model output is not valid JSON: {e}", raw_text=raw) from e


def _as_text(v: Any) -> Optional[str]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (str, int, float)):
        return str(v).strip()
    return None


def sanitize_medication(item: Any) -> Optional[Medication]:
    """A Medication if `item` carries the required keys, else None."""
    if not isinstance(item, dict):
        return None

    fields: Dict[str, str] = {}
    for key in MEDICATION_KEYS:
        value = _as_text(item.get(key))
        if value:
            fields[key] = value

    if any(key not in fields for key in REQUIRED_MEDICATION_KEYS):
        return None
    return Medication(**fields)


def sanitize_medications(items: List[Any]) -> List[Medication]:
    out: List[Medication] = []
    for item in items:
        med = sanitize_medication(item)
        if med is not None:
            out.append(med)
    return out


def parse_suggestions(raw: str) -> List[Medication]:
    """
    Parse a personalized-suggestion reply (a JSON array of medicines).
    Elements missing name/dosage are dropped; anything that is not a JSON
    array raises InvalidGenerationOutput.
    """
    data = _load_json(raw)
    if not isinstance(data, list):
        raise InvalidGenerationOutput(
            f"expected a JSON array of medicines, got {type(data).__name__}", raw_text=raw
        )
    return sanitize_medications(data)


def parse_diagnosis_response(raw: str) -> DiagnosisSuggestion:
    data = _load_json(raw)
    if not isinstance(data, dict):
        raise InvalidGenerationOutput(
            f"expected a JSON object with diagnosis and medicines, got {type(data).__name__}", raw_text=raw
        )

    diagnosis = data.get("diagnosis")
    if not isinstance(diagnosis, str) or not diagnosis.strip():
        raise InvalidGenerationOutput("diagnosis is missing or not a string", raw_text=raw)

    medicines = data.get("medicines")
    if not isinstance(medicines, list):
        raise InvalidGenerationOutput("medicines is missing or not an array", raw_text=raw)

    return DiagnosisSuggestion(diagnosis=diagnosis.strip(), medicines=sanitize_medications(medicines))
