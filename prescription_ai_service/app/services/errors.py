# app/services/errors.py
from typing import Any, Dict, Optional


class EngineError(RuntimeError):
    """Base class for failures surfaced by the recommendation engine."""

    status_code = 500
    retryable = False
    message = "Recommendation engine failure"

    def __init__(self, detail: str = "", **extra: Any):
        super().__init__(detail or self.message)
        self.detail = detail or self.message
        self.extra = extra

    def to_payload(self) -> Dict[str, Any]:
        details: Dict[str, Any] = {"reason": self.detail, "retryable": self.retryable}
        details.update(self.extra)
        return {"error": self.message, "details": details}


class PersistenceUnavailable(EngineError):
    """The pattern/history store could not be read or written."""

    status_code = 503
    retryable = True
    message = "Prescription store unavailable"


class GenerationUnavailable(EngineError):
    """Transport-level failure talking to the generation endpoint."""

    status_code = 502
    retryable = True
    message = "Generation endpoint unavailable"

    def __init__(self, detail: str = "", upstream_status: Optional[int] = None):
        super().__init__(detail, upstream_status=upstream_status)
        self.upstream_status = upstream_status


class GenerationMalformed(EngineError):
    """The endpoint answered, but the response envelope is not what we expect."""

    status_code = 502
    message = "Unexpected response envelope from generation endpoint"


class InvalidGenerationOutput(EngineError):
    status_code = 502
    message = "Invalid response format from AI"

    # only a preview of the model text goes back to HTTP callers
    PREVIEW_CHARS = 200

    def __init__(self, detail: str, raw_text: str):
        super().__init__(detail)
        self.raw_text = raw_text

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["details"]["raw_preview"] = (self.raw_text or "")[: self.PREVIEW_CHARS]
        return payload
