import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.llm_config import LOG_LEVEL
from app.api.routes_ai import router as ai_router
from app.api.routes_prescriptions import router as prescriptions_router
from app.services.errors import EngineError

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger("prescription_ai")

app = FastAPI(title="Prescription Recommendation Engine (AI + LangGraph)", version="1.0")

app.include_router(prescriptions_router)
app.include_router(ai_router)

@app.exception_handler(EngineError)
async def _engine_error_handler(request: Request, exc: EngineError):
    logger.warning(f"{request.url.path}: {type(exc).__name__}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

@app.exception_handler(HTTPException)
async def _http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

@app.exception_handler(RequestValidationError)
async def _request_validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "details": {"errors": jsonable_encoder(exc.errors())}},
    )

@app.get("/health")
def health():
    return {"ok": True}
@app.get("/")
def root():
    return {"ok": True, "service": "Prescription Recommendation Engine (AI + LangGraph)"}
