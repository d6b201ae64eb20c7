import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from voice_ledger.api.v1.transactions import router as transactions_router
from voice_ledger.core.config import get_settings
from voice_ledger.services.ai.transcription.stages import PipelineConfigError, build_pipeline

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Voice Ledger API",
    version="1.0.0",
    docs_url="/docs" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.openapi_enabled else None,
)


@app.on_event("startup")
async def _startup_checks():
    errors = list(settings.validate_required_config())
    try:
        build_pipeline(settings.transcription_pipeline)
    except PipelineConfigError as exc:
        errors.append(f"TRANSCRIPTION_PIPELINE: {exc}")

    if not errors:
        return
    environment = os.getenv("ENVIRONMENT", settings.environment).strip().lower()
    if environment == "production":
        raise RuntimeError(
            "Configuration validation failed in production environment: " + "; ".join(errors)
        )
    for error in errors:
        logger.warning("Config: %s", error)


if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type", "Accept"],
    )

app.include_router(transactions_router, prefix="/api", tags=["transactions"])


@app.get("/health", include_in_schema=False)
async def health():
    return {"status": "ok"}


@app.exception_handler(StarletteHTTPException)
async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    content = {"error": exc.detail}
    # Underlying cause only when explicitly enabled.
    if exc.status_code >= 500 and settings.expose_error_details and exc.__cause__ is not None:
        content["details"] = str(exc.__cause__)
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid or incomplete request data.", "details": details},
    )


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    if settings.expose_error_details:
        return JSONResponse(status_code=500, content={"error": "Internal server error", "details": str(exc)})
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def main():
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "8000")))


if __name__ == "__main__":
    main()
