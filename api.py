"""
NYKO Patterns — FastAPI Server
===============================

RESTful API for validating pattern documents before they are submitted.

Endpoints:
    POST /validate          Validate pattern YAML sent as text
    POST /validate/file     Upload a .yaml file for validation
    GET  /categories        The closed list of pattern categories
    GET  /health            Health check / readiness probe

Run:
    uvicorn api:app --reload              # Dev (http://localhost:8000)
    uvicorn api:app --host 0.0.0.0        # Production

Docs:
    http://localhost:8000/docs             # Swagger UI (auto-generated)
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, UploadFile
from pydantic import BaseModel, Field

from nyko_patterns import __version__
from nyko_patterns.models import Severity, ValidationFinding, ValidationReport
from nyko_patterns.pipeline import PatternValidationPipeline
from nyko_patterns.validators import VALID_CATEGORIES, VALIDATORS

# ─── Load .env if available ──────────────────────────────────────────
try:
    from dotenv import load_dotenv

    load_dotenv()
except ImportError:
    pass

MAX_UPLOAD_BYTES = 1_048_576


# ─── Application Lifespan ───────────────────────────────────────────

_pipeline: PatternValidationPipeline | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _pipeline  # noqa: PLW0603
    _pipeline = PatternValidationPipeline()
    yield
    _pipeline = None


# ─── FastAPI App ─────────────────────────────────────────────────────

app = FastAPI(
    title="NYKO Patterns API",
    description=(
        "Schema validation for NYKO pattern documents. Every rule runs on "
        "every request, so one call reports all defects at once."
    ),
    version=__version__,
    lifespan=lifespan,
)


# ─── Request / Response Schemas ─────────────────────────────────────


class ValidateRequest(BaseModel):
    """Request body for the /validate endpoint."""

    content: str = Field(
        ...,
        description="The pattern document as YAML text.",
        json_schema_extra={
            "example": (
                "id: clerk-nextjs\n"
                "version: 1.0.0\n"
                "updated_at: '2024-01-15'\n"
                "name: Clerk Auth for Next.js\n"
                "category: auth\n"
            )
        },
    )
    source: Optional[str] = Field(
        default=None, description="Label echoed back in the report (e.g. a file path)."
    )


class ValidateResponse(BaseModel):
    """Structured validation report returned by the API."""

    source: str
    document_id: str
    is_valid: bool
    error_count: int
    warning_count: int
    findings: list[ValidationFinding]

    model_config = {"json_schema_extra": {"example": {
        "source": "auth/clerk-nextjs.yaml",
        "document_id": "clerk-nextjs",
        "is_valid": False,
        "error_count": 1,
        "warning_count": 0,
        "findings": [
            {
                "severity": "error",
                "code": "INSUFFICIENT_EDGE_CASES",
                "field": "edge_cases",
                "message": "At least 3 edge cases are required",
                "details": {"count": 2},
            }
        ],
    }}}


class CategoriesResponse(BaseModel):
    categories: list[str]


class HealthResponse(BaseModel):
    status: str
    version: str
    checks_loaded: int


# ─── Helpers ─────────────────────────────────────────────────────────


def _get_pipeline() -> PatternValidationPipeline:
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not initialised")
    return _pipeline


def _build_response(report: ValidationReport) -> ValidateResponse:
    return ValidateResponse(
        source=report.source,
        document_id=report.document_id,
        is_valid=report.is_valid,
        error_count=sum(1 for f in report.findings if f.severity == Severity.ERROR),
        warning_count=sum(1 for f in report.findings if f.severity == Severity.WARNING),
        findings=report.findings,
    )


# ─── Endpoints ───────────────────────────────────────────────────────


@app.post(
    "/validate",
    summary="Validate a pattern document from YAML text",
    tags=["Validation"],
    responses={503: {"description": "Pipeline not yet initialised"}},
)
def validate_pattern(request: ValidateRequest) -> ValidateResponse:
    """Run every validation rule on a pattern document.

    Returns a structured report with:
    - **is_valid**: `true` if the document has no error-severity findings
    - **findings**: every error and warning, in rule order
    - A document that is not parseable YAML yields a single `file` finding
    """
    pipeline = _get_pipeline()
    report = pipeline.run(request.content, source=request.source or "<request>")
    return _build_response(report)


@app.post(
    "/validate/file",
    summary="Validate a pattern document from an uploaded YAML file",
    tags=["Validation"],
    responses={
        413: {"description": "File too large (max 1 MB)"},
        400: {"description": "File is not valid UTF-8 text"},
        503: {"description": "Pipeline not yet initialised"},
    },
)
async def validate_pattern_file(file: UploadFile) -> ValidateResponse:
    """Upload a `.yaml` pattern file (up to 1 MB) for validation."""
    if file.size and file.size > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large (max 1 MB)")

    content = await file.read()
    try:
        raw_text = content.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File must be UTF-8 encoded text")

    pipeline = _get_pipeline()
    report = await asyncio.to_thread(pipeline.run, raw_text, file.filename or "<upload>")
    return _build_response(report)


@app.get("/categories", summary="List valid pattern categories", tags=["Schema"])
def list_categories() -> CategoriesResponse:
    return CategoriesResponse(categories=list(VALID_CATEGORIES))


@app.get(
    "/health",
    summary="Health check",
    tags=["System"],
    responses={503: {"description": "Pipeline not yet initialised"}},
)
def health_check() -> HealthResponse:
    """Returns service status and configuration info."""
    _get_pipeline()
    return HealthResponse(
        status="healthy",
        version=__version__,
        checks_loaded=len(VALIDATORS),
    )
