"""
HTTP API - info, preview and apply endpoints
"""

import base64
import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, FastAPI, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field, ValidationError

from . import __version__
from .config import EngineConfig
from .errors import InvalidDocumentError
from .models import OperationResult, RedactionOptions, RedactionRegion
from .pipeline import RedactionPipeline
from .utils import has_pdf_signature

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    "invalid_document": 400,
    "invalid_region": 422,
    "resource_limit": 413,
    "timeout": 504,
    "cancelled": 499,
}


class AreaModel(BaseModel):
    page: int = Field(ge=0)
    x: float = Field(ge=0)
    y: float = Field(ge=0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    reason: Optional[str] = None

    def to_region(self) -> RedactionRegion:
        return RedactionRegion(
            page=self.page,
            x=self.x,
            y=self.y,
            width=self.width,
            height=self.height,
            reason=self.reason,
        )


class PreviewRequest(BaseModel):
    areas: List[AreaModel] = Field(min_length=1)


class ApplyRequest(PreviewRequest):
    options: Optional[Dict[str, Any]] = None


def _error(status_code: int, message: str, kind: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, "errorKind": kind},
    )


def _failure_response(result: OperationResult) -> JSONResponse:
    status_code = STATUS_BY_KIND.get(result.error_kind, 500)
    return _error(status_code, result.error or "Redaction failed", result.error_kind)


async def _read_pdf(request: Request, file: UploadFile):
    """
    Read an uploaded PDF, returning (bytes, None) or (None, error response)
    """
    config: EngineConfig = request.app.state.config
    data = await file.read()

    if not data:
        return None, _error(400, "Uploaded file is empty", InvalidDocumentError.kind)
    if len(data) > config.max_file_size:
        limit_mb = config.max_file_size / 1024 / 1024
        return None, _error(413, f"File too large. Maximum size is {limit_mb:g}MB", "resource_limit")
    if not has_pdf_signature(data):
        return None, _error(400, "File does not appear to be a valid PDF", InvalidDocumentError.kind)

    return data, None


def _parse(model, raw: str):
    try:
        return model.model_validate_json(raw), None
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        return None, _error(422, f"Invalid request data: {errors}", "invalid_region")


router = APIRouter(prefix="/redaction", tags=["redaction"])


@router.post("/info")
async def pdf_info(request: Request, file: UploadFile = File(...)):
    data, error = await _read_pdf(request, file)
    if error is not None:
        return error

    pipeline: RedactionPipeline = request.app.state.pipeline
    try:
        info = await run_in_threadpool(pipeline.info, data)
    except InvalidDocumentError as e:
        return _error(400, str(e), e.kind)

    return {"success": True, "data": info}


@router.post("/preview")
async def preview_redactions(request: Request,
                             file: UploadFile = File(...),
                             data: str = Form(...)):
    pdf_bytes, error = await _read_pdf(request, file)
    if error is not None:
        return error

    payload, error = _parse(PreviewRequest, data)
    if error is not None:
        return error

    pipeline: RedactionPipeline = request.app.state.pipeline
    regions = [area.to_region() for area in payload.areas]
    result = await run_in_threadpool(pipeline.preview, pdf_bytes, regions)

    if not result.success:
        return _failure_response(result)

    return Response(
        content=result.output_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": 'inline; filename="preview.pdf"',
            "X-Redaction-Strategy": result.strategy_used.value,
        },
    )


@router.post("/apply")
async def apply_redactions(request: Request,
                           file: UploadFile = File(...),
                           data: str = Form(...)):
    pdf_bytes, error = await _read_pdf(request, file)
    if error is not None:
        return error

    payload, error = _parse(ApplyRequest, data)
    if error is not None:
        return error

    try:
        options = RedactionOptions.from_dict(payload.options)
    except (TypeError, ValueError) as e:
        return _error(422, f"Invalid redaction options: {e}", "invalid_options")

    pipeline: RedactionPipeline = request.app.state.pipeline
    regions = [area.to_region() for area in payload.areas]
    result = await run_in_threadpool(pipeline.apply, pdf_bytes, regions, options)

    logger.info("PDF redactions applied: success=%s count=%d strategy=%s",
                result.success, result.redaction_count, result.strategy_used.value)

    if not result.success or result.output_bytes is None:
        return _failure_response(result)

    audit = json.dumps([entry.to_dict() for entry in result.audit_entries])
    headers = {
        "Content-Disposition": 'attachment; filename="redacted.pdf"',
        "X-Redaction-Count": str(result.redaction_count),
        "X-Redaction-Strategy": result.strategy_used.value,
        "X-Redaction-Audit": base64.b64encode(audit.encode("utf-8")).decode("ascii"),
        "X-Redaction-Skipped": str(len(result.skipped_regions)),
    }
    return Response(content=result.output_bytes, media_type="application/pdf", headers=headers)


def create_app(config: Optional[EngineConfig] = None,
               pipeline: Optional[RedactionPipeline] = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        config: Engine configuration, read from the environment if omitted
        pipeline: Pipeline to serve requests with, built from ``config`` if omitted
    """
    config = config or EngineConfig.from_env()

    app = FastAPI(
        title="trueredact",
        description="Permanent region redaction for PDF documents",
        version=__version__,
    )
    app.state.config = config
    app.state.pipeline = pipeline or RedactionPipeline(config)
    app.include_router(router)

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    return app
