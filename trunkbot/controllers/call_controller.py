"""
Call Controller

FastAPI controller for call ingestion endpoints.
Accepts uploads from trunk-recorder and rdio-scanner compatible clients,
answers immediately and hands accepted calls to the background pipeline.
"""

import asyncio
import hmac
import html
import json
from typing import Any, Dict, Optional
from urllib.parse import quote

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import HTMLResponse
from pydantic import ValidationError
from starlette.datastructures import FormData, UploadFile

from trunkbot.config.settings import Settings, get_settings
from trunkbot.models.api_models import CallResponse
from trunkbot.models.call import CallMetadata
from trunkbot.models.rdio_call import RdioCallUpload
from trunkbot.services.call_service import CallService, CallSubmission
from trunkbot.utils.logger import get_module_logger

logger = get_module_logger(__name__)

router = APIRouter(tags=["calls"])

API_KEY_HEADER = "X-API-Key"


def _get_call_service(request: Request) -> CallService:
    call_service = getattr(request.app.state, "call_service", None)
    if call_service is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return call_service


def _payload_too_large(settings: Settings) -> HTTPException:
    return HTTPException(
        status_code=413,
        detail={
            "error": "Payload too large",
            "message": f"Request payload exceeds maximum size of {settings.max_upload_size_mb}MB",
            "max_size_mb": settings.max_upload_size_mb,
        },
    )


def _check_content_length(request: Request, settings: Settings) -> None:
    content_length_raw = request.headers.get("content-length")
    try:
        if content_length_raw is not None and int(content_length_raw) > settings.max_upload_size_bytes:
            raise _payload_too_large(settings)
    except ValueError:
        # Invalid Content-Length; the file size is enforced after reading
        pass


def _check_api_key(request: Request, settings: Settings, form_key: Optional[str]) -> None:
    """Reject the request unless it carries the configured shared secret."""
    if not settings.ingest_api_key:
        return

    provided = form_key or request.headers.get(API_KEY_HEADER) or ""
    if not hmac.compare_digest(provided.encode(), settings.ingest_api_key.encode()):
        logger.warning(f"Rejected upload with invalid API key from {request.client.host if request.client else 'unknown'}")
        raise HTTPException(
            status_code=401,
            detail={
                "error": "Invalid API key",
                "message": f"Provide the shared secret in the 'key' form field or the {API_KEY_HEADER} header",
            },
        )


def _form_text(form: FormData, name: str) -> Optional[str]:
    value = form.get(name)
    return value if isinstance(value, str) else None


async def _read_audio(form: FormData, field_name: str, settings: Settings) -> UploadFile:
    upload = form.get(field_name)
    if not isinstance(upload, UploadFile):
        raise HTTPException(
            status_code=400,
            detail={
                "error": "Missing audio",
                "message": f"Multipart field '{field_name}' must contain the call audio file",
                "field": field_name,
            },
        )
    if upload.size is not None and upload.size > settings.max_upload_size_bytes:
        raise _payload_too_large(settings)
    return upload


def _validation_detail(e: ValidationError) -> list[Dict[str, Any]]:
    errors = []
    for error in e.errors():
        field_path = " -> ".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field_path,
            "message": error["msg"],
            "expected_type": error["type"],
        })
    return errors


def _accept(request: Request, call_service: CallService, submission: CallSubmission) -> CallResponse:
    """Run the dedup gate and, for new calls, detach the pipeline."""
    meta = submission.meta
    dedup_key, is_duplicate = call_service.register_call(meta)

    if is_duplicate:
        return CallResponse(
            status="duplicate",
            message="Call already received",
            talkgroup=meta.talkgroup,
            dedup_key=dedup_key,
        )

    submission = CallSubmission(
        meta=meta,
        audio=submission.audio,
        filename=submission.filename,
        raw_metadata=submission.raw_metadata,
        dedup_key=dedup_key,
    )

    # Start background processing using callback from app state
    process_callback = request.app.state.process_call_callback
    asyncio.create_task(process_callback(submission))

    logger.info(f"Call queued: talkgroup {meta.talkgroup}, {submission.filename}")
    return CallResponse(
        status="queued",
        message="Call submitted for processing",
        talkgroup=meta.talkgroup,
        dedup_key=dedup_key,
    )


@router.post("/transcribe", response_model=CallResponse)
async def upload_call(request: Request) -> CallResponse:
    """Accept a trunk-recorder upload: ``call_json`` metadata plus ``call_audio`` file."""
    settings = get_settings()
    call_service = _get_call_service(request)

    try:
        _check_content_length(request, settings)
        form = await request.form()
        _check_api_key(request, settings, _form_text(form, "key"))

        raw_metadata = form.get("call_json")
        if isinstance(raw_metadata, UploadFile):
            raw_metadata = (await raw_metadata.read()).decode("utf-8", errors="replace")
        if not raw_metadata:
            raise HTTPException(
                status_code=400,
                detail={
                    "error": "Missing metadata",
                    "message": "Multipart field 'call_json' is required",
                    "field": "call_json",
                },
            )

        try:
            raw_data = json.loads(raw_metadata)
        except json.JSONDecodeError as e:
            raise HTTPException(
                status_code=400,
                detail={
                    "error": "Invalid JSON",
                    "message": f"call_json contains malformed JSON: {str(e)}",
                    "line": getattr(e, 'lineno', None),
                    "column": getattr(e, 'colno', None),
                },
            )
        if not isinstance(raw_data, dict):
            raise HTTPException(
                status_code=400,
                detail={
                    "error": "Invalid data structure",
                    "message": "call_json must be a JSON object",
                    "received_type": type(raw_data).__name__,
                },
            )

        try:
            meta = CallMetadata.model_validate(raw_data)
        except ValidationError as e:
            raise HTTPException(
                status_code=422,
                detail={
                    "error": "Validation failed",
                    "message": "One or more metadata fields are invalid",
                    "validation_errors": _validation_detail(e),
                },
            )

        upload = await _read_audio(form, "call_audio", settings)
        audio = await upload.read()
        if len(audio) > settings.max_upload_size_bytes:
            raise _payload_too_large(settings)
        if not audio:
            raise HTTPException(
                status_code=400,
                detail={"error": "Missing audio", "message": "call_audio is empty", "field": "call_audio"},
            )

        submission = CallSubmission(
            meta=meta,
            audio=audio,
            filename=_safe_filename(upload.filename, meta),
            raw_metadata=raw_metadata,
        )
        return _accept(request, call_service, submission)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error in upload_call: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail={
                "error": "Internal server error",
                "message": "An unexpected error occurred while accepting the call",
            },
        )


@router.post("/api/call-upload", response_model=CallResponse)
async def upload_rdio_call(request: Request) -> CallResponse:
    """Accept an rdio-scanner style call upload."""
    settings = get_settings()
    call_service = _get_call_service(request)

    try:
        _check_content_length(request, settings)
        form = await request.form()
        _check_api_key(request, settings, _form_text(form, "key"))

        fields = {name: value for name, value in form.multi_items() if isinstance(value, str)}
        audio = b""
        audio_filename = None
        upload = form.get("audio")
        if isinstance(upload, UploadFile):
            if upload.size is not None and upload.size > settings.max_upload_size_bytes:
                raise _payload_too_large(settings)
            audio = await upload.read()
            audio_filename = upload.filename
        if len(audio) > settings.max_upload_size_bytes:
            raise _payload_too_large(settings)

        call = RdioCallUpload.from_form(fields, audio=audio, audio_filename=audio_filename)
        errors = call.validation_errors()
        if errors:
            raise HTTPException(
                status_code=400,
                detail={
                    "error": "Invalid call",
                    "message": f"Invalid call data: {', '.join(errors)}",
                    "validation_errors": errors,
                },
            )

        meta = call.to_metadata()
        submission = CallSubmission(
            meta=meta,
            audio=call.audio,
            filename=call.filename,
            raw_metadata=meta.model_dump_json(by_alias=True, exclude={"audio_text", "url", "segments"}),
        )
        return _accept(request, call_service, submission)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error in upload_rdio_call: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail={
                "error": "Internal server error",
                "message": "An unexpected error occurred while accepting the call",
            },
        )


@router.get("/audio", response_class=HTMLResponse)
async def audio_player(link: Optional[str] = Query(default=None)) -> HTMLResponse:
    """Minimal player page for an archived call."""
    if not link:
        raise HTTPException(
            status_code=400,
            detail={"error": "Missing link", "message": "Query parameter 'link' is required"},
        )

    settings = get_settings()
    source = f"{settings.audio_player_base_url.rstrip('/')}/{quote(link.lstrip('/'))}"
    title = html.escape(link)
    page = (
        "<!DOCTYPE html>\n"
        "<html>\n"
        f"<head><meta charset=\"utf-8\"><title>{title}</title></head>\n"
        "<body>\n"
        f"<p>{title}</p>\n"
        f"<audio controls autoplay src=\"{html.escape(source)}\"></audio>\n"
        "</body>\n"
        "</html>\n"
    )
    return HTMLResponse(content=page)


def _safe_filename(filename: Optional[str], meta: CallMetadata) -> str:
    name = (filename or "").replace("\\", "/").rsplit("/", 1)[-1]
    return name or f"{meta.talkgroup}-{meta.start_time}.m4a"
