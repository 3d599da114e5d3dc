import logging
import os
import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status

from app.analysis.errors import DecodeFailure, InvalidRequest
from app.analysis.orchestrator import ATSAnalyzer, get_analyzer
from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.schemas.analysis import AnalyzeResponse

logger = logging.getLogger(__name__)

router = APIRouter()

UPLOAD_CHUNK_BYTES = 1024 * 64


async def _store_upload(file: UploadFile) -> str:
    """Stream the upload into ``upload_dir`` and return the temp path the analyzer will own."""
    suffix = Path(file.filename or "").suffix.lower()
    directory = Path(settings.upload_dir)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / f"resume-{uuid.uuid4().hex}{suffix}"

    total = 0
    try:
        with target.open("wb") as handle:
            while True:
                chunk = await file.read(UPLOAD_CHUNK_BYTES)
                if not chunk:
                    break
                total += len(chunk)
                if total > settings.max_upload_bytes:
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail=f"File too large. Maximum allowed size is {settings.max_upload_bytes // (1024 * 1024)} MB.",
                    )
                handle.write(chunk)
    except BaseException:
        target.unlink(missing_ok=True)
        raise
    return str(target)


@router.post("/resumes/analyze-ats", response_model=AnalyzeResponse)
@rate_limit()
async def analyze_ats(
    request: Request,
    resume: UploadFile = File(...),
    analysis_mode: str = Form("general"),
    job_description: str | None = Form(None),
    analyzer: ATSAnalyzer = Depends(get_analyzer),
):
    _ = request
    if not resume.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A resume file is required.")

    temp_path = await _store_upload(resume)
    try:
        analysis = await analyzer.analyze_file(temp_path, analysis_mode, job_description)
    except InvalidRequest as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except DecodeFailure as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    finally:
        if os.path.exists(temp_path):
            logger.warning("ats_upload_left_behind path=%s", temp_path)
            os.unlink(temp_path)

    logger.info(
        "ats_analysis_completed mode=%s score=%s scheme=%s ai_enhanced=%s cached=%s",
        analysis.analysis_mode,
        analysis.ats_score,
        analysis.scoring_scheme,
        analysis.ai_enhanced,
        analysis.cached,
    )
    return AnalyzeResponse(message="ATS analysis completed successfully", analysis=analysis)
