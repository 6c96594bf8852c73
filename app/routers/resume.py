import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import HTMLResponse, Response

from app.core.exceptions import AppException
from app.core.limiter import limiter
from app.routers.auth_deps import require_resume_viewer, require_user
from app.schemas.resume import PreviewRequest, ResumeSummary, ReviewState, UploadResponse
from app.services.file_generator import GeneratedFile, ResumeFileGenerator
from app.services.platform_store import PlatformStore
from app.services.resume_upload import ResumeUploader
from app.services.review import ReviewScreen

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resumes", tags=["resumes"])


@router.post("", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def upload_resume(
    request: Request,
    file: UploadFile = File(...),
    company_name: Optional[str] = Form(None),
    job_title: Optional[str] = Form(None),
    job_description: Optional[str] = Form(None),
    store: PlatformStore = Depends(require_user),
):
    """Upload a resume (PDF, DOCX, TXT) and analyze it against the job."""
    content = await file.read()
    return ResumeUploader(store).upload(
        filename=file.filename or "",
        content_type=file.content_type,
        content=content,
        company_name=company_name,
        job_title=job_title,
        job_description=job_description,
    )


@router.get("", response_model=List[ResumeSummary])
def list_resumes(store: PlatformStore = Depends(require_user)):
    return ResumeUploader(store).list_resumes()


@router.post("/preview", response_class=HTMLResponse)
def preview_resume(payload: PreviewRequest, store: PlatformStore = Depends(require_user)):
    return HTMLResponse(ResumeFileGenerator.create_preview(payload.content, payload.company_name))


@router.get("/{resume_id}", response_model=ReviewState)
def review_resume(resume_id: str, store: PlatformStore = Depends(require_resume_viewer)):
    return ReviewScreen(store, resume_id).load()


@router.post("/{resume_id}/regenerate")
@limiter.limit("5/minute")
def regenerate_resume(request: Request, resume_id: str, store: PlatformStore = Depends(require_resume_viewer)):
    """
    Rewrite the resume with AI using its stored feedback and return it as a
    download in the original upload's format family.
    """
    screen = ReviewScreen(store, resume_id)
    state = screen.load()
    if not state.can_regenerate:
        raise AppException(
            "No feedback available to generate updated resume",
            status_code=status.HTTP_409_CONFLICT,
            error_code="NO_FEEDBACK",
        )

    downloads: List[GeneratedFile] = []
    outcome = screen.generate_updated_resume(downloads.append)
    if not outcome.success:
        raise AppException(outcome.message, status_code=status.HTTP_502_BAD_GATEWAY, error_code="GENERATION_FAILED")

    generated = downloads[0]
    headers = {
        "Content-Disposition": f'attachment; filename="{generated.filename}"',
        "X-Resume-Message": outcome.message,
    }
    if outcome.saved_path:
        headers["X-Saved-Path"] = outcome.saved_path
    return Response(content=generated.content, media_type=generated.mime_type, headers=headers)
