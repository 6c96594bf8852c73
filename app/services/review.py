import json
import logging
from typing import Optional
from urllib.parse import quote

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.exceptions import AppException, NotFoundError, PlatformError
from app.schemas.resume import (
    DEFAULT_FILE_METADATA, Feedback, FileMetadata, GenerateResumeOptions, ResumeRecord, ReviewState
)
from app.services.file_generator import Downloader, GeneratedFile, ResumeDownloadOptions, ResumeFileGenerator
from app.services.platform_store import PLATFORM_ERRORS, PlatformStore
from app.services.resume_ai import REGENERATION_INSTRUCTIONS

logger = logging.getLogger(__name__)


def resume_key(resume_id: str) -> str:
    return f"resume:{resume_id}"


def file_url(path: str) -> str:
    return f"{settings.api_prefix}/fs/read?path={quote(path)}"


def parse_record(raw: str, resume_id: str) -> ResumeRecord:
    try:
        data = json.loads(raw)
        data.setdefault("id", resume_id)
        return ResumeRecord.model_validate(data)
    except (json.JSONDecodeError, AttributeError, PydanticValidationError) as e:
        logger.error(f"Error loading resume {resume_id}: {e}")
        raise PlatformError("Resume data could not be read")


class RegenerationOutcome(BaseModel):
    success: bool
    message: str
    file: Optional[GeneratedFile] = None
    saved_path: Optional[str] = None
    preview_html: Optional[str] = None


class ReviewScreen:
    """Loads a stored resume review and regenerates the resume from its feedback."""

    def __init__(self, store: PlatformStore, resume_id: str):
        self.store = store
        self.resume_id = resume_id
        self.feedback: Optional[Feedback] = None
        self.file_metadata: Optional[FileMetadata] = None
        self.is_generating = False

    def _fetch_record(self) -> Optional[ResumeRecord]:
        self.store.clear_error()
        raw = self.store.kv.get(resume_key(self.resume_id))
        if raw is None:
            if self.store.error:
                raise self.store.error_exception("Failed to load resume")
            return None
        return parse_record(raw, self.resume_id)

    def _readable_url(self, path: Optional[str]) -> Optional[str]:
        if not path:
            return None
        item = self.store.fs.stat(path)
        # A missing preview file is not fatal for the review
        self.store.clear_error()
        return file_url(path) if item is not None else None

    def load(self) -> ReviewState:
        record = self._fetch_record()
        if record is None:
            raise NotFoundError("Resume not found")

        self.file_metadata = record.file_metadata or DEFAULT_FILE_METADATA
        self.feedback = record.feedback

        return ReviewState(
            id=self.resume_id,
            resume_url=self._readable_url(record.resume_path),
            image_url=self._readable_url(record.image_path),
            company_name=record.company_name,
            job_title=record.job_title,
            feedback=self.feedback,
            file_metadata=self.file_metadata,
            can_regenerate=self.feedback is not None,
        )

    def generate_updated_resume(self, download: Downloader) -> RegenerationOutcome:
        if self.feedback is None:
            return RegenerationOutcome(success=False, message="No feedback available to generate updated resume")
        if self.file_metadata is None:
            return RegenerationOutcome(success=False, message="File metadata not available")

        self.is_generating = True
        try:
            record = self._fetch_record()
            if record is None:
                raise NotFoundError("Resume data not found")

            result = self.store.ai.generate_updated_resume(GenerateResumeOptions(
                original_resume=record.raw_text,
                job_description=record.job_description,
                company_name=record.company_name,
                feedback=self.feedback,
                additional_instructions=REGENERATION_INSTRUCTIONS,
            ))
            if not (result.success and result.updated_resume_content):
                raise AppException(result.error or "Failed to generate updated resume", status_code=502)

            preview_html = ResumeFileGenerator.create_preview(result.updated_resume_content, record.company_name)
            generated = ResumeFileGenerator.generate_and_download(
                ResumeDownloadOptions(
                    resume_content=result.updated_resume_content,
                    company_name=record.company_name,
                    file_metadata=self.file_metadata,
                ),
                download,
            )

            message = f"Updated resume generated successfully in {self.file_metadata.original_extension.upper()} format!"
            if result.saved_path:
                message += f" Also saved to: {result.saved_path}"
            logger.info(f"Regenerated resume {self.resume_id} as {generated.filename}")
            return RegenerationOutcome(
                success=True,
                message=message,
                file=generated,
                saved_path=result.saved_path,
                preview_html=preview_html,
            )
        except PLATFORM_ERRORS as e:
            logger.error(f"Error generating updated resume: {e}")
            message = e.message if isinstance(e, AppException) else "Failed to generate updated resume"
            return RegenerationOutcome(success=False, message=message)
        finally:
            self.is_generating = False
