"""
Upload flow: store the resume, extract its text, ask for ATS feedback and
persist the Resume Record under ``resume:<id>``.
"""
import logging
import uuid
from typing import List, Optional

from app.core.config import settings
from app.core.exceptions import AIError, AppException, ValidationError
from app.schemas.resume import ResumeRecord, ResumeSummary, UploadResponse
from app.services import resume_ai
from app.services.document_text import extract_text, validate_filename
from app.services.file_generator import extract_file_metadata
from app.services.platform_store import PlatformStore
from app.services.review import parse_record, resume_key

logger = logging.getLogger(__name__)


class ResumeUploader:
    def __init__(self, store: PlatformStore):
        self.store = store
        self.status = ""

    def _set_status(self, status: str):
        self.status = status
        logger.info(status)

    def _fail(self, default: str) -> AppException:
        return self.store.error_exception(default)

    def upload(
        self,
        filename: str,
        content_type: Optional[str],
        content: bytes,
        company_name: Optional[str] = None,
        job_title: Optional[str] = None,
        job_description: Optional[str] = None,
    ) -> UploadResponse:
        validate_filename(filename)
        if not content:
            raise ValidationError("Uploaded file is empty")
        if len(content) > settings.storage.max_upload_mb * 1024 * 1024:
            raise ValidationError(f"File exceeds {settings.storage.max_upload_mb}MB limit")

        self.store.clear_error()
        self._set_status("Uploading the file...")
        uploaded = self.store.fs.upload([(filename, content)])
        if uploaded is None:
            raise self._fail("Failed to upload file")

        self._set_status("Extracting text...")
        raw_text = extract_text(content, filename, content_type or "")

        resume_id = str(uuid.uuid4())
        record = ResumeRecord(
            id=resume_id,
            resume_path=uploaded.path,
            raw_text=raw_text,
            job_title=job_title,
            job_description=job_description or "",
            company_name=company_name,
            feedback=None,
            file_metadata=extract_file_metadata(filename, content_type),
        )
        self._save(record)

        self._set_status("Analyzing...")
        response = self.store.ai.feedback(
            uploaded.path, resume_ai.prepare_feedback_instructions(job_title, job_description)
        )
        if response is None:
            raise AIError(self.store.error or "Failed to analyze resume")

        record.feedback = resume_ai.parse_feedback(response)
        self._save(record)
        self._set_status("Analysis complete")
        return UploadResponse(id=resume_id, status=self.status, feedback=record.feedback)

    def _save(self, record: ResumeRecord):
        if not self.store.kv.set(resume_key(record.id), record.to_json()):
            raise self._fail("Failed to save resume")

    def list_resumes(self) -> List[ResumeSummary]:
        items = self.store.kv.list("resume:*", return_values=True)
        if items is None:
            raise self._fail("Failed to list resumes")

        summaries = []
        for item in items:
            resume_id = item.key.split(":", 1)[1]
            try:
                record = parse_record(item.value, resume_id)
            except AppException:
                continue
            summaries.append(ResumeSummary(
                id=record.id,
                company_name=record.company_name,
                job_title=record.job_title,
                overall_score=record.feedback.overall_score if record.feedback else None,
                resume_path=record.resume_path,
            ))
        return summaries
