from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional, Any

# --- FILE METADATA ---

class FileMetadata(BaseModel):
    """What the user originally uploaded; selects the regeneration format."""
    model_config = ConfigDict(populate_by_name=True)

    original_mime_type: str = Field(alias="originalMimeType")
    original_extension: str = Field(alias="originalExtension")
    original_filename: str = Field(alias="originalFilename")

DEFAULT_FILE_METADATA = FileMetadata(
    original_mime_type="application/pdf",
    original_extension="pdf",
    original_filename="resume.pdf",
)

# --- FEEDBACK SCHEMAS ---

class FeedbackCategory(BaseModel):
    score: float = 0
    tips: List[str] = Field(default_factory=list)

    @field_validator("tips", mode="before")
    @classmethod
    def flatten_tips(cls, value: Any) -> List[str]:
        # The model answers with {"type": ..., "tip": ..., "explanation": ...} objects
        if not value:
            return []
        flat = []
        for tip in value:
            if isinstance(tip, dict):
                text = tip.get("tip") or tip.get("explanation")
                if text:
                    flat.append(str(text))
            elif tip is not None:
                flat.append(str(tip))
        return flat

class Feedback(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    overall_score: Optional[float] = Field(default=None, alias="overallScore")
    ats: Optional[FeedbackCategory] = Field(default=None, alias="ATS")
    tone_and_style: Optional[FeedbackCategory] = Field(default=None, alias="toneAndStyle")
    content: Optional[FeedbackCategory] = None
    structure: Optional[FeedbackCategory] = None
    skills: Optional[FeedbackCategory] = None

# --- RESUME RECORD ---

class ResumeRecord(BaseModel):
    """JSON document stored under ``resume:<id>``."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    resume_path: str = Field(alias="resumePath")
    image_path: Optional[str] = Field(default=None, alias="imagePath")
    raw_text: str = Field(default="", alias="rawText")
    job_title: Optional[str] = Field(default=None, alias="jobTitle")
    job_description: str = Field(
        default="",
        validation_alias=AliasChoices("jobDescription", "jd", "job_description"),
        serialization_alias="jobDescription",
    )
    company_name: Optional[str] = Field(default=None, alias="companyName")
    feedback: Optional[Feedback] = None
    file_metadata: Optional[FileMetadata] = Field(default=None, alias="fileMetadata")

    @field_validator("feedback", mode="before")
    @classmethod
    def empty_feedback_is_missing(cls, value: Any) -> Any:
        # Records are saved with "" feedback before the analysis finishes
        if value in ("", {}, None):
            return None
        return value

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

# --- GENERATION ---

class GenerateResumeOptions(BaseModel):
    original_resume: str
    job_description: str
    company_name: Optional[str] = None
    feedback: Feedback
    additional_instructions: Optional[str] = None

class GeneratedResumeResult(BaseModel):
    success: bool
    updated_resume_content: Optional[str] = None
    saved_path: Optional[str] = None
    error: Optional[str] = None

# --- API RESPONSES ---

class ResumeSummary(BaseModel):
    id: str
    company_name: Optional[str] = None
    job_title: Optional[str] = None
    overall_score: Optional[float] = None
    resume_path: str

class ReviewState(BaseModel):
    id: str
    resume_url: Optional[str] = None
    image_url: Optional[str] = None
    company_name: Optional[str] = None
    job_title: Optional[str] = None
    feedback: Optional[Feedback] = None
    file_metadata: FileMetadata
    can_regenerate: bool

class UploadResponse(BaseModel):
    id: str
    status: str
    feedback: Optional[Feedback] = None

class PreviewRequest(BaseModel):
    content: str
    company_name: Optional[str] = None
