import pytest
from datetime import datetime, timezone
from app.core.exceptions import AIError
from app.schemas.platform import AIMessage, AIResponse
from app.schemas.resume import Feedback, GenerateResumeOptions, ResumeRecord
from app.services import resume_ai
from tests.conftest import FEEDBACK_JSON


def _response(content):
    return AIResponse(message=AIMessage(content=content))

def test_company_slug():
    assert resume_ai.company_slug("Acme Corp!") == "Acme_Corp_"
    assert resume_ai.company_slug("") == "optimized"
    assert resume_ai.company_slug(None) == "optimized"

def test_updated_resume_path():
    now = datetime(2024, 5, 1, 12, 30, 45, 123000, tzinfo=timezone.utc)
    path = resume_ai.updated_resume_path("Acme", now)
    assert path == "/resumes/updated/updated_resume_Acme_2024-05-01T12-30-45-123Z.txt"

def test_parse_feedback_from_wrapped_reply():
    reply = f"Here is the analysis:\n```json\n{FEEDBACK_JSON}\n```"
    feedback = resume_ai.parse_feedback(_response(reply))
    assert feedback.overall_score == 72
    assert feedback.ats.score == 70
    assert feedback.ats.tips == ["Add keywords from the job description"]
    assert feedback.structure.tips == []

def test_parse_feedback_without_json():
    with pytest.raises(AIError):
        resume_ai.parse_feedback(_response("I cannot review this file."))

def test_parse_feedback_invalid_json():
    with pytest.raises(AIError):
        resume_ai.parse_feedback(_response("{not json}"))

def test_extract_message_text():
    assert resume_ai.extract_message_text(_response("plain")) == "plain"
    blocks = [{"type": "text", "text": "first"}, {"type": "text", "text": "second"}]
    assert resume_ai.extract_message_text(_response(blocks)) == "first"

@pytest.mark.parametrize("response", [None, AIResponse(message=AIMessage(content=""))])
def test_extract_message_text_missing(response):
    with pytest.raises(AIError, match="Failed to generate resume content from AI"):
        resume_ai.extract_message_text(response)

def test_build_rewrite_prompt():
    options = GenerateResumeOptions(
        original_resume="Jane Doe\nPython developer",
        job_description="Senior Python engineer",
        feedback=Feedback.model_validate_json(FEEDBACK_JSON),
    )
    prompt = resume_ai.build_rewrite_prompt(options)
    assert "Jane Doe\nPython developer" in prompt
    assert "**COMPANY:** Not specified" in prompt
    assert "ATS Score: 70.0/100" in prompt
    assert "Quantify results" in prompt
    assert "keyword integration" in prompt

def test_build_rewrite_prompt_missing_categories():
    options = GenerateResumeOptions(
        original_resume="cv",
        job_description="",
        company_name="Acme",
        feedback=Feedback(),
        additional_instructions="Keep it to one page",
    )
    prompt = resume_ai.build_rewrite_prompt(options)
    assert "Overall Score: Not provided" in prompt
    assert "Skills Tips: []" in prompt
    assert "Keep it to one page" in prompt

def test_feedback_instructions_include_job():
    text = resume_ai.prepare_feedback_instructions("Backend Engineer", None)
    assert "The job title is: Backend Engineer" in text
    assert "The job description is: Not specified" in text
    assert '"overallScore"' in text

def test_record_accepts_legacy_shape():
    record = ResumeRecord.model_validate({
        "id": "abc",
        "resumePath": "/uploads/cv.pdf",
        "jd": "Senior Python engineer",
        "feedback": "",
    })
    assert record.job_description == "Senior Python engineer"
    assert record.feedback is None
    assert record.file_metadata is None
    assert '"jobDescription":"Senior Python engineer"' in record.to_json()
