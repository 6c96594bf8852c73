import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from app.core import prompts
from app.core.exceptions import AIError
from app.schemas.platform import AIResponse
from app.schemas.resume import Feedback, FeedbackCategory, GenerateResumeOptions

logger = logging.getLogger(__name__)

UPDATED_RESUME_DIR = "/resumes/updated"

REGENERATION_INSTRUCTIONS = (
    "Focus on ATS optimization, keyword matching, and professional formatting. "
    "Ensure the resume is tailored specifically for this role."
)


def company_slug(company_name: Optional[str]) -> str:
    """Company name safe for filenames: non-alphanumerics become ``_``."""
    if not company_name:
        return "optimized"
    return re.sub(r"[^a-zA-Z0-9]", "_", company_name)


def prepare_feedback_instructions(job_title: Optional[str], job_description: Optional[str]) -> str:
    return prompts.get_prompt(
        prompts.FEEDBACK_INSTRUCTIONS_TEMPLATE,
        job_title=job_title or "Not specified",
        job_description=job_description or "Not specified",
        response_format=prompts.FEEDBACK_RESPONSE_FORMAT,
    )


def _score(category: Optional[FeedbackCategory]) -> Any:
    return category.score if category is not None else "Not provided"


def _tips(category: Optional[FeedbackCategory]) -> str:
    return json.dumps(category.tips if category is not None else [], indent=2)


def build_rewrite_prompt(options: GenerateResumeOptions) -> str:
    feedback = options.feedback
    return prompts.get_prompt(
        prompts.RESUME_REWRITE_TEMPLATE,
        original_resume=options.original_resume,
        job_description=options.job_description,
        company_name=options.company_name or "Not specified",
        overall_score=feedback.overall_score if feedback.overall_score is not None else "Not provided",
        ats_score=_score(feedback.ats),
        ats_tips=_tips(feedback.ats),
        tone_score=_score(feedback.tone_and_style),
        tone_tips=_tips(feedback.tone_and_style),
        content_score=_score(feedback.content),
        content_tips=_tips(feedback.content),
        structure_score=_score(feedback.structure),
        structure_tips=_tips(feedback.structure),
        skills_score=_score(feedback.skills),
        skills_tips=_tips(feedback.skills),
        additional_requirements=options.additional_instructions or prompts.DEFAULT_REWRITE_REQUIREMENTS,
    )


def extract_message_text(response: Optional[AIResponse]) -> str:
    """
    Text of an AI reply. String content is returned as-is; for a list of
    content blocks the first block's text is used.
    """
    if response is None or not response.message.content:
        raise AIError("Failed to generate resume content from AI")
    content = response.message.content
    if isinstance(content, str):
        return content
    return content[0].text or ""


def updated_resume_path(company_name: Optional[str], now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    timestamp = now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
    timestamp = timestamp.replace(":", "-").replace(".", "-")
    return f"{UPDATED_RESUME_DIR}/updated_resume_{company_slug(company_name)}_{timestamp}.txt"


def parse_feedback(response: Optional[AIResponse]) -> Feedback:
    """Parse the JSON feedback object out of an analysis reply."""
    if response is None:
        raise AIError("Failed to analyze resume")
    content = response.message.content
    text = content if isinstance(content, str) else "".join(block.text or "" for block in content)

    # Models sometimes wrap the object in prose or code fences
    json_match = re.search(r'\{.*\}', text, re.DOTALL)
    if not json_match:
        logger.error(f"No JSON object in AI feedback: {text[:200]}")
        raise AIError("Failed to parse AI feedback.")
    try:
        return Feedback.model_validate(json.loads(json_match.group()))
    except (json.JSONDecodeError, PydanticValidationError) as e:
        logger.error(f"Failed to decode AI feedback: {e}")
        raise AIError("Failed to parse AI feedback.")
