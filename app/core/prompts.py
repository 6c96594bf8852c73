"""
Centralized AI Prompt Repository
- Keeps the ATS feedback and resume rewrite prompts in one place
- Decouples prompt wording from the services that fill them in
"""

# --- ATS FEEDBACK PROMPTS ---
FEEDBACK_RESPONSE_FORMAT = """{
  "overallScore": 0-100,
  "ATS": {"score": 0-100, "tips": [{"type": "good" | "improve", "tip": "short title"}]},
  "toneAndStyle": {"score": 0-100, "tips": [{"type": "good" | "improve", "tip": "short title", "explanation": "detail"}]},
  "content": {"score": 0-100, "tips": [{"type": "good" | "improve", "tip": "short title", "explanation": "detail"}]},
  "structure": {"score": 0-100, "tips": [{"type": "good" | "improve", "tip": "short title", "explanation": "detail"}]},
  "skills": {"score": 0-100, "tips": [{"type": "good" | "improve", "tip": "short title", "explanation": "detail"}]}
}"""

FEEDBACK_INSTRUCTIONS_TEMPLATE = (
    "You are an expert in ATS (Applicant Tracking System) and resume analysis. "
    "Please analyze and rate this resume and suggest how to improve it. "
    "The rating can be low if the resume is bad. "
    "Be thorough and detailed. Don't be afraid to point out any mistakes or areas for improvement. "
    "If there is a lot to improve, don't hesitate to give low scores. This is to help the user to improve their resume. "
    "If available, use the job description for the job user is applying to to give more detailed feedback. "
    "If provided, take the job description into consideration.\n"
    "The job title is: {job_title}\n"
    "The job description is: {job_description}\n"
    "Provide the feedback using the following format:\n{response_format}\n"
    "Return the analysis as a JSON object, without any other text and without the backticks. "
    "Do not include any other text or comments."
)

FEEDBACK_FILE_TEMPLATE = "RESUME FILE ({filename}):\n{resume_text}"

# --- RESUME REWRITE PROMPTS ---
DEFAULT_REWRITE_REQUIREMENTS = "Focus on ATS optimization, keyword integration, and professional formatting"

RESUME_REWRITE_TEMPLATE = """
You are an expert resume writer and ATS optimization specialist. I need you to create an improved, optimized version of the provided resume based on the job description and detailed feedback analysis.

**ORIGINAL RESUME:**
{original_resume}

**TARGET JOB DESCRIPTION:**
{job_description}

**COMPANY:** {company_name}

**DETAILED FEEDBACK ANALYSIS:**
- Overall Score: {overall_score}
- ATS Score: {ats_score}/100
- ATS Tips: {ats_tips}
- Tone & Style Score: {tone_score}
- Tone & Style Tips: {tone_tips}
- Content Score: {content_score}
- Content Tips: {content_tips}
- Structure Score: {structure_score}
- Structure Tips: {structure_tips}
- Skills Score: {skills_score}
- Skills Tips: {skills_tips}

**ADDITIONAL REQUIREMENTS:**
{additional_requirements}

**OPTIMIZATION INSTRUCTIONS:**
1. **ATS Optimization:** Ensure the resume passes ATS systems with 85%+ compatibility
2. **Keyword Integration:** Naturally incorporate relevant keywords from the job description
3. **Structure & Formatting:** Use clean, professional formatting with clear sections
4. **Quantify Achievements:** Add metrics and numbers where possible to strengthen impact
5. **Tailor Content:** Customize the resume specifically for this role and company
6. **Address Gaps:** Fill identified experience gaps with relevant skills/projects
7. **Professional Language:** Use action verbs and industry-appropriate terminology
8. **Length Optimization:** Keep it concise (1-2 pages) while including all important information

**OUTPUT REQUIREMENTS:**
- Provide ONLY the optimized resume content in clean, well-formatted text
- Use standard resume sections: Header, Summary/Objective, Experience, Skills, Education, etc.
- Include bullet points for experience using • symbol
- Ensure consistent formatting throughout
- Focus on readability and ATS compatibility
- Do NOT include any explanations or additional text outside the resume content

Generate the complete optimized resume now:"""

# --- IMAGE PROMPTS ---
IMG2TXT_PROMPT = "Extract all of the text visible in this image. Return only the extracted text, preserving line breaks."

# helper to build prompts
def get_prompt(template: str, **kwargs) -> str:
    return template.format(**kwargs)
