"""
Re-render AI-produced resume text in the format family of the original upload.

PDF output is laid out with reportlab on A4 pages; Word output is a small RTF
document; anything else is plain text. Lines are styled by a handful of
regular expressions that guess section headers and sub-headers.
"""
import html
import io
import json
import logging
import os
import re
from datetime import date
from typing import Callable, List, Optional

from pydantic import BaseModel
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from app.schemas.resume import FileMetadata
from app.services.resume_ai import company_slug

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
MSWORD_MIME = "application/msword"
TEXT_MIME = "text/plain"

# Page geometry, in millimetres
MARGIN = 20
LINE_HEIGHT = 6

BODY_FONT = ("Helvetica", 11)
HEADER_FONT = ("Helvetica-Bold", 13)
SUBHEADER_FONT = ("Helvetica-Bold", 12)

HEADER_PATTERNS = [
    re.compile(r"^[A-Z\s]{2,}$"),
    re.compile(r"^(PROFESSIONAL SUMMARY|WORK EXPERIENCE|EDUCATION|SKILLS|PROJECTS|CERTIFICATIONS)", re.IGNORECASE),
    re.compile(r"^[A-Z][a-z]+\s+[A-Z][a-z]+$"),
    re.compile(r"^\w+@\w+\.\w+", re.ASCII),
    re.compile(r"^\+?\d{1,3}[-\s]?\(?\d{3}\)?[-\s]?\d{3}[-\s]?\d{4}", re.ASCII),
]

SUBHEADER_PATTERNS = [
    re.compile(r"^\w+[\w\s]*\s+\|\s+\d{4}", re.ASCII),
    re.compile(r"^\w+[\w\s]*,\s*\d{4}", re.ASCII),
    re.compile(r"^[A-Z][a-z]+(\s+[A-Z][a-z]+)*\s*$"),
]

SUBHEADER_MAX_LENGTH = 100


class ResumeDownloadOptions(BaseModel):
    resume_content: str
    company_name: Optional[str] = None
    file_metadata: FileMetadata


class GeneratedFile(BaseModel):
    filename: str
    mime_type: str
    content: bytes

    @property
    def extension(self) -> str:
        return os.path.splitext(self.filename)[1].lstrip(".")


Downloader = Callable[[GeneratedFile], None]


def is_header_line(line: str) -> bool:
    return any(pattern.search(line) for pattern in HEADER_PATTERNS)


def is_subheader_line(line: str) -> bool:
    return len(line) < SUBHEADER_MAX_LENGTH and any(pattern.search(line) for pattern in SUBHEADER_PATTERNS)


def base_filename(company_name: Optional[str], today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"updated_resume_{company_slug(company_name)}_{today.isoformat()}"


def extract_file_metadata(filename: str, content_type: Optional[str]) -> FileMetadata:
    """Metadata recorded at upload time to pick the regeneration format later."""
    name = filename or ""
    extension = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    return FileMetadata(
        original_mime_type=content_type or "",
        original_extension=extension or "txt",
        original_filename=name,
    )


class ResumeFileGenerator:

    @classmethod
    def generate(cls, options: ResumeDownloadOptions, today: Optional[date] = None) -> GeneratedFile:
        """
        Render the resume in the original upload's format family.
        PDF or Word failures fall back to plain text.
        """
        content = options.resume_content
        basename = base_filename(options.company_name, today)
        mime_type = options.file_metadata.original_mime_type

        try:
            if mime_type == PDF_MIME:
                return GeneratedFile(filename=f"{basename}.pdf", mime_type=PDF_MIME, content=cls.render_pdf(content))
            if mime_type in (DOCX_MIME, MSWORD_MIME):
                return GeneratedFile(
                    filename=f"{basename}.docx",
                    mime_type=DOCX_MIME,
                    content=cls.format_for_word(content).encode("ascii"),
                )
        except Exception:
            logger.exception("Error generating file, falling back to plain text")

        return cls.render_txt(content, basename)

    @classmethod
    def generate_and_download(cls, options: ResumeDownloadOptions, download: Downloader) -> GeneratedFile:
        generated = cls.generate(options)
        download(generated)
        return generated

    @staticmethod
    def render_txt(content: str, basename: str) -> GeneratedFile:
        return GeneratedFile(filename=f"{basename}.txt", mime_type=TEXT_MIME, content=content.encode("utf-8"))

    @staticmethod
    def render_pdf(content: str) -> bytes:
        buffer = io.BytesIO()
        try:
            pdf = canvas.Canvas(buffer, pagesize=A4)
            page_width, page_height = A4
            max_width = page_width - 2 * MARGIN * mm

            # y grows downward from the top edge, in mm
            y = MARGIN
            bottom = page_height / mm - MARGIN

            for line in content.split("\n"):
                trimmed = line.strip()
                if not trimmed:
                    y += LINE_HEIGHT / 2
                    continue

                if y > bottom:
                    pdf.showPage()
                    y = MARGIN

                header = is_header_line(trimmed)
                subheader = not header and is_subheader_line(trimmed)
                font_name, font_size = HEADER_FONT if header else SUBHEADER_FONT if subheader else BODY_FONT

                for wrapped in simpleSplit(trimmed, font_name, font_size, max_width):
                    if y > bottom:
                        pdf.showPage()
                        y = MARGIN
                    pdf.setFont(font_name, font_size)
                    pdf.drawString(MARGIN * mm, page_height - y * mm, wrapped)
                    y += LINE_HEIGHT

                if header or subheader:
                    y += LINE_HEIGHT / 2

            pdf.save()
            return buffer.getvalue()
        finally:
            buffer.close()

    @staticmethod
    def format_for_word(content: str) -> str:
        parts: List[str] = [r"{\rtf1\ansi\deff0 {\fonttbl {\f0 Times New Roman;}}"]

        for line in content.split("\n"):
            trimmed = line.strip()
            if not trimmed:
                parts.append(r"\par ")
                continue

            text = rtf_escape(trimmed)
            if is_header_line(trimmed):
                parts.append(rf"\par \b \fs24 {text}\b0 \fs22 \par ")
            elif is_subheader_line(trimmed):
                parts.append(rf"\par \b \fs22 {text}\b0 \par ")
            else:
                parts.append(rf"{text}\par ")

        parts.append("}")
        return "".join(parts)

    @staticmethod
    def format_for_preview(content: str) -> str:
        return (
            html.escape(content, quote=False)
            .replace("\n\n", "<br><br>")
            .replace("\n", "<br>")
        )

    @classmethod
    def create_preview(cls, content: str, company_name: Optional[str] = None) -> str:
        """Standalone HTML page showing the updated resume with print and text download."""
        title = html.escape(company_name or "Optimized")
        text_filename = f"updated_resume_{company_slug(company_name)}.txt"
        # json.dumps gives a valid JS string literal; "</" must not close the script element
        resume_js = json.dumps(content).replace("</", "<\\/")
        return PREVIEW_TEMPLATE.format(
            title=title,
            body=cls.format_for_preview(content),
            resume_js=resume_js,
            text_filename=json.dumps(text_filename),
        )


def rtf_escape(text: str) -> str:
    out = []
    for char in text:
        if char in "\\{}":
            out.append("\\" + char)
        elif ord(char) > 127:
            code = ord(char)
            # RTF \u takes a signed 16-bit value; astral characters become '?'
            if code > 0xFFFF:
                out.append("?")
            else:
                out.append(f"\\u{code if code < 32768 else code - 65536}?")
        else:
            out.append(char)
    return "".join(out)


PREVIEW_TEMPLATE = """<!DOCTYPE html>
<html>
  <head>
    <title>Updated Resume - {title}</title>
    <meta charset="utf-8">
    <style>
      body {{ font-family: Georgia, 'Times New Roman', serif; max-width: 800px; margin: 0 auto; padding: 20px; line-height: 1.6; background: #f5f5f5; color: #333; }}
      .header-bar {{ background: #667eea; color: white; padding: 20px; text-align: center; position: sticky; top: 0; }}
      .download-btn {{ background: white; color: #667eea; border: none; padding: 10px 20px; border-radius: 6px; cursor: pointer; margin: 0 8px; font-weight: 600; }}
      .resume-container {{ background: white; padding: 50px; border-radius: 10px; margin: 30px 0; min-height: 800px; }}
      .resume-content {{ font-size: 14px; line-height: 1.7; }}
      @media print {{
        body {{ background: white; }}
        .header-bar {{ display: none; }}
        .resume-container {{ margin: 0; }}
      }}
    </style>
  </head>
  <body>
    <div class="header-bar">
      <h2 style="margin: 0 0 15px 0;">Your Updated Resume is Ready!</h2>
      <button class="download-btn" onclick="downloadAsText()">Download Text</button>
      <button class="download-btn" onclick="window.print()">Print</button>
    </div>
    <div class="resume-container">
      <div class="resume-content">{body}</div>
    </div>
    <script>
      const resumeText = {resume_js};
      function downloadAsText() {{
        const element = document.createElement('a');
        const url = URL.createObjectURL(new Blob([resumeText], {{type: 'text/plain'}}));
        element.href = url;
        element.download = {text_filename};
        document.body.appendChild(element);
        element.click();
        document.body.removeChild(element);
        setTimeout(() => URL.revokeObjectURL(url), 1000);
      }}
    </script>
  </body>
</html>
"""
