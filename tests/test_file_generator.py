import io
import pytest
import PyPDF2
from datetime import date
from app.schemas.resume import FileMetadata
from app.services.file_generator import (
    DOCX_MIME, MSWORD_MIME, PDF_MIME, TEXT_MIME,
    ResumeDownloadOptions, ResumeFileGenerator,
    extract_file_metadata, is_header_line, is_subheader_line, rtf_escape,
)
from tests.conftest import UPDATED_RESUME

TODAY = date(2024, 1, 15)


def _options(mime_type, company="Acme Corp", content=UPDATED_RESUME):
    extension = {PDF_MIME: "pdf", DOCX_MIME: "docx", MSWORD_MIME: "doc"}.get(mime_type, "txt")
    return ResumeDownloadOptions(
        resume_content=content,
        company_name=company,
        file_metadata=FileMetadata(
            original_mime_type=mime_type,
            original_extension=extension,
            original_filename=f"resume.{extension}",
        ),
    )


# --- LINE CLASSIFICATION ---

@pytest.mark.parametrize("line", [
    "PROFESSIONAL SUMMARY",
    "Work Experience and more",
    "Jane Doe",
    "jane@example.com",
    "+1 (555) 123-4567",
])
def test_header_lines(line):
    assert is_header_line(line)

@pytest.mark.parametrize("line", [
    "Led a team of five engineers.",
    "• Cut API latency by 40%",
])
def test_body_lines(line):
    assert not is_header_line(line)
    assert not is_subheader_line(line)

def test_subheader_lines():
    assert is_subheader_line("Acme Corp | 2019")
    assert is_subheader_line("State University, 2015")
    assert not is_subheader_line("Acme Corp | 2019 " + "x" * 100)


# --- FORMAT SELECTION ---

def test_plain_text_output():
    generated = ResumeFileGenerator.generate(_options(TEXT_MIME), TODAY)
    assert generated.filename == "updated_resume_Acme_Corp_2024-01-15.txt"
    assert generated.mime_type == TEXT_MIME
    assert generated.content == UPDATED_RESUME.encode("utf-8")
    assert generated.extension == "txt"

def test_unknown_mime_falls_back_to_text():
    generated = ResumeFileGenerator.generate(_options("application/rtf", company=None), TODAY)
    assert generated.filename == "updated_resume_optimized_2024-01-15.txt"

def test_pdf_output():
    generated = ResumeFileGenerator.generate(_options(PDF_MIME), TODAY)
    assert generated.filename == "updated_resume_Acme_Corp_2024-01-15.pdf"
    assert generated.mime_type == PDF_MIME
    assert generated.content.startswith(b"%PDF")

def test_pdf_output_spans_pages():
    content = "\n".join(f"Bullet point number {i} describing a responsibility" for i in range(150))
    reader = PyPDF2.PdfReader(io.BytesIO(ResumeFileGenerator.render_pdf(content)))
    assert len(reader.pages) >= 2
    assert "Bullet point number 0" in reader.pages[0].extract_text()

@pytest.mark.parametrize("mime_type", [DOCX_MIME, MSWORD_MIME])
def test_word_output(mime_type):
    generated = ResumeFileGenerator.generate(_options(mime_type), TODAY)
    assert generated.filename.endswith(".docx")
    assert generated.mime_type == DOCX_MIME
    markup = generated.content.decode("ascii")
    assert markup.startswith("{\\rtf1\\ansi")
    assert "\\b \\fs24 PROFESSIONAL SUMMARY\\b0" in markup
    assert "Backend engineer with 6 years of Python experience.\\par" in markup
    assert markup.endswith("}")

def test_failed_render_falls_back_to_text(monkeypatch):
    def broken(content):
        raise RuntimeError("font missing")

    monkeypatch.setattr(ResumeFileGenerator, "render_pdf", staticmethod(broken))
    generated = ResumeFileGenerator.generate(_options(PDF_MIME), TODAY)
    assert generated.filename.endswith(".txt")
    assert generated.mime_type == TEXT_MIME
    assert generated.content == UPDATED_RESUME.encode("utf-8")

def test_generate_and_download_hands_file_to_sink():
    downloads = []
    generated = ResumeFileGenerator.generate_and_download(_options(TEXT_MIME), downloads.append)
    assert downloads == [generated]


# --- HELPERS ---

def test_rtf_escape():
    assert rtf_escape("a{b}\\c") == "a\\{b\\}\\\\c"
    assert rtf_escape("Café") == "Caf\\u233?"
    assert rtf_escape("😀") == "?"

def test_extract_file_metadata():
    metadata = extract_file_metadata("My Resume.PDF", PDF_MIME)
    assert metadata.original_extension == "pdf"
    assert metadata.original_mime_type == PDF_MIME
    assert metadata.original_filename == "My Resume.PDF"

    assert extract_file_metadata("resume", None).original_extension == "txt"


# --- PREVIEW ---

def test_preview_escapes_content():
    html = ResumeFileGenerator.create_preview("<script>alert(1)</script>\nLine two\n\nLine three", "A&B")
    assert "Updated Resume - A&amp;B" in html
    assert "&lt;script&gt;alert(1)&lt;/script&gt;<br>Line two<br><br>Line three" in html
    assert "<script>alert(1)</script>" not in html
    assert '"updated_resume_A_B.txt"' in html

def test_format_for_preview():
    assert ResumeFileGenerator.format_for_preview("a & b\n\nc\nd") == "a &amp; b<br><br>c<br>d"
