import io
import zipfile
import logging
import os

import PyPDF2
import docx
from docx.opc.exceptions import PackageNotFoundError

from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOC_MIME = "application/msword"

ALLOWED_EXTENSIONS = {'.pdf', '.docx', '.txt', '.md', '.rtf'}


def validate_filename(filename: str) -> str:
    """Return the lower-cased extension or raise for unsupported uploads."""
    file_ext = os.path.splitext(filename or "")[1].lower()
    if file_ext not in ALLOWED_EXTENSIONS:
        raise ValidationError(
            f"File type {file_ext or '(none)'} not allowed. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )
    return file_ext


def extract_text(content: bytes, filename: str, mime_type: str = "") -> str:
    """Extract plain text from an uploaded resume (PDF, DOCX or text)."""
    file_ext = os.path.splitext(filename or "")[1].lower()

    try:
        if mime_type == PDF_MIME or file_ext == '.pdf':
            reader = PyPDF2.PdfReader(io.BytesIO(content))
            text = "\n".join((page.extract_text() or "") for page in reader.pages)

        elif mime_type == DOCX_MIME or file_ext == '.docx':
            document = docx.Document(io.BytesIO(content))
            text = "\n".join(paragraph.text for paragraph in document.paragraphs)

        else:
            text = content.decode('utf-8', errors='ignore')
    except (PyPDF2.errors.PdfReadError, PackageNotFoundError, zipfile.BadZipFile, ValueError, KeyError, OSError) as e:
        logger.warning(f"Text extraction failed for {filename}: {e}")
        raise ValidationError(f"Could not read text from {filename}")

    return text.strip()
