"""Extract plain text from uploaded files."""

import io
import logging
from pathlib import PurePath

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from ..domain.exceptions import EmptyContentError, UnsupportedDocumentError, ValidationError
from ..domain.utils import clean_text

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = frozenset({".txt", ".md", ".markdown", ".csv", ".json"})
PDF_EXTENSIONS = frozenset({".pdf"})
SUPPORTED_EXTENSIONS = TEXT_EXTENSIONS | PDF_EXTENSIONS

DEFAULT_MAX_BYTES = 10 * 1024 * 1024


def _extract_pdf(filename: str, data: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
        text_parts = []
        for page in reader.pages:
            text = page.extract_text()
            if text:
                cleaned = clean_text(text).strip()
                if cleaned:
                    text_parts.append(cleaned)
    except PyPdfError as e:
        raise UnsupportedDocumentError(
            f"Could not read PDF '{filename}'", cause=e, context={"filename": filename}
        ) from e
    return "\n\n".join(text_parts)


def extract_text(filename: str, data: bytes, max_bytes: int = DEFAULT_MAX_BYTES) -> str:
    """Extract the text content of an uploaded file.

    Text formats are decoded as UTF-8 (undecodable bytes replaced, BOM
    removed). PDFs are read page by page and joined with blank lines.

    Args:
        filename: Original file name; its extension selects the format.
        data: Raw file bytes.
        max_bytes: Largest accepted upload.

    Returns:
        The extracted text.

    Raises:
        UnsupportedDocumentError: For unknown extensions or unreadable PDFs.
        ValidationError: If the file is too large.
        EmptyContentError: If no text could be extracted.
    """
    suffix = PurePath(filename).suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise UnsupportedDocumentError(
            f"Unsupported file type '{suffix or filename}'",
            context={"supported": sorted(SUPPORTED_EXTENSIONS)},
        )
    if len(data) > max_bytes:
        raise ValidationError(
            f"File exceeds the {max_bytes // (1024 * 1024)} MB upload limit",
            context={"filename": filename, "size": len(data)},
        )

    if suffix in PDF_EXTENSIONS:
        text = _extract_pdf(filename, data)
    else:
        text = clean_text(data.decode("utf-8", errors="replace"), normalize=False)

    if not text.strip():
        raise EmptyContentError(f"No text could be extracted from '{filename}'")

    logger.debug(f"Extracted {len(text)} characters from {filename}")
    return text
