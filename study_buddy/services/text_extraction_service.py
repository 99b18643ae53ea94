"""Plain-text extraction for uploaded PDF notes.

Extraction runs right after the PDF is stored and is best-effort: a PDF that
cannot be parsed leaves the note without ``text_url`` and the upload still
succeeds.
"""

import io
from dataclasses import dataclass

from pypdf import PdfReader

from study_buddy.logging_config import logger
from study_buddy.repositories import notes_repo


@dataclass(frozen=True)
class TextExtractionResult:
    ok: bool
    text_url: str = ''
    text_length: int = 0
    error: str = ''


def extract_pdf_text(file_bytes) -> str:
    reader = PdfReader(io.BytesIO(file_bytes))
    parts = []
    for page in reader.pages:
        parts.append(page.extract_text() or '')
    return '\n'.join(parts)


def extract_note_text(app_ctx, note, file_bytes) -> TextExtractionResult:
    """Extract the note's text, store it as a blob and point ``text_url`` at it."""
    note_id = note.get('note_id', '')
    try:
        text = extract_pdf_text(file_bytes)
    except Exception as exc:
        logger.warning(f"Text extraction failed for note {note_id}: {exc}")
        return TextExtractionResult(ok=False, error=str(exc))
    if not text.strip():
        logger.info(f"No text extracted from note {note_id} (might be image-based)")

    try:
        uploaded = app_ctx.blob_store.upload_text(note.get('uid', ''), note.get('subject_id', ''), note_id, text)
    except Exception as exc:
        logger.warning(f"Could not store extracted text for note {note_id}: {exc}")
        return TextExtractionResult(ok=False, error=str(exc))

    try:
        notes_repo.update_doc(app_ctx.db, note_id, {'text_url': uploaded.blob_url})
    except Exception as exc:
        logger.warning(f"Could not record text_url for note {note_id}: {exc}")
        app_ctx.blob_store.delete_by_url(uploaded.blob_url)
        return TextExtractionResult(ok=False, error=str(exc))
    logger.info(f"Extracted {len(text)} characters of text for note {note_id}")
    return TextExtractionResult(ok=True, text_url=uploaded.blob_url, text_length=len(text))
