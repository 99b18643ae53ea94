"""Blob lifecycle for note PDFs stored in the Firebase Storage bucket.

Uploads land under ``{uid}/{subject_id}/{epoch_ms}-{safe_name}``. Deletion is
best-effort: ``delete_by_url`` never raises and reports what happened through
a ``BlobDeleteResult`` so callers can log it without aborting their own work.
"""

import re
import time
from dataclasses import dataclass
from urllib.parse import unquote, urlparse

from google.api_core.exceptions import NotFound

from study_buddy.logging_config import logger

PDF_CONTENT_TYPE = 'application/pdf'
TEXT_CONTENT_TYPE = 'text/plain; charset=utf-8'
PLACEHOLDER_SCHEMES = {'placeholder'}
PLACEHOLDER_BLOB_URL = 'placeholder://pending-blob-upload'

_UNSAFE_NAME_CHARS = re.compile(r'[^A-Za-z0-9.\-_]')


@dataclass(frozen=True)
class UploadedBlob:
    blob_name: str
    blob_url: str


@dataclass(frozen=True)
class BlobDeleteResult:
    ok: bool
    blob_name: str = ''
    skipped: bool = False
    error: str = ''


def sanitize_file_name(original_file_name):
    return _UNSAFE_NAME_CHARS.sub('_', str(original_file_name or ''))


def build_blob_name(uid, subject_id, original_file_name, now_ms):
    return f'{uid}/{subject_id}/{int(now_ms)}-{sanitize_file_name(original_file_name)}'


def is_placeholder_url(blob_url):
    url = str(blob_url or '').strip()
    if not url:
        return True
    return urlparse(url).scheme.lower() in PLACEHOLDER_SCHEMES


def blob_name_from_url(blob_url):
    """Strip scheme, host and the leading bucket segment from a blob URL."""
    path = unquote(urlparse(str(blob_url)).path or '').lstrip('/')
    if '/' not in path:
        return ''
    return path.split('/', 1)[1]


class BlobStore:
    def __init__(self, bucket, *, clock=time.time):
        self.bucket = bucket
        self._clock = clock

    def upload(self, uid, subject_id, file_bytes, original_file_name) -> UploadedBlob:
        """Store a PDF that already passed the limit policy."""
        blob_name = build_blob_name(uid, subject_id, original_file_name, self._clock() * 1000)
        blob = self.bucket.blob(blob_name)
        blob.upload_from_string(file_bytes, content_type=PDF_CONTENT_TYPE)
        logger.info(f"Uploaded PDF to blob: {blob_name}")
        return UploadedBlob(blob_name=blob_name, blob_url=blob.public_url)

    def upload_text(self, uid, subject_id, note_id, text) -> UploadedBlob:
        """Store the extracted text of a note next to its PDF as ``{note_id}.txt``."""
        blob_name = f'{uid}/{subject_id}/{note_id}.txt'
        blob = self.bucket.blob(blob_name)
        blob.upload_from_string(text.encode('utf-8'), content_type=TEXT_CONTENT_TYPE)
        logger.info(f"Uploaded extracted text to blob: {blob_name}")
        return UploadedBlob(blob_name=blob_name, blob_url=blob.public_url)

    def delete_by_url(self, blob_url) -> BlobDeleteResult:
        if is_placeholder_url(blob_url):
            return BlobDeleteResult(ok=True, skipped=True)
        blob_name = blob_name_from_url(blob_url)
        if not blob_name:
            logger.warning(f"Could not parse blob path from URL: {blob_url}")
            return BlobDeleteResult(ok=False, error='unparseable blob url')
        try:
            self.bucket.blob(blob_name).delete()
        except NotFound:
            return BlobDeleteResult(ok=True, blob_name=blob_name)
        except Exception as exc:
            logger.warning(f"Could not delete blob {blob_name}: {exc}")
            return BlobDeleteResult(ok=False, blob_name=blob_name, error=str(exc))
        logger.info(f"Deleted blob: {blob_name}")
        return BlobDeleteResult(ok=True, blob_name=blob_name)

    def delete_note_blobs(self, note):
        """Delete the PDF and the optional extracted-text blob of a note."""
        results = [self.delete_by_url(note.get('blob_url', ''))]
        if note.get('text_url'):
            results.append(self.delete_by_url(note['text_url']))
        return results
