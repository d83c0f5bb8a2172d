"""
Upload Middleware - multipart file intake

Spools the uploaded part to a temporary file under the upload directory,
checks size and MIME type (a MIME allow-list of None accepts any type),
and removes the file when the request is done, whatever the outcome.
"""
import os
import tempfile
from contextlib import contextmanager

import structlog
from werkzeug.utils import secure_filename

from campushub.constants import ALLOWED_MIME_TYPES, MAX_FILE_SIZE
from campushub.exceptions import FileValidationException
from campushub.utils import remove_file_quietly

logger = structlog.get_logger("upload")


class TemporaryUpload:
    def __init__(self, path, original_name, mime_type, size):
        self.path = path
        self.original_name = original_name
        self.mime_type = mime_type
        self.size = size


def validate_upload(upload, max_file_size=MAX_FILE_SIZE, allowed_mime_types=ALLOWED_MIME_TYPES):
    if upload.size > max_file_size:
        raise FileValidationException(
            f"File size {upload.size / (1024 * 1024):.2f}MB exceeds maximum limit of "
            f"{max_file_size // (1024 * 1024)}MB"
        )
    if allowed_mime_types is not None and upload.mime_type not in allowed_mime_types:
        raise FileValidationException(
            f"Invalid file type {upload.mime_type}. Allowed types: {', '.join(allowed_mime_types)}"
        )


@contextmanager
def receive_upload(file_storage, upload_dir, max_file_size=MAX_FILE_SIZE, allowed_mime_types=ALLOWED_MIME_TYPES):
    """
    Yield a validated TemporaryUpload for `file_storage` (a werkzeug FileStorage).
    The temporary file is deleted on exit; cleanup failures are logged, never raised.
    """
    if file_storage is None or not file_storage.filename:
        raise FileValidationException("No file uploaded")

    os.makedirs(upload_dir, exist_ok=True)
    extension = os.path.splitext(secure_filename(file_storage.filename))[1]
    fd, path = tempfile.mkstemp(prefix="file-", suffix=extension, dir=upload_dir)
    os.close(fd)

    try:
        file_storage.save(path)
        upload = TemporaryUpload(
            path=path,
            original_name=file_storage.filename,
            mime_type=file_storage.mimetype,
            size=os.path.getsize(path),
        )
        validate_upload(upload, max_file_size, allowed_mime_types)
        yield upload
    finally:
        remove_file_quietly(path, logger)
