"""Upload intake: validate, create the batch and its queue items, announce it."""

from flask import current_app

from ..errors import IntakeError
from ..events import BatchEvents
from ..extensions import db
from ..models import batch as batch_status
from .work_items import WorkItemStore

ALLOWED_EXTENSIONS = ('.pdf',)


def _size_of(file_storage):
    stream = getattr(file_storage, 'stream', file_storage)
    pos = stream.tell()
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(pos)
    return size


def check_upload(files):
    """Reject an upload before anything is stored."""
    if not files:
        raise IntakeError("No files provided")
    max_files = current_app.config.get('MAX_UPLOAD_FILES', 50)
    if len(files) > max_files:
        raise IntakeError(f"Maximum {max_files} files per upload")
    max_size = current_app.config.get('MAX_FILE_SIZE', 10 * 1024 * 1024)
    for f in files:
        name = getattr(f, 'filename', '') or ''
        if not name.lower().endswith(ALLOWED_EXTENSIONS):
            raise IntakeError(f"Only PDF files are allowed: {name!r}")
        if _size_of(f) > max_size:
            raise IntakeError(f"{name!r} exceeds {max_size} bytes")


def create_batch_upload(uploaded_by_id, meta, files, store=None, events=None):
    """Create a QUEUED batch for already-stored `files` ([{file_url, file_name}]).

    Returns `(batch, message)`.
    """
    if not files:
        raise IntakeError("No files provided")
    max_files = current_app.config.get('MAX_UPLOAD_FILES', 50)
    if len(files) > max_files:
        raise IntakeError(f"Maximum {max_files} files per upload")

    store = store or WorkItemStore()
    events = events or BatchEvents()
    batch = store.create_batch(dict(meta, uploaded_by_id=uploaded_by_id), len(files))
    store.create_queue_items(batch.id, files)
    store.set_batch_status(batch.id, batch_status.QUEUED)
    db.session.commit()
    batch_id = batch.id
    current_app.logger.info('Created batch %s with %d files for user %s', batch_id, len(files), uploaded_by_id)

    events.batch_queued(batch_id)
    message = f"{len(files)} files queued for processing. Check batch status for progress."
    return store.get_batch(batch_id, refresh=True), message
