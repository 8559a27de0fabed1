import os
import uuid
from werkzeug.utils import secure_filename
from flask import current_app
import boto3
from botocore.client import Config


def _ensure_local_dir():
    d = current_app.config['LOCAL_STORAGE_DIR']
    os.makedirs(d, exist_ok=True)
    return d


def _s3_client():
    s3_kwargs = {}
    endpoint = current_app.config.get('S3_ENDPOINT')
    if endpoint:
        s3_kwargs['endpoint_url'] = endpoint
    region = current_app.config.get('S3_REGION')
    if region:
        s3_kwargs['region_name'] = region
    return boto3.client(
        's3',
        aws_access_key_id=current_app.config.get('S3_ACCESS_KEY'),
        aws_secret_access_key=current_app.config.get('S3_SECRET_KEY'),
        config=Config(signature_version='s3v4', s3={'addressing_style': 'virtual'}),
        **s3_kwargs,
    )


def storage_key(filename, prefix=""):
    """Unique object key; the original name is kept only as a suffix."""
    name = secure_filename(filename or "") or "resume.pdf"
    key = f"{uuid.uuid4().hex}-{name}"
    return f"{prefix}/{key}" if prefix else key


def save_file(file_storage, prefix=""):
    backend = current_app.config.get('STORAGE_BACKEND', 'local')
    key = storage_key(file_storage.filename, prefix)

    if backend == 's3':
        bucket = current_app.config.get('S3_BUCKET')
        stream = getattr(file_storage, 'stream', file_storage)
        _s3_client().upload_fileobj(stream, bucket, key)
        return f"s3://{bucket}/{key}"

    d = _ensure_local_dir()
    path = os.path.join(d, key)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    file_storage.save(path)
    return f"file://{os.path.abspath(path)}"


def public_url(url, expires=24 * 3600):
    """URL the scoring worker can fetch the stored file from."""
    if url.startswith('s3://'):
        bucket, key = url.replace('s3://', '').split('/', 1)
        return _s3_client().generate_presigned_url(
            'get_object', Params={'Bucket': bucket, 'Key': key}, ExpiresIn=expires)
    base = current_app.config.get('PUBLIC_FILE_BASE_URL')
    if url.startswith('file://') and base:
        root = os.path.abspath(current_app.config['LOCAL_STORAGE_DIR'])
        path = url.replace('file://', '')
        rel = os.path.relpath(path, root).replace(os.sep, '/')
        return f"{base.rstrip('/')}/{rel}"
    return url
