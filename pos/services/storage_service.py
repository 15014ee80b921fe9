"""
Object storage for store logos (MinIO, AWS S3, DigitalOcean Spaces).

Logos are uploaded under logos/<user_id>/<uuid>.<ext> with public-read ACL
and referenced from the settings row by their public URL.
"""
import json
import logging
import mimetypes
import uuid
from typing import Optional

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import ClientError
from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)


class StorageService:
    """
    S3-compatible object storage client.

    Usage:
        storage = get_storage_service()
        url = storage.upload_store_logo(file, user_id=3)
    """

    def __init__(self):
        """Initialize S3 client from Flask config."""
        self.endpoint = current_app.config['S3_ENDPOINT']
        self.bucket = current_app.config['S3_BUCKET']
        self.public_url = current_app.config['S3_PUBLIC_URL'].rstrip('/')

        self.client = boto3.client(
            's3',
            endpoint_url=self.endpoint,
            aws_access_key_id=current_app.config['S3_ACCESS_KEY'],
            aws_secret_access_key=current_app.config['S3_SECRET_KEY'],
            region_name=current_app.config['S3_REGION'],
            config=BotoConfig(signature_version='s3v4')
        )

        self._ensure_bucket_exists()

    def _ensure_bucket_exists(self):
        """Create the bucket with a public-read policy if it is missing."""
        try:
            self.client.head_bucket(Bucket=self.bucket)
            return
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') != '404':
                logger.error(f"[STORAGE] ✗ Failed to check bucket: {e}")
                raise

        policy = {
            "Version": "2012-10-17",
            "Statement": [{
                "Effect": "Allow",
                "Principal": {"AWS": "*"},
                "Action": "s3:GetObject",
                "Resource": f"arn:aws:s3:::{self.bucket}/*"
            }]
        }
        try:
            self.client.create_bucket(Bucket=self.bucket)
            self.client.put_bucket_policy(Bucket=self.bucket, Policy=json.dumps(policy))
            logger.info(f"[STORAGE] ✓ Bucket '{self.bucket}' created with public-read policy")
        except ClientError as e:
            logger.error(f"[STORAGE] ✗ Failed to create bucket: {e}")
            raise

    def upload_file(self, file: FileStorage, object_name: str, content_type: Optional[str] = None) -> str:
        """
        Upload a file and return its public URL.

        Raises:
            ValueError: If file validation fails
            ClientError: If upload fails
        """
        self._validate_file(file)

        if not content_type:
            content_type = file.content_type or mimetypes.guess_type(file.filename)[0] or 'application/octet-stream'

        try:
            file.seek(0)
            logger.info(f"[STORAGE] Uploading '{object_name}' to bucket '{self.bucket}'...")
            self.client.upload_fileobj(
                file.stream,
                self.bucket,
                object_name,
                ExtraArgs={'ContentType': content_type, 'ACL': 'public-read'}
            )
        except ClientError as e:
            logger.exception(f"[STORAGE] ✗ Upload failed: {e}")
            raise

        url = self.get_public_url(object_name)
        logger.info(f"[STORAGE] ✓ File uploaded: {url}")
        return url

    def upload_store_logo(self, file: FileStorage, user_id: int) -> str:
        """Upload a store logo for one operator and return its public URL."""
        return self.upload_file(file, logo_object_name(file.filename, user_id))

    def get_public_url(self, object_name: str) -> str:
        """Public URL, e.g. 'http://localhost:9000/logos/logos/3/ab12.png'."""
        return f"{self.public_url}/{self.bucket}/{object_name}"

    def _validate_file(self, file: FileStorage):
        """
        Check size, extension and MIME type.

        Raises:
            ValueError: If validation fails
        """
        if not file or not file.filename:
            raise ValueError("Tidak ada file yang dipilih")

        max_size = current_app.config.get('MAX_UPLOAD_SIZE', 2 * 1024 * 1024)
        file.seek(0, 2)
        file_size = file.tell()
        file.seek(0)
        if file_size > max_size:
            raise ValueError(f"File terlalu besar. Maksimal {max_size / (1024 * 1024):.1f}MB")

        allowed_extensions = current_app.config.get('ALLOWED_EXTENSIONS', set())
        if allowed_extensions and file_extension(file.filename) not in allowed_extensions:
            raise ValueError(f"Ekstensi file tidak diizinkan: {file.filename}")

        allowed_types = current_app.config.get('ALLOWED_MIME_TYPES', set())
        if allowed_types and file.content_type not in allowed_types:
            raise ValueError(f"Jenis file tidak diizinkan: {file.content_type}")


def file_extension(filename: str) -> str:
    name = secure_filename(filename or '')
    return name.rsplit('.', 1)[-1].lower() if '.' in name else ''


def logo_object_name(filename: str, user_id: int) -> str:
    """logos/<user_id>/<uuid>.<ext>"""
    ext = file_extension(filename) or 'bin'
    return f"logos/{user_id}/{uuid.uuid4().hex}.{ext}"


_storage_service = None


def get_storage_service() -> StorageService:
    """Get or create the StorageService singleton."""
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service
