"""
Unit tests for logo storage.
"""

from io import BytesIO

import pytest
from werkzeug.datastructures import FileStorage

from pos.exceptions import BusinessLogicError
from pos.services.settings_service import upload_logo
from pos.services.storage_service import StorageService, file_extension, logo_object_name


class FakeS3Client:

    def __init__(self):
        self.uploaded = []

    def upload_fileobj(self, stream, bucket, key, ExtraArgs=None):
        self.uploaded.append((bucket, key, ExtraArgs, stream.read()))


@pytest.fixture
def storage(app):
    with app.app_context():
        service = StorageService.__new__(StorageService)
        service.endpoint = 'http://minio.test'
        service.bucket = 'logos'
        service.public_url = 'http://storage.test'
        service.client = FakeS3Client()
        yield service


def image(name='logo.png', content_type='image/png', body=b'\x89PNG'):
    return FileStorage(stream=BytesIO(body), filename=name, content_type=content_type)


class TestObjectNames:

    def test_extension(self):
        assert file_extension('Logo Toko.PNG') == 'png'
        assert file_extension('noext') == ''

    def test_logo_object_name(self):
        name = logo_object_name('logo.jpg', 7)
        assert name.startswith('logos/7/')
        assert name.endswith('.jpg')


class TestUpload:

    def test_upload_store_logo(self, storage):
        url = storage.upload_store_logo(image(), 7)

        bucket, key, extra, body = storage.client.uploaded[0]
        assert bucket == 'logos'
        assert key.startswith('logos/7/')
        assert extra == {'ContentType': 'image/png', 'ACL': 'public-read'}
        assert body == b'\x89PNG'
        assert url == f'http://storage.test/logos/{key}'

    def test_rejects_extension(self, storage):
        with pytest.raises(ValueError):
            storage.upload_store_logo(image('logo.exe', 'image/png'), 7)

    def test_rejects_mime_type(self, storage):
        with pytest.raises(ValueError):
            storage.upload_store_logo(image('logo.png', 'text/plain'), 7)

    def test_rejects_large_file(self, storage, app):
        body = b'0' * (app.config['MAX_UPLOAD_SIZE'] + 1)
        with pytest.raises(ValueError):
            storage.upload_store_logo(image(body=body), 7)

    def test_service_wraps_validation_errors(self, storage):
        with pytest.raises(BusinessLogicError):
            upload_logo(image('logo.exe'), 7, storage=storage)
