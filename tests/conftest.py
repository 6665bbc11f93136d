import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock
from media_handler.config import MediaHandlerConfig, Settings
from media_handler.main import create_app
from media_handler.services.s3_service import S3Service


TEST_JWT_SECRET = "test-secret"


async def allow_all(request, response):
    return True


async def deny_all(request, response):
    return False


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        s3_endpoint="https://s3.test",
        cdn_base_url="cdn.example.com",
        s3_bucket_name="test-bucket",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        aws_region="us-east-1",
        jwt_secret_key=TEST_JWT_SECRET,
        environment="test",
    )


@pytest.fixture
def media_config(settings):
    return MediaHandlerConfig.from_settings(settings, allow_all)


@pytest.fixture
def s3_service():
    service = MagicMock(spec=S3Service)
    service.list_objects.return_value = ([], None)
    service.upload_file.return_value = {
        "Location": "https://s3.test/test-bucket/cat.png",
        "Bucket": "test-bucket",
        "Key": "cat.png",
    }
    service.delete_object.return_value = None
    return service


@pytest.fixture
def client(settings, s3_service):
    app = create_app(settings, s3_service, allow_all)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def unauthorized_client(settings, s3_service):
    app = create_app(settings, s3_service, deny_all)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sample_objects():
    return [
        {"Key": "cat.png", "Size": 1024},
        {"Key": "assets/dog.jpg", "Size": 2048},
        {"Key": "videos/swim.mp4", "Size": 4096},
    ]
