"""Shared pytest fixtures for all tests."""

from pathlib import Path
from typing import Generator

import boto3
import pytest
from fastapi.testclient import TestClient
from moto import mock_aws

from metadata_api.config import Settings
from metadata_api.database import Database
from metadata_api.main import create_app
from metadata_api.object_store import ObjectStore
from metadata_api.service_locator import Services, build_services

TEST_BUCKET = 'metadata-api-test'
TEST_REGION = 'us-east-1'


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """
    Fake credentials so boto3 never picks up a real profile.
    """
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', TEST_REGION)


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / 'data' / 'metadata.db'


@pytest.fixture
def database(db_path) -> Database:
    """
    Create a fresh metadata database for each test.

    Args:
        db_path: Path inside pytest tmp_path

    Returns:
        Initialized Database handle
    """
    db = Database(str(db_path))
    db.init_database()
    return db


@pytest.fixture
def object_store() -> Generator[ObjectStore, None, None]:
    """
    Mock S3 service with the test bucket.

    Yields:
        ObjectStore bound to the mocked bucket
    """
    with mock_aws():
        client = boto3.client('s3', region_name=TEST_REGION)
        client.create_bucket(Bucket=TEST_BUCKET)
        yield ObjectStore(client, TEST_BUCKET)


@pytest.fixture
def services(database, object_store) -> Services:
    return build_services(database, object_store)


@pytest.fixture
def folder_service(services):
    return services.folder_service


@pytest.fixture
def file_service(services):
    return services.file_service


@pytest.fixture
def transfer_service(services):
    return services.transfer_service


@pytest.fixture
def settings(db_path) -> Settings:
    return Settings(
        database_path=str(db_path),
        environment='test',
        bucket_name=TEST_BUCKET,
        region_name=TEST_REGION,
        access_key_id='testing',
        secret_access_key='testing',
        create_bucket=True,
    )


@pytest.fixture
def client(settings) -> Generator[TestClient, None, None]:
    """
    Create FastAPI test client with the lifespan running against mocked S3.
    """
    with mock_aws():
        app = create_app(settings)
        with TestClient(app, raise_server_exceptions=False) as test_client:
            yield test_client


@pytest.fixture
def app_object_store(client) -> ObjectStore:
    """
    Object store the running app uses, for simulating client uploads.
    """
    return client.app.state.object_store


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    return b'%PDF-1.4\n% sample document\n'
