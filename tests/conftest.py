import pytest
from starlette.testclient import TestClient

from blogql.applications import create_app
from blogql.config import EXTENDED_SCHEMA_FILE, Settings
from blogql.store import DataStore, load_store

from .utils import RecordingOperationLogger

SEED_AUTHORS = [
    {'id': '101', 'name': 'Ada Lovelace', 'age': 37, 'description': 'Analytical engines.'},
    {'id': '102', 'name': 'Grace Hopper', 'age': 85, 'description': 'Compilers.'},
]
SEED_BLOGS = [
    {'id': '1', 'title': 'The Poetry of Code', 'labels': ['history'], 'authorId': '101'},
    {'id': '2', 'title': 'Finding the First Bug', 'labels': ['debugging', 'history'], 'authorId': '102'},
]


@pytest.fixture
def settings():
    return Settings(log_operations=False)


@pytest.fixture
def store():
    return load_store(Settings().data_file)


@pytest.fixture
def seeded_store():
    return DataStore(authors=SEED_AUTHORS, blogs=SEED_BLOGS)


@pytest.fixture
def operation_logger():
    return RecordingOperationLogger()


@pytest.fixture
def client(settings, operation_logger):
    return TestClient(create_app(settings, operation_logger=operation_logger))


@pytest.fixture
def extended_client():
    settings = Settings(schema_file=EXTENDED_SCHEMA_FILE, log_operations=False)
    return TestClient(create_app(settings))

