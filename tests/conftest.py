"""Pytest configuration and shared fixtures."""

import gc
from pathlib import Path
from unittest.mock import patch

import pytest

from tests.helpers.fake_backend import BASE_URL, LEADER_ID, TOKEN, FakeBackend
from topicsync.adapters.auth.env_credentials import StaticCredentialProvider
from topicsync.adapters.http.client import HttpxRemoteClient
from topicsync.adapters.sqlite.meta_repository import SQLiteMetaRepository
from topicsync.adapters.sqlite.schema import init_database
from topicsync.adapters.sqlite.topic_repository import SQLiteTopicRepository
from topicsync.core.sync.topic_sync import TopicSyncService
from topicsync.domain.entities import ContextQuestion, RequestQuestion, Topic


@pytest.fixture(autouse=True)
def cleanup_database_connections():
    """Automatically clean up database connections after each test.

    Runs gc.collect() twice so unclosed SQLite connections are finalized
    and do not surface as ResourceWarnings in later tests.
    """
    yield
    gc.collect()
    gc.collect()


@pytest.fixture(autouse=True)
def isolated_global_config(tmp_path: Path):
    """Point the global config path at an empty location.

    Keeps tests independent of the user's ~/.config/topicsync/config.toml.
    """
    missing = tmp_path / "global_config" / "topicsync" / "config.toml"
    with patch(
        "topicsync.adapters.config.toml_config_provider.get_global_config_path",
        return_value=missing,
    ):
        yield missing


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Create a temporary database with schema initialized.

    Returns:
        Path to the initialized test database.
    """
    db = tmp_path / "topics.db"
    init_database(db)
    return db


@pytest.fixture
def topic_repo(db_path: Path):
    """SQLiteTopicRepository over the temporary database."""
    with SQLiteTopicRepository(db_path) as repo:
        yield repo


@pytest.fixture
def meta_repo(db_path: Path):
    """SQLiteMetaRepository over the temporary database."""
    with SQLiteMetaRepository(db_path) as repo:
        yield repo


@pytest.fixture
def credentials() -> StaticCredentialProvider:
    """Signed-in credentials for the default leader."""
    return StaticCredentialProvider(token=TOKEN, user_id=LEADER_ID)


@pytest.fixture
def backend() -> FakeBackend:
    """Empty fake backend; tests add the routes they need."""
    return FakeBackend()


@pytest.fixture
def remote(backend: FakeBackend, credentials: StaticCredentialProvider) -> HttpxRemoteClient:
    """Remote client wired to the fake backend."""
    return HttpxRemoteClient(BASE_URL, credentials, transport=backend.transport)


@pytest.fixture
def service(
    remote: HttpxRemoteClient,
    topic_repo: SQLiteTopicRepository,
    credentials: StaticCredentialProvider,
    meta_repo: SQLiteMetaRepository,
) -> TopicSyncService:
    """TopicSyncService over the fake backend and a real SQLite store."""
    return TopicSyncService(
        remote=remote,
        repository=topic_repo,
        credentials=credentials,
        meta=meta_repo,
    )


@pytest.fixture
def sample_topic() -> Topic:
    """A topic with a server id, led by the default leader."""
    return Topic(
        join_code="join-1",
        leader_id=LEADER_ID,
        topic_name="Retro",
        context_id=1,
        id=1,
    )


@pytest.fixture
def sample_questions() -> tuple[list[ContextQuestion], list[RequestQuestion]]:
    """Two context questions and one request question."""
    return (
        [
            ContextQuestion(id=10, question="What went well?", template=True),
            ContextQuestion(id=11, question="What went badly?", template=True),
        ],
        [RequestQuestion(id=20, question="Anything to add?", template=True)],
    )
