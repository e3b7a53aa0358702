"""Integration tests for the status use case."""

from pathlib import Path

from topicsync.adapters.auth.env_credentials import StaticCredentialProvider
from topicsync.core.status.status_usecase import StatusRequest, StatusUseCase
from topicsync.domain.config import TopicSyncConfig
from topicsync.domain.entities import ChangeSet, Topic


def _usecase(topic_repo, meta_repo, user_id: str | None) -> StatusUseCase:
    return StatusUseCase(
        topic_repo=topic_repo,
        meta_repo=meta_repo,
        credentials=StaticCredentialProvider(user_id=user_id),
        config=TopicSyncConfig.default(),
    )


def test_status_of_empty_store(topic_repo, meta_repo, tmp_path: Path) -> None:
    response = _usecase(topic_repo, meta_repo, None).execute(StatusRequest(tmp_path))

    assert response.success
    assert response.topic_count == 0
    assert response.last_synced_at is None
    assert response.signed_in_as is None


def test_status_counts_led_topics(topic_repo, meta_repo, tmp_path: Path) -> None:
    topic_repo.save(
        ChangeSet(
            topics=[
                Topic(join_code="a", leader_id="u1", topic_name="A", context_id=1, id=1),
                Topic(join_code="b", leader_id="u2", topic_name="B", context_id=1, id=2),
            ]
        )
    )
    stamped = meta_repo.stamp()

    response = _usecase(topic_repo, meta_repo, "u1").execute(StatusRequest(tmp_path))

    assert response.topic_count == 2
    assert response.led_topic_count == 1
    assert response.last_synced_at == stamped
    assert response.signed_in_as == "u1"


def test_status_reports_store_errors(meta_repo, tmp_path: Path) -> None:
    """A broken store yields an error response."""

    class BrokenRepository:
        def list_topics(self):
            raise OSError("disk gone")

    response = _usecase(BrokenRepository(), meta_repo, "u1").execute(StatusRequest(tmp_path))

    assert not response.success
    assert "disk gone" in response.error
