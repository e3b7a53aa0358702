"""Tests for TopicQueryService over a real local store."""

import pytest

from topicsync.adapters.auth.env_credentials import StaticCredentialProvider
from topicsync.core.queries.topic_queries import TopicQueryService
from topicsync.domain.entities import ChangeSet, Member, Topic
from topicsync.domain.exceptions import NotAuthenticatedError


@pytest.fixture
def stored_topics(topic_repo):
    """Three topics: two led by leader-1, one led by someone else with leader-1 as member."""
    led_a = Topic(join_code="a", leader_id="leader-1", topic_name="A", context_id=1, id=1)
    led_b = Topic(join_code="b", leader_id="leader-1", topic_name="B", context_id=1, id=2)
    joined = Topic(join_code="c", leader_id="other", topic_name="C", context_id=1, id=3)
    joined.add_member(Member(id="leader-1", email="l@example.com"))
    unsaved = Topic(join_code="d", leader_id="leader-1", topic_name="D", context_id=1)
    topic_repo.save(ChangeSet(topics=[led_a, led_b, joined, unsaved]))
    return topic_repo


class TestLeaderTopics:
    """Tests for leader_topics()."""

    def test_filters_by_id_and_leader(self, stored_topics) -> None:
        queries = TopicQueryService(stored_topics, StaticCredentialProvider(user_id="leader-1"))

        topics = queries.leader_topics([1, 3])

        assert [t.join_code for t in topics] == ["a"]

    def test_topics_without_ids_never_match(self, stored_topics) -> None:
        """Locally created topics awaiting an id are not addressable by id."""
        queries = TopicQueryService(stored_topics, StaticCredentialProvider(user_id="leader-1"))

        assert [t.join_code for t in queries.leader_topics([1, 2])] == ["a", "b"]

    def test_requires_signed_in_user(self, stored_topics) -> None:
        queries = TopicQueryService(stored_topics, StaticCredentialProvider())

        with pytest.raises(NotAuthenticatedError):
            queries.leader_topics([1])

    def test_empty_ids(self, stored_topics) -> None:
        queries = TopicQueryService(stored_topics, StaticCredentialProvider(user_id="leader-1"))
        assert queries.leader_topics([]) == []


class TestMemberTopics:
    """Tests for member_topics()."""

    def test_filters_by_membership(self, stored_topics) -> None:
        queries = TopicQueryService(stored_topics, StaticCredentialProvider(user_id="leader-1"))

        topics = queries.member_topics([1, 2, 3])

        assert [t.join_code for t in topics] == ["c"]
        assert "leader-1" in topics[0].members

    def test_signed_out_returns_empty(self, stored_topics) -> None:
        queries = TopicQueryService(stored_topics, StaticCredentialProvider())

        assert queries.member_topics([1, 2, 3]) == []
