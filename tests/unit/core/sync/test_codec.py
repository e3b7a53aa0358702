"""Tests for the JSON wire codec."""

import json
import logging

import pytest

from tests.helpers.fake_backend import details_json, question_json, topic_json
from topicsync.core.sync import codec
from topicsync.domain.entities import Topic, TopicQuestion


def _body(data) -> bytes:
    return json.dumps(data).encode()


class TestDecode:
    """Tests for decode()."""

    def test_invalid_json_returns_none(self, caplog: pytest.LogCaptureFixture) -> None:
        """A body that is not JSON decodes to None and is logged at DEBUG."""
        with caplog.at_level(logging.DEBUG, logger="topicsync.core.sync.codec"):
            assert codec.decode(b"<html>", codec.parse_topic, "topic") is None

        assert "Could not decode topic" in caplog.text

    def test_wrong_shape_returns_none(self) -> None:
        """A JSON value of the wrong shape decodes to None."""
        assert codec.decode(_body({"id": 1}), codec.parse_topics, "topic list") is None

    def test_missing_required_key_returns_none(self) -> None:
        """Missing keys are a decode failure, not an exception."""
        data = topic_json(1, "abc")
        del data["leaderid"]
        assert codec.decode(_body(data), codec.parse_topic) is None


class TestParseTopics:
    """Tests for topic parsing."""

    def test_parse_topic_shell(self) -> None:
        """Wire keys map onto Topic fields."""
        topic = codec.parse_topic(topic_json(7, "abc", name="Retro", context_id=3))

        assert topic.id == 7
        assert topic.join_code == "abc"
        assert topic.leader_id == "leader-1"
        assert topic.topic_name == "Retro"
        assert topic.context_id == 3
        assert topic.context_questions == {}

    def test_numeric_leader_id_becomes_string(self) -> None:
        """Numeric user ids share the string id namespace."""
        topic = codec.parse_topic(topic_json(1, "abc", leader_id=42))

        assert topic.leader_id == "42"

    def test_null_id_is_allowed(self) -> None:
        """A topic without a server id decodes with id None."""
        assert codec.parse_topic(topic_json(None, "abc")).id is None

    def test_members_are_parsed(self) -> None:
        """Members are keyed by user id."""
        members = [
            {
                "id": "u1",
                "email": "a@example.com",
                "firstname": "Ada",
                "lastname": "Lovelace",
                "avatarurl": None,
            }
        ]
        topic = codec.parse_topic(topic_json(1, "abc", members=members))

        assert set(topic.members) == {"u1"}
        assert topic.members["u1"].first_name == "Ada"

    def test_one_bad_entry_rejects_the_list(self) -> None:
        """The topic list decodes as a whole or not at all."""
        good = topic_json(1, "a")
        bad = topic_json(2, "b")
        bad["contextid"] = "not-a-number"

        assert codec.decode(_body([good, bad]), codec.parse_topics) is None

    def test_boolean_is_not_an_integer(self) -> None:
        """JSON booleans are rejected where ids are expected."""
        with pytest.raises(TypeError):
            codec.parse_topic(topic_json(True, "abc"))


class TestParseDetails:
    """Tests for the details envelope."""

    def test_parse_details(self) -> None:
        """Topic id comes from key "0"; question ids keep server order."""
        details = codec.parse_topic_details(details_json(5, [10, 11], [20]))

        assert details.topic_id == 5
        assert details.context_question_ids == (10, 11)
        assert details.request_question_ids == (20,)
        assert not details.is_empty

    def test_missing_question_lists_mean_empty(self) -> None:
        """A topic without questions has an empty envelope."""
        details = codec.parse_topic_details({"0": {"id": 5}})

        assert details.is_empty

    def test_missing_topic_key_fails(self) -> None:
        with pytest.raises(KeyError):
            codec.parse_topic_details({"contextquestions": []})


class TestParseRecords:
    """Tests for questions, responses, threads and contexts."""

    def test_context_question_with_response_ids(self) -> None:
        question = codec.parse_context_question(
            question_json(10, "Why?", template=True, responses=[1, 2])
        )

        assert question.id == 10
        assert question.question == "Why?"
        assert question.template is True
        assert question.response_ids == [1, 2]
        assert question.responses == {}

    def test_request_question(self) -> None:
        question = codec.parse_request_question(question_json(20, "Else?"))

        assert question.id == 20
        assert question.template is False

    def test_context_response_and_thread(self) -> None:
        response = codec.parse_context_response(
            {"id": 1, "response": "Fine", "contextquestionid": 10, "threads": [5]}
        )
        thread = codec.parse_thread({"id": 5, "reply": "Agreed", "contextresponseid": 1})

        assert response.context_question_id == 10
        assert response.thread_ids == [5]
        assert thread.context_response_id == 1
        assert thread.reply == "Agreed"

    def test_non_integer_response_ids_fail(self) -> None:
        with pytest.raises(TypeError):
            codec.parse_context_question(question_json(10, responses=["a"]))

    def test_contexts(self) -> None:
        contexts = codec.parse_contexts([{"id": 1, "title": "Team"}, {"id": 2}])

        assert [(c.id, c.title) for c in contexts] == [(1, "Team"), (2, "")]

    def test_context_response_objects(self) -> None:
        objects = codec.parse_context_response_objects(
            [{"surveyrequestid": 3, "contextquestionid": 10, "response": "ok"}]
        )

        assert objects[0].survey_id == 3
        assert objects[0].context_question_id == 10
        assert objects[0].response == "ok"

    def test_topic_id_envelope(self) -> None:
        assert codec.parse_topic_id({"topic": {"id": 99}}) == 99

    def test_topic_id_envelope_without_id_fails(self) -> None:
        assert codec.decode(_body({"topic": {}}), codec.parse_topic_id) is None


class TestEncode:
    """Tests for request bodies."""

    def test_encode_new_topic_omits_id(self) -> None:
        """An unassigned id is left out of the POST body."""
        topic = Topic(join_code="abc", leader_id="u1", topic_name="Retro", context_id=2)

        assert codec.encode_topic(topic) == {
            "joincode": "abc",
            "leaderid": "u1",
            "topicname": "Retro",
            "contextid": 2,
        }

    def test_encode_topic_with_id(self) -> None:
        topic = Topic(
            join_code="abc", leader_id="u1", topic_name="Retro", context_id=2, id=4
        )

        assert codec.encode_topic(topic)["id"] == 4

    def test_encode_topic_question(self) -> None:
        body = codec.encode_topic_question(TopicQuestion(topic_id=1, question_id=10))

        assert body == {"topicid": 1, "questionid": 10}
