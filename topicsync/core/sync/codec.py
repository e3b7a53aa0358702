"""JSON wire codec for the topic backend.

Parsers map one decoded JSON value to a domain record and raise KeyError,
TypeError or ValueError when the shape is wrong. ``decode`` wraps a parser
and turns any of those into ``None`` (logged at DEBUG), so callers decide
whether an undecodable body is an error.
"""

import json
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from topicsync.domain.entities import (
    Context,
    ContextQuestion,
    ContextResponse,
    ContextResponseObject,
    Member,
    RequestQuestion,
    Thread,
    Topic,
    TopicDetails,
    TopicQuestion,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def decode(payload: bytes, parse: Callable[[Any], T], what: str = "record") -> T | None:
    """Decode a JSON body with a parser.

    Args:
        payload: Raw response body.
        parse: Parser for the decoded JSON value.
        what: Label for the debug log.

    Returns:
        The parsed record, or None if the body is not valid JSON or does not
        have the expected shape.
    """
    try:
        return parse(json.loads(payload))
    except (ValueError, KeyError, TypeError) as e:
        logger.debug("Could not decode %s: %s", what, e)
        return None


def _int(data: dict[str, Any], key: str) -> int:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{key!r} must be an integer, got {value!r}")
    return value


def _optional_int(data: dict[str, Any], key: str) -> int | None:
    if data.get(key) is None:
        return None
    return _int(data, key)


def _str(data: dict[str, Any], key: str, default: str | None = None) -> str:
    value = data.get(key, default)
    if not isinstance(value, str):
        raise TypeError(f"{key!r} must be a string, got {value!r}")
    return value


def _identifier(data: dict[str, Any], key: str) -> str:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, str | int):
        raise TypeError(f"{key!r} must be a string or integer, got {value!r}")
    return str(value)


def _object(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise TypeError(f"expected a JSON object, got {type(data).__name__}")
    return data


def _array(data: Any) -> list[Any]:
    if not isinstance(data, list):
        raise TypeError(f"expected a JSON array, got {type(data).__name__}")
    return data


def _id_list(data: dict[str, Any], key: str) -> list[int]:
    values = _array(data.get(key) or [])
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"{key!r} must list integer ids, got {value!r}")
    return list(values)


def parse_member(data: Any) -> Member:
    data = _object(data)
    return Member(
        id=_identifier(data, "id"),
        email=_str(data, "email", ""),
        first_name=_str(data, "firstname", ""),
        last_name=_str(data, "lastname", ""),
        avatar_url=data.get("avatarurl"),
    )


def parse_topic(data: Any) -> Topic:
    """Parse one topic shell. Question links are not part of the shell."""
    data = _object(data)
    topic = Topic(
        join_code=_str(data, "joincode"),
        leader_id=_identifier(data, "leaderid"),
        topic_name=_str(data, "topicname"),
        context_id=_int(data, "contextid"),
        id=_optional_int(data, "id"),
    )
    for member in _array(data.get("members") or []):
        topic.add_member(parse_member(member))
    return topic


def parse_topics(data: Any) -> list[Topic]:
    """Parse the topic list. One malformed entry rejects the whole list."""
    return [parse_topic(item) for item in _array(data)]


def parse_topic_details(data: Any) -> TopicDetails:
    """Parse a details envelope.

    The topic itself sits under the key ``"0"``; question references are
    lists of single-key objects.
    """
    data = _object(data)
    topic = _object(data["0"])
    context_ids = tuple(
        _int(_object(item), "contextquestionid")
        for item in _array(data.get("contextquestions") or [])
    )
    request_ids = tuple(
        _int(_object(item), "requestquestionid")
        for item in _array(data.get("requestquestions") or [])
    )
    return TopicDetails(
        topic_id=_int(topic, "id"),
        context_question_ids=context_ids,
        request_question_ids=request_ids,
    )


def parse_context_question(data: Any) -> ContextQuestion:
    data = _object(data)
    return ContextQuestion(
        id=_int(data, "id"),
        question=_str(data, "question", ""),
        template=bool(data.get("template", False)),
        response_ids=_id_list(data, "responses"),
    )


def parse_context_questions(data: Any) -> list[ContextQuestion]:
    return [parse_context_question(item) for item in _array(data)]


def parse_request_question(data: Any) -> RequestQuestion:
    data = _object(data)
    return RequestQuestion(
        id=_int(data, "id"),
        question=_str(data, "question", ""),
        template=bool(data.get("template", False)),
    )


def parse_context_response(data: Any) -> ContextResponse:
    data = _object(data)
    return ContextResponse(
        id=_int(data, "id"),
        response=_str(data, "response", ""),
        context_question_id=_optional_int(data, "contextquestionid"),
        thread_ids=_id_list(data, "threads"),
    )


def parse_thread(data: Any) -> Thread:
    data = _object(data)
    return Thread(
        id=_int(data, "id"),
        reply=_str(data, "reply", ""),
        context_response_id=_optional_int(data, "contextresponseid"),
    )


def parse_context(data: Any) -> Context:
    data = _object(data)
    return Context(id=_int(data, "id"), title=_str(data, "title", ""))


def parse_contexts(data: Any) -> list[Context]:
    return [parse_context(item) for item in _array(data)]


def parse_context_response_object(data: Any) -> ContextResponseObject:
    data = _object(data)
    return ContextResponseObject(
        survey_id=_int(data, "surveyrequestid"),
        context_question_id=_int(data, "contextquestionid"),
        response=_str(data, "response", ""),
    )


def parse_context_response_objects(data: Any) -> list[ContextResponseObject]:
    return [parse_context_response_object(item) for item in _array(data)]


def parse_topic_id(data: Any) -> int:
    """Extract the server-assigned id from ``{"topic": {"id": n}}``."""
    return _int(_object(_object(data)["topic"]), "id")


def encode_topic(topic: Topic) -> dict[str, Any]:
    """Build the POST body for a new topic.

    The id is omitted while it is unassigned.
    """
    body: dict[str, Any] = {
        "joincode": topic.join_code,
        "leaderid": topic.leader_id,
        "topicname": topic.topic_name,
        "contextid": topic.context_id,
    }
    if topic.id is not None:
        body["id"] = topic.id
    return body


def encode_topic_question(link: TopicQuestion) -> dict[str, Any]:
    return {"topicid": link.topic_id, "questionid": link.question_id}
