"""Typed fetchers for the backend's resource paths.

Each method issues one request and decodes the body. An undecodable body is
raised as DecodeError; remote failures propagate from the RemoteClient.
"""

from collections.abc import Callable
from typing import Any, TypeVar

from topicsync.core.sync import codec
from topicsync.domain.entities import (
    Context,
    ContextQuestion,
    ContextResponse,
    ContextResponseObject,
    RequestQuestion,
    Thread,
    Topic,
    TopicDetails,
    TopicQuestion,
)
from topicsync.domain.exceptions import DecodeError
from topicsync.ports.remote import RemoteClient

T = TypeVar("T")


class RecordFetcher:
    """Maps backend resource paths to decoded domain records."""

    def __init__(self, remote: RemoteClient) -> None:
        self.remote = remote

    async def _get(self, path: str, parse: Callable[[Any], T], what: str) -> T:
        payload = await self.remote.request("GET", path)
        record = codec.decode(payload, parse, what)
        if record is None:
            raise DecodeError(f"Could not decode {what} from '{path}'")
        return record

    async def topics(self) -> list[Topic]:
        return await self._get("topic", codec.parse_topics, "topic list")

    async def topic_details(self, topic_id: int) -> TopicDetails:
        return await self._get(
            f"topic/{topic_id}/details", codec.parse_topic_details, "topic details"
        )

    async def context_question(self, question_id: int) -> ContextQuestion:
        return await self._get(
            f"contextquestion/{question_id}",
            codec.parse_context_question,
            "context question",
        )

    async def request_question(self, question_id: int) -> RequestQuestion:
        return await self._get(
            f"requestQuestion/{question_id}",
            codec.parse_request_question,
            "request question",
        )

    async def context_response(self, response_id: int) -> ContextResponse:
        return await self._get(
            f"contextresponse/{response_id}",
            codec.parse_context_response,
            "context response",
        )

    async def thread(self, thread_id: int) -> Thread:
        return await self._get(f"thread/{thread_id}", codec.parse_thread, "thread")

    async def context_response_objects(self) -> list[ContextResponseObject]:
        return await self._get(
            "contextResponse",
            codec.parse_context_response_objects,
            "context response list",
        )

    async def default_contexts(self) -> list[Context]:
        return await self._get("context", codec.parse_contexts, "context list")

    async def default_context_questions(self) -> list[ContextQuestion]:
        return await self._get(
            "contextQuestion",
            codec.parse_context_questions,
            "context question list",
        )

    async def create_topic(self, topic: Topic) -> int:
        """POST a new topic and return the id the server assigned.

        Raises:
            DecodeError: If the response does not carry the new id.
        """
        payload = await self.remote.request(
            "POST", "topic", body=codec.encode_topic(topic)
        )
        topic_id = codec.decode(payload, codec.parse_topic_id, "topic id")
        if topic_id is None:
            raise DecodeError(
                f"Server did not return an id for topic '{topic.join_code}'"
            )
        return topic_id

    async def link_question(self, link: TopicQuestion) -> TopicQuestion:
        await self.remote.request(
            "POST", "topicquestion", body=codec.encode_topic_question(link)
        )
        return link

    async def delete_topic(self, topic_id: int) -> None:
        await self.remote.request("DELETE", f"topic/{topic_id}")
