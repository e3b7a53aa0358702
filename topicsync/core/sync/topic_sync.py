"""Topic sync pipeline.

Orchestrates the multi-stage fetch, decode, link and save flows between the
backend and the local store:

    topic list -> topic details -> context/request questions
               -> (optional) context responses -> threads

Every fan-out stage runs under its own JoinBarrier. Children that fail are
recorded in a SyncReport and never abort their siblings; only the failures
listed on each public method are raised.
"""

import asyncio
import logging
import uuid
from collections.abc import Sequence

from topicsync.core.concurrency import fan_out
from topicsync.core.sync.fetchers import RecordFetcher
from topicsync.core.sync.store_writer import StoreWriter
from topicsync.domain.entities import (
    ChangeSet,
    ChildResult,
    Context,
    ContextQuestion,
    ContextResponse,
    ContextResponseObject,
    RequestQuestion,
    SyncReport,
    Topic,
    TopicDetails,
    TopicQuestion,
)
from topicsync.domain.exceptions import (
    DecodeError,
    NotAuthenticatedError,
    NotFoundError,
    PersistenceError,
    RequestConstructionError,
)
from topicsync.ports.auth import CredentialProvider
from topicsync.ports.progress import ProgressCallback
from topicsync.ports.remote import RemoteClient
from topicsync.ports.repositories import MetaRepository, TopicRepository

logger = logging.getLogger(__name__)

_CONTEXT = "context"
_REQUEST = "request"


class TopicSyncService:
    """Coordinates topic synchronization between the backend and local store.

    Example:
        service = TopicSyncService(remote, repository, credentials, meta=meta)
        report = await service.get_topics()
        if not report.complete:
            for failure in report.failures:
                print(failure.stage, failure.key, failure.error)
    """

    def __init__(
        self,
        remote: RemoteClient,
        repository: TopicRepository,
        credentials: CredentialProvider,
        meta: MetaRepository | None = None,
        include_responses: bool = False,
    ) -> None:
        """Initialize the sync service.

        Args:
            remote: Client for the backend.
            repository: Local store gateway.
            credentials: Source of the signed-in user's identity.
            meta: Optional metadata store; receives the last sync timestamp.
            include_responses: Also fetch responses and threads in get_topics().
        """
        self.fetcher = RecordFetcher(remote)
        self.repository = repository
        self.writer = StoreWriter(repository)
        self.credentials = credentials
        self.meta = meta
        self.include_responses = include_responses

    # ------------------------------------------------------------------
    # Topic ingestion
    # ------------------------------------------------------------------

    async def get_topics(self, progress: ProgressCallback | None = None) -> SyncReport:
        """Mirror the server's topic list and each topic's question graph.

        The server's list is authoritative: local topics it does not return
        are deleted. Each topic's graph is saved once all of its questions
        have been fetched; a failure for one topic never blocks another.

        Args:
            progress: Optional callback, advanced once per finished topic.

        Returns:
            Report of synced topics and per-child failures.

        Raises:
            TransportError: If the topic list cannot be fetched.
            DecodeError: If the topic list does not decode.
            PersistenceError: If the topic list cannot be saved.
        """
        shells = await self.fetcher.topics()
        logger.info("Fetched %d topic(s) from the server", len(shells))

        remote_codes = {topic.join_code for topic in shells}
        local_codes = await asyncio.to_thread(self.repository.list_join_codes)
        stale = [code for code in local_codes if code not in remote_codes]
        if stale:
            logger.info("Removing %d topic(s) no longer on the server", len(stale))
        await self.writer.save(ChangeSet(topics=list(shells), deleted_join_codes=stale))

        report = SyncReport()
        by_id: dict[int, Topic] = {}
        for topic in shells:
            if topic.id is not None:
                by_id[topic.id] = topic
                continue
            logger.warning("details: topic %s has no server id, skipping", topic.join_code)
            report.failures.append(
                ChildResult(
                    key=topic.join_code,
                    error=RequestConstructionError(
                        f"Topic '{topic.join_code}' has no server id to fetch details for"
                    ),
                    stage="details",
                )
            )
        details = await fan_out(by_id, self.fetcher.topic_details, stage="details")

        pairs: list[tuple[Topic, TopicDetails]] = []
        for result in details:
            if not result.ok:
                report.failures.append(result)
                continue
            topic = by_id.get(result.value.topic_id)
            if topic is None:
                logger.warning(
                    "details: got details for unknown topic %s", result.value.topic_id
                )
                report.failures.append(
                    ChildResult(
                        key=result.key,
                        error=DecodeError(
                            f"Details requested for topic {result.key} "
                            f"describe topic {result.value.topic_id}"
                        ),
                        stage="details",
                    )
                )
                continue
            pairs.append((topic, result.value))

        if progress:
            progress.on_start(len(pairs), "Syncing topics")
        finished = 0

        async def _sync_one(topic: Topic, topic_details: TopicDetails) -> SyncReport:
            nonlocal finished
            topic_report = await self._sync_topic_graph(topic, topic_details)
            finished += 1
            if progress:
                progress.on_progress(finished, topic.topic_name)
            return topic_report

        for topic_report in await asyncio.gather(
            *(_sync_one(topic, topic_details) for topic, topic_details in pairs)
        ):
            report.merge(topic_report)

        if progress:
            progress.on_complete()
        if self.meta is not None:
            await asyncio.to_thread(self.meta.stamp)

        logger.info(
            "Synced %d topic(s), %d failure(s)",
            report.topics_synced,
            len(report.failures),
        )
        return report

    async def _sync_topic_graph(self, topic: Topic, details: TopicDetails) -> SyncReport:
        """Fetch and link one topic's questions, then save the topic graph."""
        report = SyncReport()
        keys = [(_CONTEXT, qid) for qid in details.context_question_ids] + [
            (_REQUEST, qid) for qid in details.request_question_ids
        ]

        def _link(result: ChildResult) -> None:
            if not result.ok:
                return
            kind, _ = result.key
            if kind == _CONTEXT:
                topic.add_context_question(result.value)
            else:
                topic.add_request_question(result.value)

        results = await fan_out(
            keys,
            self._fetch_question,
            on_result=_link,
            stage=f"questions of {topic.join_code}",
        )
        report.absorb(results)

        if self.include_responses:
            for question in list(topic.context_questions.values()):
                if question.response_ids:
                    await self._link_responses(
                        question, question.response_ids, report, with_threads=True
                    )

        try:
            await self.writer.save(ChangeSet(topics=[topic]))
        except PersistenceError as e:
            report.failures.append(ChildResult(key=topic.join_code, error=e, stage="save"))
        else:
            report.topics_synced += 1
        return report

    async def _fetch_question(
        self, key: tuple[str, int]
    ) -> ContextQuestion | RequestQuestion:
        kind, question_id = key
        if kind == _CONTEXT:
            return await self.fetcher.context_question(question_id)
        return await self.fetcher.request_question(question_id)

    # ------------------------------------------------------------------
    # Topic creation and question linking
    # ------------------------------------------------------------------

    async def post_topic(
        self,
        name: str,
        context_id: int,
        context_questions: Sequence[ContextQuestion],
        request_questions: Sequence[RequestQuestion],
    ) -> str:
        """Create a topic led by the signed-in user and link its questions.

        The topic is saved locally before and after the server round-trip;
        both saves are best-effort.

        Args:
            name: Topic display name.
            context_id: Context the topic is created with.
            context_questions: Context questions to link.
            request_questions: Request questions to link.

        Returns:
            The new topic's join code.

        Raises:
            NotAuthenticatedError: If nobody is signed in (nothing is sent).
            TransportError: If the create request fails.
            DecodeError: If the server does not return the new id.
            PersistenceError: If the final save in add_questions() fails.
        """
        user_id = self.credentials.current_user_id()
        if user_id is None:
            raise NotAuthenticatedError(
                "Cannot create a topic without a signed-in user",
                hint="Set the user id environment variable named in [auth] user_id_env",
            )

        topic = Topic(
            join_code=str(uuid.uuid4()),
            leader_id=user_id,
            topic_name=name,
            context_id=context_id,
        )
        await self.writer.save_best_effort(ChangeSet(topics=[topic]))

        topic.id = await self.fetcher.create_topic(topic)
        logger.info("Created topic %s with id %d", topic.join_code, topic.id)
        await self.writer.save_best_effort(ChangeSet(topics=[topic]))

        await self.add_questions(context_questions, request_questions, topic)
        return topic.join_code

    async def add_questions(
        self,
        context_questions: Sequence[ContextQuestion],
        request_questions: Sequence[RequestQuestion],
        topic: Topic,
    ) -> SyncReport:
        """Link questions to a topic locally and on the server.

        Links are added to the local topic first and kept even if their
        server registration fails, so the local store may list links the
        server does not have until the next get_topics(). Failed
        registrations are only reported.

        Args:
            context_questions: Context questions to link.
            request_questions: Request questions to link.
            topic: Topic with a server-assigned id.

        Returns:
            Report with one child per question registration.

        Raises:
            RequestConstructionError: If the topic has no server id.
            PersistenceError: If the final save fails.
        """
        if topic.id is None:
            raise RequestConstructionError(
                f"Topic '{topic.join_code}' has no server id yet"
            )

        topic.add_context_questions(context_questions)
        topic.add_request_questions(request_questions)

        links = [
            TopicQuestion(topic_id=topic.id, question_id=question.id)
            for question in [*context_questions, *request_questions]
        ]
        results = await fan_out(links, self.fetcher.link_question, stage="link questions")

        report = SyncReport()
        report.absorb(results)
        await self.writer.save(ChangeSet(topics=[topic]))
        return report

    # ------------------------------------------------------------------
    # Refresh by join code
    # ------------------------------------------------------------------

    async def get_topic(self, join_code: str) -> Topic:
        """Fetch the topic with a join code and make it the only local topic.

        Every other locally cached topic is deleted in the same save. Remote
        topics that do not match are never written locally.

        Args:
            join_code: Join code to look for.

        Returns:
            The matching topic shell.

        Raises:
            TransportError: If the topic list cannot be fetched.
            DecodeError: If the topic list does not decode.
            NotFoundError: If no server topic has this join code.
            PersistenceError: If the save fails.
        """
        shells = await self.fetcher.topics()
        match = next((topic for topic in shells if topic.join_code == join_code), None)
        if match is None:
            raise NotFoundError(
                f"No topic with join code '{join_code}'",
                hint="Check the code with the topic's leader",
            )

        local_codes = await asyncio.to_thread(self.repository.list_join_codes)
        others = [code for code in local_codes if code != join_code]
        await self.writer.save(ChangeSet(topics=[match], deleted_join_codes=others))
        return match

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    async def delete_topic(self, topic: Topic) -> None:
        """Delete a topic on the server.

        Only the topic's leader may delete it; the caller checks this.
        The local copy is left in place (see delete_topics_from_store()).

        Raises:
            RequestConstructionError: If the topic has no server id.
            TransportError: If the request fails.
        """
        if topic.id is None:
            raise RequestConstructionError(
                f"Topic '{topic.join_code}' has no server id to delete"
            )
        await self.fetcher.delete_topic(topic.id)
        logger.info("Deleted topic %s on the server", topic.join_code)

    async def delete_topics_from_store(self, topics: Sequence[Topic]) -> None:
        """Delete topics from the local store.

        Raises:
            PersistenceError: If the save fails.
        """
        await self.writer.save(
            ChangeSet(deleted_join_codes=[topic.join_code for topic in topics])
        )

    # ------------------------------------------------------------------
    # Responses, threads and defaults
    # ------------------------------------------------------------------

    async def get_context_responses(
        self, question: ContextQuestion, ids: Sequence[int] | None = None
    ) -> SyncReport:
        """Fetch responses for a context question and save them.

        Args:
            question: Question the responses belong to.
            ids: Response ids; defaults to the ids the question lists.

        Raises:
            PersistenceError: If the save fails.
        """
        report = SyncReport()
        await self._link_responses(
            question, question.response_ids if ids is None else ids, report
        )
        await self.writer.save(ChangeSet(context_questions=[question]))
        return report

    async def get_threads(
        self, response: ContextResponse, ids: Sequence[int] | None = None
    ) -> SyncReport:
        """Fetch threads for a context response and save them.

        Args:
            response: Response the threads belong to.
            ids: Thread ids; defaults to the ids the response lists.

        Raises:
            PersistenceError: If the save fails.
        """
        report = SyncReport()
        await self._link_threads(
            response, response.thread_ids if ids is None else ids, report
        )
        await self.writer.save(ChangeSet(context_responses=[response]))
        return report

    async def _link_responses(
        self,
        question: ContextQuestion,
        ids: Sequence[int],
        report: SyncReport,
        with_threads: bool = False,
    ) -> None:
        def _link(result: ChildResult) -> None:
            if result.ok:
                question.add_response(result.value)

        results = await fan_out(
            ids,
            self.fetcher.context_response,
            on_result=_link,
            stage=f"responses of question {question.id}",
        )
        report.absorb(results)

        if with_threads:
            for response in list(question.responses.values()):
                if response.thread_ids:
                    await self._link_threads(response, response.thread_ids, report)

    async def _link_threads(
        self, response: ContextResponse, ids: Sequence[int], report: SyncReport
    ) -> None:
        def _link(result: ChildResult) -> None:
            if result.ok:
                response.add_thread(result.value)

        results = await fan_out(
            ids,
            self.fetcher.thread,
            on_result=_link,
            stage=f"threads of response {response.id}",
        )
        report.absorb(results)

    async def get_default_contexts(self) -> list[Context]:
        """Fetch and save the contexts offered when creating a topic.

        Raises:
            TransportError: If the request fails.
            DecodeError: If the body does not decode.
            PersistenceError: If the save fails.
        """
        contexts = await self.fetcher.default_contexts()
        await self.writer.save(ChangeSet(contexts=contexts))
        return contexts

    async def get_default_context_questions(self) -> list[ContextQuestion]:
        """Fetch and save the default context questions.

        Raises:
            TransportError: If the request fails.
            DecodeError: If the body does not decode.
            PersistenceError: If the save fails.
        """
        questions = await self.fetcher.default_context_questions()
        await self.writer.save(ChangeSet(context_questions=questions))
        return questions

    async def get_context_response_objects(self) -> list[ContextResponseObject]:
        """Fetch the context response list. Results are not saved."""
        return await self.fetcher.context_response_objects()
