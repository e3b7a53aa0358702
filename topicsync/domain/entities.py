"""Domain entities for the Topic survey domain.

Core domain models representing topics, their questions, responses and
threads. These are plain Python dataclasses with no dependencies on
infrastructure. Relationship collections are keyed by record id, which gives
them set semantics: linking the same record twice keeps a single entry.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field


@dataclass
class Thread:
    """A reply attached to a context response.

    Attributes:
        id: Server-assigned identifier.
        reply: Reply text.
        context_response_id: Identifier of the owning ContextResponse.
    """

    id: int
    reply: str = ""
    context_response_id: int | None = None


@dataclass
class ContextResponse:
    """An answer to a context question.

    Attributes:
        id: Server-assigned identifier.
        response: Response text.
        context_question_id: Identifier of the owning ContextQuestion.
        thread_ids: Thread ids advertised by the server for this response.
        threads: Linked Thread records keyed by id.
    """

    id: int
    response: str = ""
    context_question_id: int | None = None
    thread_ids: list[int] = field(default_factory=list)
    threads: dict[int, Thread] = field(default_factory=dict)

    def add_thread(self, thread: Thread) -> None:
        """Link a thread to this response."""
        thread.context_response_id = self.id
        self.threads[thread.id] = thread


@dataclass
class ContextQuestion:
    """A context question template attachable to topics.

    Attributes:
        id: Server-assigned identifier.
        question: Question text.
        template: True for default questions offered to every leader.
        response_ids: Response ids advertised by the server for this question.
        responses: Linked ContextResponse records keyed by id.
    """

    id: int
    question: str = ""
    template: bool = False
    response_ids: list[int] = field(default_factory=list)
    responses: dict[int, ContextResponse] = field(default_factory=dict)

    def add_response(self, response: ContextResponse) -> None:
        """Link a response to this question."""
        response.context_question_id = self.id
        self.responses[response.id] = response


@dataclass
class RequestQuestion:
    """A request question template attachable to topics."""

    id: int
    question: str = ""
    template: bool = False


@dataclass
class Context:
    """A default context a topic can be created with."""

    id: int
    title: str = ""


@dataclass
class Member:
    """A user taking part in a topic.

    Attributes:
        id: User identifier (same namespace as Topic.leader_id).
        email: Contact email.
        first_name: Given name.
        last_name: Family name.
        avatar_url: Optional avatar location.
    """

    id: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    avatar_url: str | None = None


@dataclass
class Topic:
    """A survey topic owned by a leader.

    A topic created locally has ``id=None`` until the server assigns one.
    The join code is the local identity: reconciliation with the server is
    done by join code.

    Attributes:
        join_code: Human-shareable code identifying the topic.
        leader_id: Identifier of the owning user.
        topic_name: Display name.
        context_id: Identifier of the context the topic was created with.
        id: Server-assigned identifier, or None before the server round-trip.
        context_questions: Linked context questions keyed by id.
        request_questions: Linked request questions keyed by id.
        members: Members keyed by user id.
    """

    join_code: str
    leader_id: str
    topic_name: str
    context_id: int
    id: int | None = None
    context_questions: dict[int, ContextQuestion] = field(default_factory=dict)
    request_questions: dict[int, RequestQuestion] = field(default_factory=dict)
    members: dict[str, Member] = field(default_factory=dict)

    def add_context_question(self, question: ContextQuestion) -> None:
        """Link a context question to this topic."""
        self.context_questions[question.id] = question

    def add_request_question(self, question: RequestQuestion) -> None:
        """Link a request question to this topic."""
        self.request_questions[question.id] = question

    def add_context_questions(self, questions: Iterable[ContextQuestion]) -> None:
        for question in questions:
            self.add_context_question(question)

    def add_request_questions(self, questions: Iterable[RequestQuestion]) -> None:
        for question in questions:
            self.add_request_question(question)

    def add_member(self, member: Member) -> None:
        """Add a member to this topic."""
        self.members[member.id] = member

    def is_led_by(self, user_id: str | None) -> bool:
        """Check whether the given user is this topic's leader."""
        return user_id is not None and self.leader_id == user_id


@dataclass(frozen=True)
class TopicDetails:
    """Decode-only envelope linking a topic to the questions it references.

    Used to drive the question fan-out stage and then discarded.
    """

    topic_id: int
    context_question_ids: tuple[int, ...] = ()
    request_question_ids: tuple[int, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.context_question_ids and not self.request_question_ids


@dataclass(frozen=True)
class TopicQuestion:
    """A (topic, question) pair registered with the server. Never persisted."""

    topic_id: int
    question_id: int


@dataclass(frozen=True)
class ContextResponseObject:
    """A context response as listed by the response list endpoint."""

    survey_id: int
    context_question_id: int
    response: str


@dataclass
class ChangeSet:
    """Records written to the local store by a single save call.

    A save applies deletions first, then upserts, in one transaction.
    Relationship links are taken from the upserted records' collections.

    Attributes:
        topics: Topics to upsert, with their question and member links.
        context_questions: Context questions to upsert, with their responses.
        request_questions: Request questions to upsert.
        contexts: Contexts to upsert.
        context_responses: Context responses to upsert, with their threads.
        threads: Threads to upsert.
        deleted_join_codes: Join codes of topics to delete.
    """

    topics: list[Topic] = field(default_factory=list)
    context_questions: list[ContextQuestion] = field(default_factory=list)
    request_questions: list[RequestQuestion] = field(default_factory=list)
    contexts: list[Context] = field(default_factory=list)
    context_responses: list[ContextResponse] = field(default_factory=list)
    threads: list[Thread] = field(default_factory=list)
    deleted_join_codes: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not any(
            (
                self.topics,
                self.context_questions,
                self.request_questions,
                self.contexts,
                self.context_responses,
                self.threads,
                self.deleted_join_codes,
            )
        )


@dataclass
class ChildResult:
    """Outcome of one child operation in a fan-out stage.

    Attributes:
        key: What the child was fetching or posting (usually a record id).
        value: The child's result on success.
        error: The failure on error, None on success.
        stage: Name of the fan-out stage the child belonged to.
    """

    key: object
    value: object = None
    error: Exception | None = None
    stage: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SyncReport:
    """Aggregate outcome of a top-level sync operation.

    Per-child failures never abort an operation; they are collected here so
    callers can decide whether partial results are acceptable.

    Attributes:
        topics_synced: Number of topics whose graph was saved.
        records_linked: Number of records linked into a parent collection.
        failures: Failed children, in arrival order.
    """

    topics_synced: int = 0
    records_linked: int = 0
    failures: list[ChildResult] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        """True if no child failed."""
        return not self.failures

    def absorb(self, results: Iterable[ChildResult]) -> None:
        """Count successes and keep failures from a fan-out stage."""
        for result in results:
            if result.ok:
                self.records_linked += 1
            else:
                self.failures.append(result)

    def merge(self, other: SyncReport) -> None:
        """Fold a nested operation's report into this one."""
        self.topics_synced += other.topics_synced
        self.records_linked += other.records_linked
        self.failures.extend(other.failures)
