"""Integration tests for CLI commands using click.testing.CliRunner.

Tests the complete CLI flow end-to-end against a FakeBackend injected
through the click context object:
- Command execution and exit codes
- Output formatting and messages
- Error handling and user feedback
- Flag and option parsing

Note: Tests prefer semantic assertions (exit codes, stored records) over
exact string matching to be resilient to cosmetic changes.
"""

import re
from pathlib import Path

import pytest
from click.testing import CliRunner

from tests.helpers import (
    BASE_URL,
    LEADER_ID,
    TOKEN,
    FakeBackend,
    assert_command_failed,
    assert_command_success,
    assert_error_message,
    assert_files_created,
    assert_output_contains,
    assert_output_matches,
    assert_success_indicator,
    details_json,
    question_json,
    response_json,
    topic_json,
)
from topicsync.adapters.sqlite.topic_repository import SQLiteTopicRepository
from topicsync.domain.entities import ChangeSet, ContextQuestion, RequestQuestion, Topic
from topicsync.entrypoints.cli import cli


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def signed_in(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOPICSYNC_TOKEN", TOKEN)
    monkeypatch.setenv("TOPICSYNC_USER_ID", LEADER_ID)


@pytest.fixture
def signed_out(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TOPICSYNC_TOKEN", raising=False)
    monkeypatch.delenv("TOPICSYNC_USER_ID", raising=False)


@pytest.fixture
def workspace(runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """An initialized workspace pointing at the fake backend; CWD is its root."""
    root = tmp_path / "workspace"
    root.mkdir()
    monkeypatch.chdir(root)
    result = runner.invoke(cli, ["init", "--base-url", BASE_URL], obj={})
    assert_command_success(result, context="init fixture")
    return root


@pytest.fixture
def invoke(runner: CliRunner, backend: FakeBackend):
    """Invoke the CLI with the fake backend's transport."""

    def _invoke(*args: str):
        return runner.invoke(cli, list(args), obj={"transport": backend.transport})

    return _invoke


def _store(workspace: Path) -> SQLiteTopicRepository:
    return SQLiteTopicRepository(workspace / ".topicsync" / "topics.db")


def _seed(workspace: Path, changes: ChangeSet) -> None:
    with _store(workspace) as repo:
        repo.save(changes)


# =============================================================================
# init
# =============================================================================


class TestInit:
    """Tests for 'topicsync init'."""

    def test_init_creates_workspace(self, workspace: Path) -> None:
        assert_files_created(workspace / ".topicsync", "config.toml", "topics.db")

    def test_init_twice_requires_force(self, workspace: Path, invoke) -> None:
        result = invoke("init")

        assert_command_failed(result)
        assert_error_message(result, hint="--force")

    def test_init_force(self, workspace: Path, invoke) -> None:
        result = invoke("init", "--force")

        assert_command_success(result)
        assert_output_contains(result, "Reinitialized")

    def test_quiet_init_prints_nothing(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(cli, ["--quiet", "init"], obj={})

        assert_command_success(result)
        assert result.output == ""


# =============================================================================
# pull / join
# =============================================================================


def _serve_topics(backend: FakeBackend) -> None:
    backend.add(
        "GET",
        "topic",
        json=[topic_json(1, "alpha", name="Alpha"), topic_json(2, "beta", name="Beta", leader_id="other")],
    )
    backend.add("GET", "topic/1/details", json=details_json(1, [10], [20]))
    backend.add("GET", "topic/2/details", json=details_json(2, [10]))
    backend.add("GET", "contextquestion/10", json=question_json(10))
    backend.add("GET", "requestQuestion/20", json=question_json(20))


class TestPull:
    """Tests for 'topicsync pull'."""

    def test_pull_outside_workspace(
        self, invoke, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)

        result = invoke("pull")

        assert_command_failed(result)
        assert_error_message(result, hint="topicsync init")

    def test_pull_stores_topics(self, workspace, invoke, backend, signed_in) -> None:
        _serve_topics(backend)

        result = invoke("pull")

        assert_command_success(result)
        assert_success_indicator(result)
        assert_output_matches(result, r"Synced 2 topic")
        with _store(workspace) as repo:
            assert [t.join_code for t in repo.list_topics()] == ["alpha", "beta"]

    def test_pull_reports_partial_failures(self, workspace, invoke, backend, signed_in) -> None:
        _serve_topics(backend)
        backend.fail("GET", "requestQuestion/20", status=502)

        result = invoke("pull")

        assert_command_success(result)
        assert_output_contains(result, "could not be synced", "requestQuestion")

    def test_pull_server_error(self, workspace, invoke, backend, signed_in) -> None:
        backend.fail("GET", "topic", status=500)

        result = invoke("pull")

        assert_command_failed(result)
        assert_output_contains(result, "[transport]", "HTTP 500")

    def test_pull_without_token(self, workspace, invoke, backend, signed_out) -> None:
        result = invoke("pull")

        assert_command_failed(result)
        assert_output_contains(result, "[not_authenticated]")
        assert backend.requests == []


class TestJoin:
    """Tests for 'topicsync join'."""

    def test_join_replaces_local_topics(self, workspace, invoke, backend, signed_in) -> None:
        _seed(workspace, ChangeSet(topics=[Topic(join_code="old", leader_id="x", topic_name="Old", context_id=1)]))
        _serve_topics(backend)

        result = invoke("join", "beta")

        assert_command_success(result)
        assert_output_contains(result, "Joined 'Beta'")
        with _store(workspace) as repo:
            assert [t.join_code for t in repo.list_topics()] == ["beta"]

    def test_join_unknown_code(self, workspace, invoke, backend, signed_in) -> None:
        _serve_topics(backend)

        result = invoke("join", "nope")

        assert_command_failed(result)
        assert_output_contains(result, "[not_found]")


# =============================================================================
# create / delete
# =============================================================================


def _seed_questions(workspace: Path) -> None:
    _seed(
        workspace,
        ChangeSet(
            context_questions=[ContextQuestion(id=10, question="Why?", template=True)],
            request_questions=[RequestQuestion(id=20, question="Else?", template=True)],
        ),
    )


class TestCreate:
    """Tests for 'topicsync create'."""

    def test_create_prints_join_code(self, workspace, runner, backend, signed_in) -> None:
        _seed_questions(workspace)
        backend.add("POST", "topic", json={"topic": {"id": 5}})
        backend.add("POST", "topicquestion", json={})

        result = runner.invoke(
            cli,
            [
                "--quiet",
                "create",
                "Retro",
                "--context-id",
                "3",
                "--context-question",
                "10",
                "--request-question",
                "20",
            ],
            obj={"transport": backend.transport},
        )

        assert_command_success(result)
        join_code = result.output.strip()
        assert re.fullmatch(r"[0-9a-f-]{36}", join_code)
        with _store(workspace) as repo:
            topic = repo.get_topic(join_code)
        assert topic.id == 5
        assert list(topic.context_questions) == [10]
        assert list(topic.request_questions) == [20]
        assert len(backend.calls("POST", "topicquestion")) == 2

    def test_create_with_unknown_question(self, workspace, invoke, backend, signed_in) -> None:
        result = invoke("create", "Retro", "--context-id", "1", "--context-question", "99")

        assert_command_failed(result)
        assert_error_message(result, hint="topicsync defaults")
        assert backend.requests == []

    def test_create_signed_out(
        self, workspace, invoke, backend, signed_out, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TOPICSYNC_TOKEN", TOKEN)

        result = invoke("create", "Retro", "--context-id", "1")

        assert_command_failed(result)
        assert_output_contains(result, "[not_authenticated]")
        assert backend.requests == []


class TestDelete:
    """Tests for 'topicsync delete'."""

    def test_leader_deletes_topic(self, workspace, invoke, backend, signed_in) -> None:
        _seed(workspace, ChangeSet(topics=[Topic(join_code="abc", leader_id=LEADER_ID, topic_name="Mine", context_id=1, id=4)]))
        backend.add("DELETE", "topic/4", json={})

        result = invoke("delete", "abc")

        assert_command_success(result)
        assert len(backend.calls("DELETE", "topic/4")) == 1
        with _store(workspace) as repo:
            assert repo.get_topic("abc") is None

    def test_non_leader_cannot_delete(self, workspace, invoke, backend, signed_in) -> None:
        _seed(workspace, ChangeSet(topics=[Topic(join_code="abc", leader_id="other", topic_name="Theirs", context_id=1, id=4)]))

        result = invoke("delete", "abc")

        assert_command_failed(result)
        assert_output_contains(result, "Only the leader")
        assert backend.requests == []

    def test_delete_unknown_topic(self, workspace, invoke, signed_in) -> None:
        result = invoke("delete", "ghost")

        assert_command_failed(result)
        assert_error_message(result, hint="topicsync pull")

    def test_server_failure_keeps_local_copy(self, workspace, invoke, backend, signed_in) -> None:
        _seed(workspace, ChangeSet(topics=[Topic(join_code="abc", leader_id=LEADER_ID, topic_name="Mine", context_id=1, id=4)]))
        backend.fail("DELETE", "topic/4", status=500)

        result = invoke("delete", "abc")

        assert_command_failed(result)
        with _store(workspace) as repo:
            assert repo.get_topic("abc") is not None


# =============================================================================
# defaults / responses / threads
# =============================================================================


class TestDefaultsAndResponses:
    """Tests for default records, responses and threads."""

    def test_defaults(self, workspace, invoke, backend, signed_in) -> None:
        backend.add("GET", "context", json=[{"id": 1, "title": "Team retro"}])
        backend.add("GET", "contextQuestion", json=[question_json(10, "What went well?", template=True)])

        result = invoke("defaults")

        assert_command_success(result)
        assert_output_contains(result, "Team retro", "What went well?")
        with _store(workspace) as repo:
            assert [q.id for q in repo.list_context_questions(template_only=True)] == [10]

    def test_responses(self, workspace, invoke, backend, signed_in) -> None:
        _seed_questions(workspace)
        backend.add("GET", "contextresponse/1", json=response_json(1, 10, "Fine"))

        result = invoke("responses", "10", "1")

        assert_command_success(result)
        assert_output_contains(result, "Linked 1 response")
        with _store(workspace) as repo:
            assert list(repo.get_context_question(10).responses) == [1]

    def test_responses_need_cached_question(self, workspace, invoke, signed_in) -> None:
        result = invoke("responses", "10", "1")

        assert_command_failed(result)
        assert_output_contains(result, "No local context question with id 10")

    def test_threads_need_cached_response(self, workspace, invoke, signed_in) -> None:
        result = invoke("threads", "1", "5")

        assert_command_failed(result)
        assert_error_message(result, hint="topicsync responses")


# =============================================================================
# list / status / config
# =============================================================================


class TestList:
    """Tests for 'topicsync list'."""

    def _seed_topics(self, workspace: Path) -> None:
        _seed(
            workspace,
            ChangeSet(
                topics=[
                    Topic(join_code="mine", leader_id=LEADER_ID, topic_name="Mine", context_id=1, id=1),
                    Topic(join_code="theirs", leader_id="other", topic_name="Theirs", context_id=1, id=2),
                ]
            ),
        )

    def test_list_all(self, workspace, invoke, signed_in) -> None:
        self._seed_topics(workspace)

        result = invoke("list")

        assert_command_success(result)
        assert_output_contains(result, "mine", "theirs")

    def test_list_leader(self, workspace, invoke, signed_in) -> None:
        self._seed_topics(workspace)

        result = invoke("list", "--leader")

        assert_command_success(result)
        assert "mine" in result.output
        assert "theirs" not in result.output

    def test_list_empty(self, workspace, invoke) -> None:
        result = invoke("list")

        assert_command_success(result)
        assert_output_contains(result, "No topics found")


class TestStatus:
    """Tests for 'topicsync status'."""

    def test_status_fresh_workspace(self, workspace, invoke) -> None:
        result = invoke("status")

        assert_command_success(result)
        assert_output_contains(result, "Topics: 0", "Never pulled", BASE_URL)

    def test_status_after_pull(self, workspace, invoke, backend, signed_in) -> None:
        _serve_topics(backend)
        invoke("pull")

        result = invoke("status")

        assert_command_success(result)
        assert_output_contains(result, "Topics: 2", "Led by you: 1", f"Signed in as: {LEADER_ID}")


class TestConfigCommands:
    """Tests for 'topicsync config'."""

    def test_config_path_global(
        self, invoke, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        monkeypatch.chdir(tmp_path)

        result = invoke("config", "path", "--global")

        assert_command_success(result)
        assert result.output.strip() == str(tmp_path / "xdg" / "topicsync" / "config.toml")

    def test_config_path_local(self, workspace, invoke) -> None:
        result = invoke("config", "path", "--local")

        assert_command_success(result)
        assert result.output.strip() == str(workspace.resolve() / ".topicsync" / "config.toml")

    def test_config_show(self, workspace, invoke) -> None:
        result = invoke("config", "show")

        assert_command_success(result)
        assert_output_contains(result, "[remote]", f"base_url = {BASE_URL}", "[sync]")
