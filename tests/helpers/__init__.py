"""Test helper utilities for the topicsync test suite."""

from tests.helpers.cli_assertions import (
    assert_command_failed,
    assert_command_success,
    assert_error_message,
    assert_files_created,
    assert_output_contains,
    assert_output_matches,
    assert_success_indicator,
)
from tests.helpers.fake_backend import (
    BASE_URL,
    LEADER_ID,
    TOKEN,
    FakeBackend,
    details_json,
    question_json,
    response_json,
    thread_json,
    topic_json,
)

__all__ = [
    "BASE_URL",
    "LEADER_ID",
    "TOKEN",
    "FakeBackend",
    "assert_command_success",
    "assert_command_failed",
    "assert_output_matches",
    "assert_output_contains",
    "assert_error_message",
    "assert_success_indicator",
    "assert_files_created",
    "details_json",
    "question_json",
    "response_json",
    "thread_json",
    "topic_json",
]
