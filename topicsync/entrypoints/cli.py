"""topicsync CLI entrypoint.

Command-line interface for mirroring survey topics from the backend into a
local SQLite store.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

import click
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from topicsync.core.sync.topic_sync import TopicSyncService
    from topicsync.domain.config import TopicSyncConfig
    from topicsync.domain.entities import SyncReport, Topic
    from topicsync.ports.auth import CredentialProvider

from topicsync.core.errors import (
    TopicSyncCliError,
    not_leader_error,
    question_not_cached_error,
    topic_not_cached_error,
    workspace_not_found_error,
)
from topicsync.domain.exceptions import SyncError
from topicsync.version import __version__

T = TypeVar("T")


def handle_cli_errors(command_name: str):
    """Decorator to handle common CLI errors.

    Converts SyncError into TopicSyncCliError, and RuntimeError or any
    unexpected exception into a generic error, showing tracebacks in verbose
    mode. TopicSyncCliError exceptions are re-raised to use their built-in
    formatting.

    Args:
        command_name: Name of the command for error messages.

    Returns:
        Decorated function with error handling.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except TopicSyncCliError:
                raise
            except SyncError as e:
                raise TopicSyncCliError.from_sync_error(e) from e
            except RuntimeError as e:
                raise TopicSyncCliError(
                    str(e),
                    hint="Run with --verbose for more details",
                ) from e
            except Exception as e:
                ctx = click.get_current_context()
                if ctx.obj.get("verbose", False):
                    import traceback

                    traceback.print_exc()
                raise TopicSyncCliError(
                    f"Unexpected error in {command_name}: {e}",
                    hint="Run with --verbose for more details",
                ) from e

        return wrapper

    return decorator


def _load_config(topicsync_dir: Path) -> TopicSyncConfig:
    """Load configuration for the given .topicsync directory.

    Args:
        topicsync_dir: Path to the .topicsync directory.

    Returns:
        TopicSyncConfig with merged global and local settings.
    """
    from topicsync.adapters.factory import ConfigFactory

    return ConfigFactory().create_config_provider().load(topicsync_dir)


def get_workspace_root() -> tuple[Path, Path]:
    """Get the workspace root or exit with error.

    Returns:
        Tuple of (workspace_root, topicsync_dir).

    Raises:
        TopicSyncCliError: If not in a topicsync workspace.
    """
    from topicsync.core.repo_utils import find_workspace

    try:
        return find_workspace()
    except RuntimeError:
        workspace_not_found_error()


@dataclass
class Workspace:
    """Everything a command needs to talk to the store and the backend."""

    root: Path
    topicsync_dir: Path
    db_path: Path
    config: TopicSyncConfig
    credentials: CredentialProvider


def _open_workspace() -> Workspace:
    from topicsync.adapters.factory import RemoteFactory

    root, topicsync_dir = get_workspace_root()
    config = _load_config(topicsync_dir)
    return Workspace(
        root=root,
        topicsync_dir=topicsync_dir,
        db_path=topicsync_dir / config.store.filename,
        config=config,
        credentials=RemoteFactory().create_credentials(config),
    )


def _run_sync(
    ctx: click.Context,
    workspace: Workspace,
    operation: Callable[[TopicSyncService], Awaitable[T]],
) -> T:
    """Run one pipeline operation on a fresh event loop.

    The remote client and store connections live exactly as long as the
    operation.
    """
    from topicsync.adapters.factory import RemoteFactory, UseCaseFactory

    async def _runner() -> T:
        remote = RemoteFactory().create_remote_client(
            workspace.config,
            workspace.credentials,
            transport=ctx.obj.get("transport"),
        )
        service = UseCaseFactory().create_sync_service(
            workspace.db_path, workspace.config, remote, workspace.credentials
        )
        try:
            return await operation(service)
        finally:
            await remote.aclose()
            service.repository.close()
            if service.meta is not None:
                service.meta.close()

    return asyncio.run(_runner())


def _topic_repository(workspace: Workspace):
    from topicsync.adapters.factory import RepositoryFactory

    return RepositoryFactory().create_topic_repository(workspace.db_path)


def _echo_failures(report: SyncReport) -> None:
    for failure in report.failures:
        click.echo(f"  ⚠ {failure.stage}: {failure.key}: {failure.error}", err=True)


def _topics_table(topics: list[Topic], user_id: str | None) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Join code")
    table.add_column("Id", justify="right")
    table.add_column("Name")
    table.add_column("Questions", justify="right")
    table.add_column("Role")
    for topic in topics:
        role = "leader" if topic.is_led_by(user_id) else ""
        if not role and user_id is not None and user_id in topic.members:
            role = "member"
        table.add_row(
            topic.join_code,
            "-" if topic.id is None else str(topic.id),
            topic.topic_name,
            str(len(topic.context_questions) + len(topic.request_questions)),
            role,
        )
    return table


@click.group()
@click.version_option(version=__version__, prog_name="topicsync")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress non-essential output.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """topicsync - Mirror survey topics into a local store.

    Pulls topics, their questions, responses and threads from the backend
    and keeps a local SQLite copy in sync.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Reinitialize even if .topicsync/ already exists.",
)
@click.option(
    "--base-url",
    type=str,
    default=None,
    help="Backend URL to write into config.toml.",
)
@click.pass_context
@handle_cli_errors("init")
def init(ctx: click.Context, force: bool, base_url: str | None) -> None:
    """Initialize topicsync in the current directory.

    Creates .topicsync/ with a commented config.toml and an empty store.
    """
    from topicsync.adapters.factory import ConfigFactory
    from topicsync.core.config.init_usecase import InitRequest, InitUseCase

    quiet = ctx.obj.get("quiet", False)
    use_case = InitUseCase(db_initializer=ConfigFactory().create_db_initializer())
    response = use_case.execute(
        InitRequest(workspace_root=Path.cwd(), force=force, base_url=base_url)
    )
    if not response.success:
        hint = (
            "Use 'topicsync init --force' to reinitialize"
            if response.already_exists
            else "Check permissions and try again, or use --force to reinitialize"
        )
        raise TopicSyncCliError(response.error or "Unknown error", hint=hint)

    if quiet:
        return
    if response.was_reinitialized:
        click.echo(f"Reinitialized topicsync workspace at {response.topicsync_dir}")
    else:
        click.echo(f"Initialized topicsync workspace at {response.topicsync_dir}")
    click.echo(f"  ✓ Created {response.config_path.name}")
    click.echo(f"  ✓ Created {response.db_path.name}")
    click.echo("\nNext: set TOPICSYNC_TOKEN and run 'topicsync pull'")


@cli.command()
@click.pass_context
@handle_cli_errors("pull")
def pull(ctx: click.Context) -> None:
    """Pull every topic and its questions from the backend.

    Local topics the backend no longer lists are removed.
    """
    from topicsync.core.progress import progress_context

    workspace = _open_workspace()
    quiet = ctx.obj.get("quiet", False)

    with progress_context(quiet_mode=quiet) as progress:
        report = _run_sync(
            ctx, workspace, lambda service: service.get_topics(progress=progress)
        )

    if not quiet:
        click.echo(f"✓ Synced {report.topics_synced} topic(s)")
    if not report.complete:
        click.echo(f"⚠ {len(report.failures)} item(s) could not be synced:", err=True)
        _echo_failures(report)


@cli.command()
@click.argument("code", type=str)
@click.pass_context
@handle_cli_errors("join")
def join(ctx: click.Context, code: str) -> None:
    """Fetch the topic with join code CODE.

    This replaces the local store's topics with the matching one.
    """
    workspace = _open_workspace()
    topic = _run_sync(ctx, workspace, lambda service: service.get_topic(code))
    click.echo(f"✓ Joined '{topic.topic_name}' ({topic.join_code})")


@cli.command()
@click.argument("name", type=str)
@click.option("--context-id", type=int, required=True, help="Context to create the topic with.")
@click.option(
    "--context-question",
    "context_question_ids",
    type=int,
    multiple=True,
    help="Context question id to link (repeatable).",
)
@click.option(
    "--request-question",
    "request_question_ids",
    type=int,
    multiple=True,
    help="Request question id to link (repeatable).",
)
@click.pass_context
@handle_cli_errors("create")
def create(
    ctx: click.Context,
    name: str,
    context_id: int,
    context_question_ids: tuple[int, ...],
    request_question_ids: tuple[int, ...],
) -> None:
    """Create a topic named NAME led by you.

    Questions must already be in the local store (see 'topicsync defaults').
    Prints the new topic's join code.
    """
    workspace = _open_workspace()
    with _topic_repository(workspace) as repo:
        known_context = {q.id: q for q in repo.list_context_questions()}
        known_request = {q.id: q for q in repo.list_request_questions()}
    context_questions = []
    for qid in context_question_ids:
        if qid not in known_context:
            question_not_cached_error("context", qid)
        context_questions.append(known_context[qid])
    request_questions = []
    for qid in request_question_ids:
        if qid not in known_request:
            question_not_cached_error("request", qid)
        request_questions.append(known_request[qid])

    join_code = _run_sync(
        ctx,
        workspace,
        lambda service: service.post_topic(
            name, context_id, context_questions, request_questions
        ),
    )
    if ctx.obj.get("quiet", False):
        click.echo(join_code)
    else:
        click.echo(f"✓ Created '{name}'")
        click.echo(f"  Join code: {join_code}")


@cli.command()
@click.argument("join_code", type=str)
@click.pass_context
@handle_cli_errors("delete")
def delete(ctx: click.Context, join_code: str) -> None:
    """Delete the topic with JOIN_CODE on the backend and locally.

    Only the topic's leader can delete it.
    """
    workspace = _open_workspace()
    with _topic_repository(workspace) as repo:
        topic = repo.get_topic(join_code)
    if topic is None:
        topic_not_cached_error(join_code)
    if not topic.is_led_by(workspace.credentials.current_user_id()):
        not_leader_error(join_code)

    async def _delete(service: TopicSyncService) -> None:
        await service.delete_topic(topic)
        await service.delete_topics_from_store([topic])

    _run_sync(ctx, workspace, _delete)
    if not ctx.obj.get("quiet", False):
        click.echo(f"✓ Deleted '{topic.topic_name}' ({join_code})")


@cli.command()
@click.pass_context
@handle_cli_errors("defaults")
def defaults(ctx: click.Context) -> None:
    """Fetch the default contexts and context questions."""
    workspace = _open_workspace()

    async def _fetch(service: TopicSyncService):
        contexts = await service.get_default_contexts()
        questions = await service.get_default_context_questions()
        return contexts, questions

    contexts, questions = _run_sync(ctx, workspace, _fetch)
    if ctx.obj.get("quiet", False):
        return

    console = Console()
    context_table = Table(title="Contexts", show_header=True, header_style="bold")
    context_table.add_column("Id", justify="right")
    context_table.add_column("Title")
    for context in contexts:
        context_table.add_row(str(context.id), context.title)
    console.print(context_table)

    question_table = Table(title="Context questions", show_header=True, header_style="bold")
    question_table.add_column("Id", justify="right")
    question_table.add_column("Question")
    for question in questions:
        question_table.add_row(str(question.id), question.question)
    console.print(question_table)


@cli.command()
@click.argument("question_id", type=int)
@click.argument("response_ids", type=int, nargs=-1, required=True)
@click.pass_context
@handle_cli_errors("responses")
def responses(ctx: click.Context, question_id: int, response_ids: tuple[int, ...]) -> None:
    """Fetch RESPONSE_IDS for context question QUESTION_ID."""
    workspace = _open_workspace()
    with _topic_repository(workspace) as repo:
        question = repo.get_context_question(question_id)
    if question is None:
        question_not_cached_error("context", question_id)

    report = _run_sync(
        ctx,
        workspace,
        lambda service: service.get_context_responses(question, list(response_ids)),
    )
    if not ctx.obj.get("quiet", False):
        click.echo(f"✓ Linked {report.records_linked} response(s) to question {question_id}")
    if not report.complete:
        _echo_failures(report)


@cli.command()
@click.argument("response_id", type=int)
@click.argument("thread_ids", type=int, nargs=-1, required=True)
@click.pass_context
@handle_cli_errors("threads")
def threads(ctx: click.Context, response_id: int, thread_ids: tuple[int, ...]) -> None:
    """Fetch THREAD_IDS for context response RESPONSE_ID."""
    workspace = _open_workspace()
    with _topic_repository(workspace) as repo:
        response = repo.get_context_response(response_id)
    if response is None:
        raise TopicSyncCliError(
            f"No local context response with id {response_id}",
            hint="Fetch it first with 'topicsync responses QUESTION_ID RESPONSE_ID'",
        )

    report = _run_sync(
        ctx,
        workspace,
        lambda service: service.get_threads(response, list(thread_ids)),
    )
    if not ctx.obj.get("quiet", False):
        click.echo(f"✓ Linked {report.records_linked} thread(s) to response {response_id}")
    if not report.complete:
        _echo_failures(report)


@cli.command(name="list")
@click.argument("ids", type=int, nargs=-1)
@click.option("--leader", "role", flag_value="leader", help="Only topics you lead.")
@click.option("--member", "role", flag_value="member", help="Only topics you are a member of.")
@click.pass_context
@handle_cli_errors("list")
def list_topics(ctx: click.Context, ids: tuple[int, ...], role: str | None) -> None:
    """List locally cached topics.

    With --leader or --member, only topics among IDS (default: all cached
    topics) where you have that role are listed.
    """
    from topicsync.adapters.factory import UseCaseFactory

    workspace = _open_workspace()
    queries = UseCaseFactory().create_query_service(
        workspace.db_path, workspace.credentials
    )
    with queries.repository:
        topics = queries.repository.list_topics()
        if role is not None:
            candidate_ids = list(ids) or [t.id for t in topics if t.id is not None]
            if role == "leader":
                topics = queries.leader_topics(candidate_ids)
            else:
                topics = queries.member_topics(candidate_ids)
        elif ids:
            topics = [t for t in topics if t.id in ids]

    if not topics:
        click.echo("No topics found")
        return
    Console().print(_topics_table(topics, workspace.credentials.current_user_id()))


@cli.command()
@click.pass_context
@handle_cli_errors("status")
def status(ctx: click.Context) -> None:
    """Show local store status and configuration."""
    from topicsync.adapters.factory import UseCaseFactory
    from topicsync.core.status.status_usecase import StatusRequest

    workspace = _open_workspace()
    use_case = UseCaseFactory().create_status_usecase(
        workspace.db_path, workspace.config, workspace.credentials
    )
    with use_case.topic_repo, use_case.meta_repo:
        response = use_case.execute(StatusRequest(workspace_root=workspace.root))

    if not response.success:
        raise TopicSyncCliError(
            f"Failed to get status: {response.error}",
            hint="Try 'topicsync init --force' to recreate the store",
        )

    click.echo(f"✓ topicsync initialized at {workspace.root}\n")
    click.echo("Store:")
    click.echo(f"  Topics: {response.topic_count}")
    if response.signed_in_as:
        click.echo(f"  Led by you: {response.led_topic_count}")
        click.echo(f"  Signed in as: {response.signed_in_as}")
    else:
        click.echo(f"  Signed in as: {click.style('nobody', fg='yellow')}")
    if response.last_synced_at:
        click.echo(f"  Last pull: {response.last_synced_at}")
    else:
        click.echo(f"  Last pull: {click.style('⚠ Never pulled', fg='yellow')}")
        click.echo("    Run 'topicsync pull' to fetch your topics")

    if response.config:
        click.echo("\nConfiguration:")
        click.echo(f"  Backend: {response.config.remote.base_url}")
        click.echo(f"  Include responses: {response.config.sync.include_responses}")


# Configuration management commands
@cli.group()
def config() -> None:
    """Manage topicsync configuration files.

    topicsync uses a two-tier configuration system:
    - Local: .topicsync/config.toml (workspace settings)
    - Global: ~/.config/topicsync/config.toml (user defaults)

    Local settings override global settings. Missing values use built-in defaults.
    """
    pass


def _display_path_status(path: Path, label: str) -> None:
    """Display a config path with its existence status."""
    status = "exists" if path.exists() else "not created"
    color = "green" if path.exists() else "yellow"
    click.echo(f"{label}{path}")
    click.echo(f"  Status: {click.style(status, fg=color)}")


def _get_local_config_path() -> Path | None:
    """Get the local config path if in a workspace, or None otherwise."""
    try:
        _, topicsync_dir = get_workspace_root()
        return topicsync_dir / "config.toml"
    except TopicSyncCliError:
        return None


def _display_config_summary(config: TopicSyncConfig) -> None:
    """Display every config setting, section by section."""
    from topicsync.shared.config_io import config_to_data

    for section, values in config_to_data(config).items():
        click.echo(f"  [{section}]")
        for key, value in values.items():
            click.echo(f"    {key} = {value}")


@config.command(name="show")
@click.pass_context
@handle_cli_errors("config show")
def config_show(ctx: click.Context) -> None:
    """Show configuration file locations and effective settings."""
    from topicsync.shared.config_io import get_global_config_path

    global_path = get_global_config_path()
    local_path = _get_local_config_path()

    _display_path_status(global_path, "Global config: ")
    if local_path:
        _display_path_status(local_path, "Local config:  ")
        config = _load_config(local_path.parent)
    else:
        click.echo("Local config: Not in a topicsync workspace")
        # No local file here, so this is defaults plus the global file
        config = _load_config(Path.cwd() / ".topicsync")

    click.echo("\nEffective configuration:")
    _display_config_summary(config)


@config.command(name="path")
@click.option(
    "--global", "-g", "show_global", is_flag=True, help="Show only global config path"
)
@click.option(
    "--local", "-l", "show_local", is_flag=True, help="Show only local config path"
)
@handle_cli_errors("config path")
def config_path(show_global: bool, show_local: bool) -> None:
    """Print config file path(s) for use in scripts.

    Outputs bare paths without any decoration, suitable for piping.
    """
    from topicsync.shared.config_io import get_global_config_path

    global_path = get_global_config_path()

    if show_global:
        click.echo(global_path)
        return

    local_path = _get_local_config_path()
    if show_local:
        if local_path:
            click.echo(local_path)
        return

    click.echo(f"global:{global_path}")
    if local_path:
        click.echo(f"local:{local_path}")


def main() -> int:
    """Main entrypoint for the CLI."""
    try:
        cli(obj={})
        return 0
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
