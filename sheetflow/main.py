"""SheetFlow CLI — all commands."""

from typing import Annotated

import tomlkit
import typer
from rich import print as rprint
from rich.table import Table

from sheetflow import actions
from sheetflow.commands import process_command
from sheetflow.errors import InterpreterError, IssueNotFoundError
from sheetflow.interpreters.base import CommandInterpreter
from sheetflow.interpreters.llm import LlmInterpreter
from sheetflow.log import configure_logging
from sheetflow.models import CLOSED_STATUSES, ActionResult, CommandResult, Issue
from sheetflow.mutations import MutationApplier
from sheetflow.sentinels import METHOD_NA_FORM_VALUE, UNASSIGNED_FORM_VALUE
from sheetflow.settings import CONFIG_PATH, SheetflowSettings, _list_profiles, get_settings
from sheetflow.store import TomlStore

app = typer.Typer(help="sheetflow: track issues from forms and free-text commands", no_args_is_help=True)

ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-P", help="Profile name from ~/.config/sheetflow/config.toml"),
]

_NOT_SET = "[dim](not set)[/dim]"


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def load_settings(profile: str | None = None) -> SheetflowSettings:
    settings = get_settings(profile=profile)
    configure_logging(settings.log_level)
    return settings


def get_applier(profile: str | None = None) -> MutationApplier:
    settings = load_settings(profile)
    return MutationApplier(TomlStore(settings.store_path), id_prefix=settings.id_prefix)


def get_interpreter(profile: str | None = None) -> CommandInterpreter:
    settings = load_settings(profile)
    if not settings.interpreter_api_key:
        typer.echo(
            "Missing interpreter credentials. Set SHEETFLOW_INTERPRETER_API_KEY or "
            f"interpreter_api_key in the [{profile or 'profile'}] section of {CONFIG_PATH}"
        )
        raise typer.Exit(1)
    return LlmInterpreter(settings)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _report(result: ActionResult) -> None:
    """Print a tagged result; exit 1 on error."""
    if result.ok:
        rprint(f"[green]✓[/green] {result.message}")
        return
    rprint(f"[red]{result.message}[/red]")
    raise typer.Exit(1)


def _render_interpretation(result: CommandResult) -> None:
    intent = result.interpretation
    if intent is None:
        return
    fields = intent.model_dump(exclude_none=True, exclude={"kind"})
    detail = ", ".join(f"{k}={v!r}" for k, v in fields.items()) or "no fields"
    rprint(f"[dim]Interpreted as {intent.kind}: {detail}[/dim]")


def _issue_table(issue: Issue) -> Table:
    table = Table(title=f"{issue.id}: {issue.title}")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Status", issue.status)
    table.add_row("Priority", issue.priority)
    table.add_row("Assignee", issue.assignee or "Unassigned")
    table.add_row("Reporter", issue.reporter or "—")
    table.add_row("Labels", ", ".join(issue.labels) if issue.labels else "none")
    table.add_row("Created", issue.created_at.isoformat())
    table.add_row("Updated", issue.updated_at.isoformat())

    description = issue.description
    table.add_row("API", description.api_name or "—")
    table.add_row("Method", description.method or "N/A")
    table.add_row("Response code", str(description.response_code) if description.response_code is not None else "—")
    table.add_row("Payload", description.payload or "—")
    table.add_row("Response", description.response or "—")
    table.add_row("Image", description.image_data_uri or "—")
    table.add_row("Notes", description.general_notes or "_No description provided._")
    return table


def _form(**fields: str | None) -> dict[str, str | None]:
    return {key: value for key, value in fields.items() if value is not None}


# ---------------------------------------------------------------------------
# Issue commands
# ---------------------------------------------------------------------------


@app.command("list-issues")
def list_issues(
    profile: ProfileOpt = None,
    status: Annotated[str | None, typer.Option("--status", "-s", help="Only issues with this status")] = None,
) -> None:
    """List issues, most recent first."""
    applier = get_applier(profile)
    issues = applier.store.list_issues()
    if status:
        issues = [issue for issue in issues if issue.status.casefold() == status.casefold()]

    table = Table(title="Issues")
    table.add_column("ID", style="cyan")
    table.add_column("Status")
    table.add_column("Pri")
    table.add_column("Assignee")
    table.add_column("Title")
    table.add_column("Updated", style="dim")

    for issue in issues:
        table.add_row(
            issue.id,
            issue.status,
            issue.priority,
            issue.assignee or "—",
            issue.title,
            issue.updated_at.strftime("%Y-%m-%d %H:%M"),
        )

    rprint(table)


@app.command("get-issue")
def get_issue(
    issue_id: Annotated[str, typer.Argument(help="Issue ID (e.g. SF-001)")],
    profile: ProfileOpt = None,
) -> None:
    """Show full details for an issue."""
    applier = get_applier(profile)
    try:
        issue = applier.store.get_issue(issue_id)
    except IssueNotFoundError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc
    rprint(_issue_table(issue))


@app.command("create-issue")
def create_issue(
    title: Annotated[str, typer.Argument(help="Issue title")],
    profile: ProfileOpt = None,
    status: Annotated[str | None, typer.Option("--status", "-s", help="Defaults to 'To Do'")] = None,
    priority: Annotated[str | None, typer.Option("--priority", "-p", help="Defaults to 'Medium'")] = None,
    assignee: Annotated[str | None, typer.Option("--assignee", "-a", help="A registered assignee")] = None,
    labels: Annotated[str | None, typer.Option("--labels", "-l", help="Comma-separated labels")] = None,
    api_name: Annotated[str | None, typer.Option("--api-name")] = None,
    method: Annotated[str | None, typer.Option("--method", help="GET, POST, PUT, DELETE, PATCH or OTHER")] = None,
    payload: Annotated[str | None, typer.Option("--payload")] = None,
    response: Annotated[str | None, typer.Option("--response")] = None,
    response_code: Annotated[str | None, typer.Option("--response-code")] = None,
    image: Annotated[str | None, typer.Option("--image", help="Image URI or data URI")] = None,
    notes: Annotated[str | None, typer.Option("--notes", "-n", help="General notes")] = None,
) -> None:
    """Create a new issue."""
    applier = get_applier(profile)
    form = _form(
        title=title,
        status=status,
        priority=priority,
        assignee=assignee,
        labels=labels,
        description_apiName=api_name,
        description_method=method,
        description_payload=payload,
        description_response=response,
        description_responseCode=response_code,
        description_imageDataUri=image,
        description_generalNotes=notes,
    )
    _report(actions.create_issue(applier, form))


@app.command("update-issue")
def update_issue(
    issue_id: Annotated[str, typer.Argument(help="Issue ID")],
    profile: ProfileOpt = None,
    title: Annotated[str | None, typer.Option("--title", "-t")] = None,
    status: Annotated[str | None, typer.Option("--status", "-s")] = None,
    priority: Annotated[str | None, typer.Option("--priority", "-p")] = None,
    assignee: Annotated[str | None, typer.Option("--assignee", "-a")] = None,
    unassign: Annotated[bool, typer.Option("--unassign", help="Remove the assignee")] = False,
    labels: Annotated[str | None, typer.Option("--labels", "-l", help="Replace labels (comma-separated)")] = None,
    api_name: Annotated[str | None, typer.Option("--api-name")] = None,
    method: Annotated[str | None, typer.Option("--method")] = None,
    clear_method: Annotated[bool, typer.Option("--clear-method", help="Set method to N/A")] = False,
    payload: Annotated[str | None, typer.Option("--payload")] = None,
    response: Annotated[str | None, typer.Option("--response")] = None,
    response_code: Annotated[str | None, typer.Option("--response-code")] = None,
    image: Annotated[str | None, typer.Option("--image")] = None,
    clear_image: Annotated[bool, typer.Option("--clear-image", help="Remove the image")] = False,
    notes: Annotated[str | None, typer.Option("--notes", "-n")] = None,
) -> None:
    """Update an issue. Only the options given are changed; pass "" to clear a text field."""
    applier = get_applier(profile)
    form = _form(
        id=issue_id,
        title=title,
        status=status,
        priority=priority,
        assignee=UNASSIGNED_FORM_VALUE if unassign else assignee,
        labels=labels,
        description_apiName=api_name,
        description_method=METHOD_NA_FORM_VALUE if clear_method else method,
        description_payload=payload,
        description_response=response,
        description_responseCode=response_code,
        description_imageDataUri=image,
        description_imageDataUri_clear="true" if clear_image else None,
        description_generalNotes=notes,
    )
    _report(actions.update_issue(applier, form))


@app.command("delete-issue")
def delete_issue(
    issue_id: Annotated[str, typer.Argument(help="Issue ID")],
    profile: ProfileOpt = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
) -> None:
    """Permanently delete an issue. Its ID is never reused."""
    if not yes and not typer.confirm(f"Delete {issue_id}?", default=False):
        raise typer.Exit(0)
    applier = get_applier(profile)
    _report(actions.delete_issue(applier, {"issueId": issue_id}))


@app.command("command")
def command_cmd(
    text: Annotated[str, typer.Argument(help='Free-text command, e.g. "Assign SF-002 to Bob"')],
    profile: ProfileOpt = None,
    context: Annotated[
        str | None,
        typer.Option("--context", "-c", help="Issue ID to act on when the command names none"),
    ] = None,
) -> None:
    """Interpret a free-text command and apply it."""
    applier = get_applier(profile)
    interpreter = get_interpreter(profile)
    result = process_command(applier, interpreter, text, context)
    _render_interpretation(result)
    _report(result)


@app.command("summarize")
def summarize(profile: ProfileOpt = None) -> None:
    """Summarize open issues for a project lead."""
    applier = get_applier(profile)
    open_issues = [issue for issue in applier.store.list_issues() if issue.status not in CLOSED_STATUSES]
    if not open_issues:
        rprint("No open issues.")
        return
    interpreter = get_interpreter(profile)
    try:
        summary = interpreter.summarize(open_issues)
    except InterpreterError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc
    rprint(summary)


# ---------------------------------------------------------------------------
# Assignee registry
# ---------------------------------------------------------------------------


@app.command("list-assignees")
def list_assignees(profile: ProfileOpt = None) -> None:
    """List registered assignees."""
    applier = get_applier(profile)
    names = applier.store.list_assignees()
    if not names:
        rprint("[dim]No assignees registered.[/dim]")
        return
    for name in names:
        rprint(name)


@app.command("add-assignee")
def add_assignee(
    name: Annotated[str, typer.Argument(help="Assignee name")],
    profile: ProfileOpt = None,
) -> None:
    """Register an assignee."""
    applier = get_applier(profile)
    _report(actions.add_assignee(applier.store, {"assigneeName": name}))


@app.command("remove-assignee")
def remove_assignee(
    name: Annotated[str, typer.Argument(help="Assignee name")],
    profile: ProfileOpt = None,
) -> None:
    """Remove an assignee from the registry. Issues keep their current assignee."""
    applier = get_applier(profile)
    _report(actions.remove_assignee(applier.store, {"assigneeName": name}))


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@app.command("set-default")
def set_default(
    profile: Annotated[str, typer.Argument(help="Profile name to set as default")],
) -> None:
    """Set the default profile in ~/.config/sheetflow/config.toml."""
    if not CONFIG_PATH.exists():
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        doc = tomlkit.document()
        doc.add("default_profile", profile)
        CONFIG_PATH.write_text(tomlkit.dumps(doc))
        rprint(f'[green]✓[/green] Default profile set to "{profile}" in {CONFIG_PATH}')
        return

    doc = tomlkit.load(CONFIG_PATH.open())
    profiles = _list_profiles(doc)
    if profile not in profiles:
        rprint(f"[red]Profile '{profile}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}[/red]")
        raise typer.Exit(1)

    doc["default_profile"] = profile
    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    rprint(f'[green]✓[/green] Default profile set to "{profile}" in {CONFIG_PATH}')


@app.command("config-show")
def config_show(profile: ProfileOpt = None) -> None:
    """Show resolved configuration (masks credentials)."""
    settings = get_settings(profile=profile)

    def mask(val: str | None) -> str:
        if val is None:
            return _NOT_SET
        if len(val) <= 5:
            return "***"
        return f"...{val[-5:]}"

    table = Table(title="SheetFlow Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("default_profile", settings.default_profile or _NOT_SET)
    table.add_row("store_path", str(settings.store_path))
    table.add_row("id_prefix", settings.id_prefix)
    table.add_row("interpreter_url", settings.interpreter_url)
    table.add_row(
        "interpreter_api_key",
        mask(settings.interpreter_api_key.get_secret_value() if settings.interpreter_api_key else None),
    )
    table.add_row("interpreter_model", settings.interpreter_model)
    table.add_row("interpreter_timeout", f"{settings.interpreter_timeout:g}s")
    table.add_row("log_level", settings.log_level)

    rprint(table)
