"""epicgen CLI — all commands."""

from pathlib import Path
from typing import Annotated, NoReturn

import structlog
import tomlkit
import typer
from rich import print as rprint
from rich.markup import escape
from rich.table import Table

from epicgen.batch import BatchCreator
from epicgen.errors import EpicgenError, TrackerRequestError
from epicgen.logging import configure_logging
from epicgen.models import Credentials, TicketOutcome
from epicgen.providers.base import IssueTrackerClient
from epicgen.providers.jira import JiraClient
from epicgen.settings import CONFIG_PATH, EpicgenSettings, _list_profiles, get_settings, load_credentials
from epicgen.templates import TicketTemplates

app = typer.Typer(help="epicgen: create templated Jira issues under an epic", no_args_is_help=True)

logger = structlog.get_logger()

TrackerOpt = Annotated[
    str | None,
    typer.Option("--tracker", "-k", help="Profile name from ~/.config/epicgen/config.toml"),
]

TICKETS_HELP = """\
Path to JSON file containing ticket parameters, shaped as
[{"project": "<my-project>", "params": {...}}, ...].
Each "params" object is passed to the summary and description templates,
with "epic" set to the key of the target epic. Add "custom_epic_field" to a
ticket to link it through that custom field instead of the parent field."""


# ---------------------------------------------------------------------------
# Client factory
# ---------------------------------------------------------------------------


def get_client(settings: EpicgenSettings, jira_url: str, credentials: Credentials) -> IssueTrackerClient:
    return JiraClient(jira_url, credentials, timeout=settings.request_timeout)


# ---------------------------------------------------------------------------
# Reporting helpers
# ---------------------------------------------------------------------------


def _print_outcome(outcome: TicketOutcome) -> None:
    if outcome.status == "skipped":
        rprint(f"[yellow]Skipped[/yellow] {escape(outcome.reason or '')} - params: {escape(str(outcome.ticket.params))}")
        return

    issue = outcome.issue
    if issue is None:
        return
    fields = issue.fields
    summary = fields.get("summary", "")
    issue_type = (fields.get("issuetype") or {}).get("name", "—")
    project = (fields.get("project") or {}).get("key", outcome.ticket.project)
    rprint(f"[green]✓[/green] Created [bold]{escape(issue.key)}[/bold] {escape(str(summary))}")
    rprint(f"  [dim]type:[/dim] {escape(issue_type)}  [dim]project:[/dim] {escape(project)}  {escape(issue.self_url)}")


def _fail(exc: Exception) -> NoReturn:
    rprint(f"[red]Error:[/red] {escape(str(exc))}")
    if isinstance(exc, TrackerRequestError):
        for line in exc.details():
            rprint(f"  {escape(line)}")
    raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("create")
def create(
    epic: Annotated[str, typer.Argument(help="Epic to create issues in (e.g. PROJ-5).")],
    tracker: TrackerOpt = None,
    jira_url: Annotated[str | None, typer.Option("--jira-url", help="JIRA instance URL")] = None,
    auth_file: Annotated[
        Path | None,
        typer.Option("--auth-file", help="Path to JSON file with auth credentials. Must have <user> and <password>."),
    ] = None,
    tickets_json: Annotated[Path | None, typer.Option("--tickets-json", help=TICKETS_HELP)] = None,
    summary_template: Annotated[
        Path | None,
        typer.Option("--summary-template", help="Path to template to use for summary of Issues created in the Epic."),
    ] = None,
    description_template: Annotated[
        Path | None,
        typer.Option(
            "--description-template",
            help="Path to template to use for description of Issues created in the Epic.",
        ),
    ] = None,
    log_level: Annotated[str | None, typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR")] = None,
) -> None:
    """Create one issue per ticket in the tickets file, linked to EPIC."""
    settings = get_settings(tracker=tracker)
    configure_logging(level=log_level or settings.log_level, json_output=settings.json_logs)

    url = jira_url or settings.jira_url
    if not url:
        rprint("[red]No Jira URL. Use --jira-url or set jira_url in your config profile.[/red]")
        raise typer.Exit(1)
    credentials = load_credentials(settings, auth_file)

    try:
        # Both templates compile before the tracker is contacted.
        templates = TicketTemplates.from_files(
            summary_template or settings.summary_template,
            description_template or settings.description_template,
        )
        with get_client(settings, url, credentials) as client:
            creator = BatchCreator(client, templates, report=_print_outcome)
            result = creator.run_from_file(tickets_json or settings.tickets_file, epic)
    except (EpicgenError, OSError) as exc:
        logger.error("create_failed", epic=epic, error=str(exc))
        _fail(exc)

    rprint(f"[bold]{result.epic.key}[/bold]: {len(result.created)} created, {len(result.skipped)} skipped")


@app.command("set-default")
def set_default(
    tracker: Annotated[str, typer.Argument(help="Profile name to set as default")],
) -> None:
    """Set the default profile in ~/.config/epicgen/config.toml.

    A missing config file is created holding only the default. An existing one must
    already define the profile; the rest of the document is written back untouched.
    """
    if CONFIG_PATH.exists():
        with CONFIG_PATH.open() as fh:
            doc = tomlkit.load(fh)
        profiles = _list_profiles(doc)
        if tracker not in profiles:
            rprint(f"[red]Profile '{tracker}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}[/red]")
            raise typer.Exit(1)
    else:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        doc = tomlkit.document()

    doc["default_tracker"] = tracker
    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    rprint(f'[green]✓[/green] Default tracker set to "{tracker}" in {CONFIG_PATH}')


@app.command("config-show")
def config_show(tracker: TrackerOpt = None) -> None:
    """Show resolved configuration (masks credentials)."""
    settings = get_settings(tracker=tracker)
    not_set = "[dim](not set)[/dim]"

    def mask(val: str | None) -> str:
        if val is None:
            return not_set
        if len(val) <= 5:
            return "***"
        return f"...{val[-3:]}"

    table = Table(title="epicgen Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("default_tracker", settings.default_tracker or not_set)
    table.add_row("jira_url", settings.jira_url or not_set)
    table.add_row("jira_user", settings.jira_user or not_set)
    table.add_row(
        "jira_password",
        mask(settings.jira_password.get_secret_value() if settings.jira_password else None),
    )
    table.add_row("auth_file", str(settings.auth_file))
    table.add_row("request_timeout", str(settings.request_timeout))
    table.add_row("tickets_file", str(settings.tickets_file))
    table.add_row("summary_template", str(settings.summary_template))
    table.add_row("description_template", str(settings.description_template))
    table.add_row("log_level", settings.log_level)
    table.add_row("json_logs", str(settings.json_logs))

    rprint(table)
