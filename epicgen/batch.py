"""Batch creation of issues under one epic.

Tickets are processed strictly in input order, one at a time: creation order is
visible in the tracker (issue numbering) and the project cache has a single
writer. Every failure aborts the rest of the batch; issues created before the
failure stay created. The only per-ticket, non-fatal case is a project without
issue types, which is skipped.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import structlog

from epicgen.errors import TrackerRequestError
from epicgen.models import (
    BatchResult,
    CustomEpicField,
    Epic,
    EpicLink,
    IssuePayload,
    IssueType,
    ProjectMetadata,
    StandardEpicField,
    TicketOutcome,
    TicketSpec,
)
from epicgen.providers.base import IssueTrackerClient
from epicgen.resolvers import EpicResolver, ProjectMetadataResolver
from epicgen.templates import TicketTemplates
from epicgen.tickets import load_tickets

logger = structlog.get_logger()

OutcomeReporter = Callable[[TicketOutcome], None]


def render_context(ticket: TicketSpec, epic: Epic) -> dict[str, Any]:
    """Template variables for one ticket; ``params.epic`` is always the resolved epic key."""
    params = dict(ticket.params)
    params["epic"] = epic.key
    return {
        "project": ticket.project,
        "params": params,
        "custom_epic_field": ticket.custom_epic_field,
    }


def epic_link_for(ticket: TicketSpec, epic: Epic) -> EpicLink:
    if ticket.custom_epic_field:
        return CustomEpicField(field_name=ticket.custom_epic_field, epic_key=epic.key)
    return StandardEpicField(epic_key=epic.key)


def build_payload(
    ticket: TicketSpec,
    epic: Epic,
    project: ProjectMetadata,
    issue_type: IssueType,
    summary: str,
    description: str,
) -> IssuePayload:
    return IssuePayload(
        summary=summary,
        description=description,
        project=project,
        issue_type=issue_type,
        epic_link=epic_link_for(ticket, epic),
    )


class BatchCreator:
    def __init__(
        self,
        client: IssueTrackerClient,
        templates: TicketTemplates,
        report: OutcomeReporter | None = None,
    ) -> None:
        self._client = client
        self._templates = templates
        self._report = report

    def run_from_file(self, tickets_path: Path, epic_identifier: str) -> BatchResult:
        """Load the tickets file, then run. Load errors surface before any tracker call."""
        tickets = load_tickets(tickets_path)
        return self.run(tickets, epic_identifier)

    def run(self, tickets: list[TicketSpec], epic_identifier: str) -> BatchResult:
        epic = EpicResolver(self._client).resolve(epic_identifier)
        projects = ProjectMetadataResolver(self._client)
        log = logger.bind(epic=epic.key)

        outcomes: list[TicketOutcome] = []
        for position, ticket in enumerate(tickets):
            try:
                outcome = self._process(ticket, epic, projects)
            except Exception as exc:
                log.error(
                    "batch_aborted",
                    ticket=position,
                    project=ticket.project,
                    created=sum(1 for o in outcomes if o.status == "created"),
                    error=str(exc),
                )
                raise
            outcomes.append(outcome)
            if self._report is not None:
                self._report(outcome)

        result = BatchResult(epic=epic, outcomes=outcomes)
        log.info("batch_finished", created=len(result.created), skipped=len(result.skipped))
        return result

    def _process(self, ticket: TicketSpec, epic: Epic, projects: ProjectMetadataResolver) -> TicketOutcome:
        project = projects.resolve(ticket.project)
        if not project.issue_types:
            reason = f"No issue types found for project {ticket.project}"
            logger.warning("ticket_skipped", project=ticket.project, params=ticket.params, reason=reason)
            return TicketOutcome(ticket=ticket, status="skipped", reason=reason)

        # First declared type wins; there is no selection by name.
        issue_type = project.issue_types[0]

        context = render_context(ticket, epic)
        summary = self._templates.render_summary(context)
        description = self._templates.render_description(context)

        payload = build_payload(ticket, epic, project, issue_type, summary, description)
        try:
            created = self._client.create_issue(payload)
        except TrackerRequestError as exc:
            raise exc.with_context(f"Could not create issue in project '{ticket.project}'") from exc

        logger.info(
            "issue_created",
            key=created.key,
            id=created.id,
            project=ticket.project,
            issue_type=issue_type.name,
        )
        return TicketOutcome(ticket=ticket, status="created", issue=created)
