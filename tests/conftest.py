"""Shared test fixtures."""

import pytest

from epicgen.errors import TrackerRequestError
from epicgen.models import (
    CreatedIssue,
    Epic,
    IssuePayload,
    IssueSummary,
    IssueType,
    ProjectMetadata,
    TicketSpec,
)
from epicgen.providers.base import IssueTrackerClient
from epicgen.templates import TicketTemplates


class FakeTracker(IssueTrackerClient):
    """In-memory tracker that records every call."""

    def __init__(
        self,
        issues: dict[str, IssueSummary] | None = None,
        projects: dict[str, ProjectMetadata] | None = None,
    ) -> None:
        self.issues = issues or {}
        self.projects = projects or {}
        self.project_failures: dict[str, int] = {}  # key -> fail on the Nth lookup (1-based)
        self.fail_create_at: int | None = None  # fail on the Nth create (1-based)
        self.calls: list[tuple[str, str]] = []
        self.created: list[IssuePayload] = []

    def get_issue(self, issue_id: str, fields: str | None = None) -> IssueSummary:
        self.calls.append(("get_issue", issue_id))
        if issue_id not in self.issues:
            raise TrackerRequestError(
                "Jira returned 404: Issue does not exist",
                method="GET",
                url=f"https://jira.example.com/rest/api/2/issue/{issue_id}",
                status_code=404,
                response_body='{"errorMessages":["Issue does not exist"]}',
            )
        return self.issues[issue_id]

    def get_project(self, key: str) -> ProjectMetadata:
        self.calls.append(("get_project", key))
        lookups = sum(1 for name, arg in self.calls if name == "get_project" and arg == key)
        if self.project_failures.get(key) == lookups:
            raise TrackerRequestError(
                "Request to Jira failed: connection reset",
                method="GET",
                url=f"https://jira.example.com/rest/api/2/project/{key}",
            )
        return self.projects[key]

    def create_issue(self, payload: IssuePayload) -> CreatedIssue:
        self.calls.append(("create_issue", payload.project.key))
        if self.fail_create_at == len(self.created) + 1:
            raise TrackerRequestError(
                "Jira returned 400: summary: Field is required",
                method="POST",
                url="https://jira.example.com/rest/api/2/issue",
                status_code=400,
                response_body='{"errors":{"summary":"Field is required"}}',
            )
        self.created.append(payload)
        number = len(self.created)
        return CreatedIssue(
            id=str(20000 + number),
            key=f"{payload.project.key}-{number}",
            self_url=f"https://jira.example.com/rest/api/2/issue/{20000 + number}",
            fields={
                "summary": payload.summary,
                "issuetype": {"name": payload.issue_type.name},
                "project": {"key": payload.project.key},
                "priority": {"name": "Medium"},
            },
        )

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)


@pytest.fixture
def epic_issue() -> IssueSummary:
    return IssueSummary(
        id="10042",
        key="PROJ-5",
        self_url="https://jira.example.com/rest/api/2/issue/10042",
        issue_type="Epic",
    )


@pytest.fixture
def epic() -> Epic:
    return Epic(id=10042, key="PROJ-5", self_url="https://jira.example.com/rest/api/2/issue/10042")


@pytest.fixture
def project_x() -> ProjectMetadata:
    return ProjectMetadata(
        id="10000",
        key="X",
        name="Project X",
        issue_types=[IssueType(id="1", name="Story"), IssueType(id="2", name="Bug")],
    )


@pytest.fixture
def empty_project() -> ProjectMetadata:
    return ProjectMetadata(id="10001", key="EMPTY", name="No types", issue_types=[])


@pytest.fixture
def tracker(epic_issue: IssueSummary, project_x: ProjectMetadata, empty_project: ProjectMetadata) -> FakeTracker:
    return FakeTracker(issues={"PROJ-5": epic_issue}, projects={"X": project_x, "EMPTY": empty_project})


@pytest.fixture
def templates() -> TicketTemplates:
    return TicketTemplates.from_strings(
        summary="[{{ project }}] Upgrade {{ params.service }}",
        description="Part of {{ params.epic }}.\nService: {{ index(params, 'service') }}\n",
    )


@pytest.fixture
def ticket() -> TicketSpec:
    return TicketSpec(project="X", params={"service": "billing"})
