"""Resolve the target epic and per-project metadata for one batch run."""

import structlog

from epicgen.errors import MalformedResponseError, NotAnEpicError, TrackerRequestError
from epicgen.models import Epic, ProjectMetadata
from epicgen.providers.base import IssueTrackerClient

logger = structlog.get_logger()

EPIC_TYPE_NAME = "Epic"


class ProjectMetadataResolver:
    """Memoizes project lookups; one instance lives for exactly one batch run.

    The cache is a plain dict with a single writer.
    """

    def __init__(self, client: IssueTrackerClient) -> None:
        self._client = client
        self._cache: dict[str, ProjectMetadata] = {}

    def resolve(self, project_key: str) -> ProjectMetadata:
        cached = self._cache.get(project_key)
        if cached is not None:
            logger.debug("project_cache_hit", project=project_key)
            return cached

        try:
            project = self._client.get_project(project_key)
        except TrackerRequestError as exc:
            raise exc.with_context(f"Could not resolve project '{project_key}'") from exc

        self._cache[project_key] = project
        logger.debug(
            "project_resolved",
            project=project_key,
            issue_types=[t.name for t in project.issue_types],
        )
        return project


class EpicResolver:
    def __init__(self, client: IssueTrackerClient) -> None:
        self._client = client

    def resolve(self, identifier: str) -> Epic:
        """Look up ``identifier`` (only its issue type) and confirm it is an epic."""
        try:
            issue = self._client.get_issue(identifier, fields="issuetype")
        except TrackerRequestError as exc:
            raise exc.with_context(f"Could not look up epic '{identifier}'") from exc

        if issue.issue_type != EPIC_TYPE_NAME:
            raise NotAnEpicError(identifier, issue.issue_type)

        try:
            epic_id = int(issue.id)
        except ValueError as exc:
            raise MalformedResponseError(f"Epic '{identifier}' has non-numeric id {issue.id!r}") from exc

        epic = Epic(id=epic_id, key=issue.key, self_url=issue.self_url)
        logger.info("epic_resolved", identifier=identifier, epic=epic.key, epic_id=epic.id)
        return epic
