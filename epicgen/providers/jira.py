"""Jira REST API v2 client."""

import json
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from epicgen.errors import MalformedResponseError, TrackerRequestError
from epicgen.models import (
    CreatedIssue,
    Credentials,
    CustomEpicField,
    IssuePayload,
    IssueSummary,
    IssueType,
    ProjectMetadata,
    StandardEpicField,
)
from epicgen.providers.base import IssueTrackerClient

logger = structlog.get_logger()

API_PREFIX = "/rest/api/2"


def _error_detail(response: httpx.Response) -> str:
    """Best-effort one-line summary of a Jira error body."""
    try:
        body = response.json()
        err_messages = body.get("errorMessages", [])
        errors = body.get("errors", {})
        return "; ".join(err_messages) if err_messages else json.dumps(errors)[:500]
    except (ValueError, AttributeError):
        return response.text[:500] if response.text else "Unknown error"


def _fields_payload(payload: IssuePayload) -> dict[str, Any]:
    issue_type = {"id": payload.issue_type.id} if payload.issue_type.id else {"name": payload.issue_type.name}
    fields: dict[str, Any] = {
        "project": {"key": payload.project.key},
        "issuetype": issue_type,
        "summary": payload.summary,
        "description": payload.description,
    }
    match payload.epic_link:
        case CustomEpicField(field_name=name, epic_key=key):
            fields[name] = key
        case StandardEpicField(epic_key=key):
            fields["parent"] = {"key": key}
    return {"fields": fields}


class JiraClient(IssueTrackerClient):
    def __init__(self, base_url: str, credentials: Credentials, timeout: float = 30.0) -> None:
        if not base_url:
            raise ValueError("base_url is required")
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            auth=(credentials.user, credentials.password.get_secret_value()),
            headers={"Accept": "application/json"},
            timeout=timeout,
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, params: dict | None = None, body: dict | None = None) -> Any:
        url = f"{self._base_url}{API_PREFIX}{path}"
        try:
            response = self._client.request(method, url, params=params, json=body)
        except httpx.HTTPError as exc:
            raise TrackerRequestError(f"Request to Jira failed: {exc}", method=method, url=url) from exc

        request_url = str(response.request.url)
        if response.status_code == 401:
            raise TrackerRequestError(
                "Jira returned 401. Check the credentials for the active profile.",
                method=method,
                url=request_url,
                status_code=401,
                response_body=response.text,
            )
        if response.status_code >= 400:
            raise TrackerRequestError(
                f"Jira returned {response.status_code}: {_error_detail(response)}",
                method=method,
                url=request_url,
                status_code=response.status_code,
                response_body=response.text,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(f"{method} {request_url} returned non-JSON body: {response.text[:200]}") from exc

    def get_issue(self, issue_id: str, fields: str | None = None) -> IssueSummary:
        node = self._request("GET", f"/issue/{issue_id}", params={"fields": fields} if fields else None)
        try:
            issue_type = (node.get("fields") or {}).get("issuetype") or {}
            return IssueSummary(
                id=str(node["id"]),
                key=node["key"],
                self_url=node.get("self", ""),
                issue_type=issue_type.get("name"),
            )
        except (KeyError, TypeError, AttributeError, ValidationError) as exc:
            raise MalformedResponseError(f"Unexpected issue response for '{issue_id}': {exc!r}") from exc

    def get_project(self, key: str) -> ProjectMetadata:
        node = self._request("GET", f"/project/{key}")
        try:
            return ProjectMetadata(
                id=str(node["id"]) if node.get("id") is not None else None,
                key=node["key"],
                name=node.get("name"),
                issue_types=[
                    IssueType(
                        id=str(t["id"]) if t.get("id") is not None else None,
                        name=t["name"],
                        subtask=bool(t.get("subtask", False)),
                    )
                    for t in node.get("issueTypes") or []
                ],
            )
        except (KeyError, TypeError, AttributeError, ValidationError) as exc:
            raise MalformedResponseError(f"Unexpected project response for '{key}': {exc!r}") from exc

    def create_issue(self, payload: IssuePayload) -> CreatedIssue:
        created = self._request("POST", "/issue", body=_fields_payload(payload))
        try:
            issue = CreatedIssue(id=str(created["id"]), key=created["key"], self_url=created.get("self") or "")
        except (KeyError, TypeError, AttributeError, ValidationError) as exc:
            raise MalformedResponseError(f"Unexpected create response: {created!r}") from exc

        # Read back what Jira stored; server-side defaults can differ from what was sent.
        # The issue exists at this point, so a failed read-back must not look like a failed create.
        try:
            persisted = self._request("GET", f"/issue/{issue.key}")
        except (TrackerRequestError, MalformedResponseError) as exc:
            logger.warning("readback_failed", key=issue.key, error=str(exc))
            return issue
        fields = persisted.get("fields") if isinstance(persisted, dict) else None
        if not isinstance(fields, dict):
            logger.warning("readback_failed", key=issue.key, error="response has no fields object")
            return issue
        return issue.model_copy(update={"fields": fields})
