"""Abstract base class for issue tracker clients."""

from abc import ABC, abstractmethod

from epicgen.models import CreatedIssue, IssuePayload, IssueSummary, ProjectMetadata


class IssueTrackerClient(ABC):
    """The three tracker operations the batch pipeline needs.

    Every method raises TrackerRequestError when the request fails, and
    MalformedResponseError when the answer cannot be understood.
    """

    @abstractmethod
    def get_issue(self, issue_id: str, fields: str | None = None) -> IssueSummary: ...

    @abstractmethod
    def get_project(self, key: str) -> ProjectMetadata: ...

    @abstractmethod
    def create_issue(self, payload: IssuePayload) -> CreatedIssue: ...

    def close(self) -> None:  # noqa: B027
        pass

    def __enter__(self) -> "IssueTrackerClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
