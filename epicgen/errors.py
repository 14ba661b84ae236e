"""epicgen exception hierarchy.

Read failures are not wrapped: they surface as the builtin ``OSError``.
"""


class EpicgenError(Exception):
    """Base exception for all epicgen errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class MalformedInputError(EpicgenError):
    """Raised when the ticket list does not have the expected shape."""


class TemplateExecutionError(EpicgenError):
    """Raised when a template fails to compile or render."""


class MalformedResponseError(EpicgenError):
    """Raised when a tracker response cannot be parsed into the expected shape."""


class NotAnEpicError(EpicgenError):
    """Raised when the epic identifier resolves to an issue of another type."""

    def __init__(self, identifier: str, issue_type: str | None) -> None:
        self.identifier = identifier
        self.issue_type = issue_type
        super().__init__(f"{identifier} resolved to a {issue_type or 'typeless'} issue, not an Epic")


class TrackerRequestError(EpicgenError):
    """Raised when a call to the issue tracker fails.

    Carries the outbound request and, when the tracker answered, the status
    code and raw response body so they can be shown verbatim.
    """

    def __init__(
        self,
        message: str,
        method: str | None = None,
        url: str | None = None,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        self.method = method
        self.url = url
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)

    def with_context(self, prefix: str) -> "TrackerRequestError":
        """Return a copy whose message is prefixed, keeping the request context."""
        return TrackerRequestError(
            f"{prefix}: {self.message}",
            method=self.method,
            url=self.url,
            status_code=self.status_code,
            response_body=self.response_body,
        )

    @property
    def request_line(self) -> str | None:
        if not self.method and not self.url:
            return None
        return f"{self.method or '?'} {self.url or '?'}"

    def details(self) -> list[str]:
        """Diagnostic lines for the request and response, if known."""
        lines = []
        if self.request_line:
            lines.append(f"Request: {self.request_line}")
        if self.status_code is not None:
            lines.append(f"Status: {self.status_code}")
        if self.response_body is not None:
            lines.append(f"Response body: {self.response_body}")
        return lines
