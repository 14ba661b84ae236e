"""Shared pydantic models — the contract between the tracker client, the pipeline and main.py."""

from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, field_validator


class TicketSpec(BaseModel):
    """One pending issue-creation request, as declared in the tickets file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    project: str = Field(validation_alias=AliasChoices("project", "Project"))
    params: dict[str, Any] = Field(default_factory=dict, validation_alias=AliasChoices("params", "Params"))
    custom_epic_field: str | None = Field(
        default=None,
        validation_alias=AliasChoices("custom_epic_field", "customEpicField", "CustomEpicField"),
    )

    @field_validator("params", mode="before")
    @classmethod
    def _null_params(cls, value: Any) -> Any:
        return {} if value is None else value


class IssueType(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | None = None
    name: str
    subtask: bool = False


class ProjectMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | None = None
    key: str
    name: str | None = None
    issue_types: list[IssueType] = []


class IssueSummary(BaseModel):
    """Result of an issue lookup restricted to the fields needed to classify it."""

    model_config = ConfigDict(frozen=True)

    id: str  # tracker-native, textual
    key: str  # PROJ-5
    self_url: str
    issue_type: str | None = None


class Epic(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    key: str
    self_url: str


class StandardEpicField(BaseModel):
    """Link through the tracker's canonical parent/epic field."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["standard"] = "standard"
    epic_key: str


class CustomEpicField(BaseModel):
    """Link by writing the epic key into an arbitrary custom field."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["custom"] = "custom"
    field_name: str
    epic_key: str


EpicLink = Annotated[StandardEpicField | CustomEpicField, Field(discriminator="kind")]


class IssuePayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    summary: str
    description: str
    project: ProjectMetadata
    issue_type: IssueType
    epic_link: EpicLink


class CreatedIssue(BaseModel):
    """Returned by create_issue; fields are what the tracker actually persisted."""

    model_config = ConfigDict(frozen=True)

    id: str
    key: str
    self_url: str
    fields: dict[str, Any] = {}


class TicketOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    ticket: TicketSpec
    status: Literal["created", "skipped"]
    issue: CreatedIssue | None = None
    reason: str | None = None  # set for skips


class BatchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    epic: Epic
    outcomes: list[TicketOutcome] = []

    @property
    def created(self) -> list[CreatedIssue]:
        return [o.issue for o in self.outcomes if o.status == "created" and o.issue is not None]

    @property
    def skipped(self) -> list[TicketSpec]:
        return [o.ticket for o in self.outcomes if o.status == "skipped"]


class Credentials(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user: str = Field(validation_alias=AliasChoices("user", "User"))
    password: SecretStr = Field(validation_alias=AliasChoices("password", "Password"))
