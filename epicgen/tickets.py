"""Load ticket declarations from a JSON file."""

from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from epicgen.errors import MalformedInputError
from epicgen.models import TicketSpec

_TICKET_LIST = TypeAdapter(list[TicketSpec])


def _describe(exc: ValidationError) -> str:
    first = exc.errors()[0]
    loc = ".".join(str(part) for part in first["loc"])
    where = f"at {loc}: " if loc else ""
    return f"{where}{first['msg']}"


def parse_tickets(data: bytes | str) -> list[TicketSpec]:
    """Parse a JSON list of ``{project, params, custom_epic_field?}`` objects.

    ``params`` may be omitted and defaults to an empty mapping. Its contents are
    not checked here; templates decide what they need.
    """
    try:
        return _TICKET_LIST.validate_json(data)
    except ValidationError as exc:
        raise MalformedInputError(f"Invalid tickets list ({exc.error_count()} error(s)), first {_describe(exc)}") from exc


def load_tickets(path: Path) -> list[TicketSpec]:
    return parse_tickets(Path(path).read_bytes())
