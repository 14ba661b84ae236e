"""Summary/description templates rendered once per ticket.

Templates are Jinja2 with strict undefined handling, so a reference to a key the
ticket does not provide fails the render instead of producing empty text.
Available variables: ``project``, ``params`` and ``custom_epic_field``; ``params``
always carries ``epic``. Besides ``params.key`` / ``params["key"]`` there is an
``index(params, "key")`` helper matching the Go template spelling.

Markup that clashes with the template syntax must be escaped by the template
author (``{% raw %}...{% endraw %}``); rendered text is not checked against
Jira's markup.
"""

from pathlib import Path
from typing import Any

import jinja2
from pydantic import BaseModel, ConfigDict

from epicgen.errors import TemplateExecutionError


def _index(container: Any, *keys: Any) -> Any:
    value = container
    for key in keys:
        try:
            value = value[key]
        except (KeyError, IndexError, TypeError) as exc:
            raise TemplateExecutionError(f"index: no entry {key!r} in {type(value).__name__}") from exc
    return value


def _environment() -> jinja2.Environment:
    env = jinja2.Environment(
        undefined=jinja2.StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
    )
    env.globals["index"] = _index
    return env


_ENV = _environment()


def compile_template(source: str, name: str = "<template>") -> jinja2.Template:
    try:
        template = _ENV.from_string(source)
    except jinja2.TemplateSyntaxError as exc:
        raise TemplateExecutionError(f"{name}:{exc.lineno}: {exc.message}") from exc
    template.name = name
    return template


def compile_template_file(path: Path) -> jinja2.Template:
    """Read and compile a template file. Read errors propagate as OSError."""
    path = Path(path)
    return compile_template(path.read_text(encoding="utf-8"), name=str(path))


def render(template: jinja2.Template, context: dict[str, Any]) -> str:
    """Render ``template`` against ``context``. Pure: same context, same output."""
    try:
        return template.render(context)
    except TemplateExecutionError:
        raise
    except jinja2.TemplateError as exc:
        raise TemplateExecutionError(f"{template.name}: {exc}") from exc
    except (TypeError, ValueError, KeyError, AttributeError, ArithmeticError) as exc:
        raise TemplateExecutionError(f"{template.name}: {type(exc).__name__}: {exc}") from exc


class TicketTemplates(BaseModel):
    """The compiled summary/description pair shared by every ticket of a batch."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    summary: jinja2.Template
    description: jinja2.Template

    @classmethod
    def from_files(cls, summary_path: Path, description_path: Path) -> "TicketTemplates":
        return cls(
            summary=compile_template_file(summary_path),
            description=compile_template_file(description_path),
        )

    @classmethod
    def from_strings(cls, summary: str, description: str) -> "TicketTemplates":
        return cls(
            summary=compile_template(summary, name="summary"),
            description=compile_template(description, name="description"),
        )

    def render_summary(self, context: dict[str, Any]) -> str:
        # Jira summaries are single-line
        return render(self.summary, context).strip()

    def render_description(self, context: dict[str, Any]) -> str:
        return render(self.description, context)
