"""Tests for epicgen.templates."""

from pathlib import Path

import pytest

from epicgen.errors import TemplateExecutionError
from epicgen.templates import TicketTemplates, compile_template, compile_template_file, render

_CTX = {"project": "X", "params": {"a": 1, "epic": "PROJ-5", "svc": {"name": "auth"}}, "custom_epic_field": None}


class TestCompile:
    def test_syntax_error(self) -> None:
        with pytest.raises(TemplateExecutionError, match="summary"):
            compile_template("{{ params.a ", name="summary")

    def test_file(self, tmp_path: Path) -> None:
        path = tmp_path / "summary.jira.tmpl"
        path.write_text("{{ project }}")
        template = compile_template_file(path)
        assert render(template, _CTX) == "X"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            compile_template_file(tmp_path / "missing.tmpl")

    def test_from_files_fails_on_bad_description(self, tmp_path: Path) -> None:
        summary = tmp_path / "s.tmpl"
        summary.write_text("ok")
        description = tmp_path / "d.tmpl"
        description.write_text("{% if %}")
        with pytest.raises(TemplateExecutionError):
            TicketTemplates.from_files(summary, description)


class TestRender:
    def test_access_patterns(self) -> None:
        template = compile_template(
            "{{ project }} {{ params.a }} {{ params['epic'] }} {{ index(params, 'svc', 'name') }}"
        )
        assert render(template, _CTX) == "X 1 PROJ-5 auth"

    def test_missing_key_fails(self) -> None:
        template = compile_template("{{ params.nope }}", name="description")
        with pytest.raises(TemplateExecutionError, match="description"):
            render(template, _CTX)

    def test_index_missing_key_fails(self) -> None:
        template = compile_template("{{ index(params, 'nope') }}")
        with pytest.raises(TemplateExecutionError, match="nope"):
            render(template, _CTX)

    def test_idempotent(self) -> None:
        template = compile_template("{% for k in params|sort %}{{ k }};{% endfor %}")
        assert render(template, _CTX) == render(template, _CTX)

    def test_no_leak_between_contexts(self) -> None:
        template = compile_template("{{ params.a }}")
        assert render(template, _CTX) == "1"
        assert render(template, {"params": {"a": 2}}) == "2"

    def test_no_html_escaping(self) -> None:
        template = compile_template("{{ params.text }}")
        assert render(template, {"params": {"text": "a < b & {code}"}}) == "a < b & {code}"

    def test_raw_block_keeps_braces(self) -> None:
        template = compile_template("{% raw %}{{code}}{% endraw %}")
        assert render(template, _CTX) == "{{code}}"


class TestTicketTemplates:
    def test_summary_stripped_description_verbatim(self) -> None:
        templates = TicketTemplates.from_strings("  {{ project }}\n", "line\n\n")
        assert templates.render_summary(_CTX) == "X"
        assert templates.render_description(_CTX) == "line\n\n"
