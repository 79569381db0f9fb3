"""Functional tests for ``nexushub --help``/``--version`` and ``serve``."""

from __future__ import annotations

import re
from textwrap import dedent

import pytest
from click.testing import CliRunner

import nexushub
from nexushub.entrypoints.cli import main
from nexushub.entrypoints.cli import serve as serve_module

# pylint: disable=magic-value-comparison

ANSI_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")


def _normalize(s: str) -> str:
    return re.sub(r"\s+", " ", s.strip())


@pytest.mark.parametrize("args", ([], ["-h"], ["--help"]))
def test_help_describes_the_tool(args):
    result = CliRunner().invoke(main.nexushub, args)

    text = ANSI_RE.sub("", result.output)
    assert _normalize(dedent(main.HELP)) in _normalize(text)
    assert "Usage:" in text
    assert "Commands:" in text
    assert re.search(r"^\s+db\b", text, re.MULTILINE)
    assert re.search(r"^\s+serve\b", text, re.MULTILINE)


def test_version():
    result = CliRunner().invoke(main.nexushub, ["--version"])
    assert result.exit_code == 0
    assert nexushub.__version__ in result.output


class TestServe:
    """An operator starts the API server."""

    @staticmethod
    @pytest.fixture
    def served(monkeypatch):
        calls = []
        monkeypatch.setattr(
            serve_module.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs))
        )
        return calls

    @staticmethod
    def test_memory_store(served):
        result = CliRunner().invoke(
            main.nexushub, ["--no-flight-recorder", "serve", "--memory", "--port", "9001"]
        )
        assert result.exit_code == 0, result.output
        assert "in-memory store" in result.output
        (app, kwargs), = served
        assert kwargs == {"host": "127.0.0.1", "port": 9001, "log_config": None}
        assert app.title

    @staticmethod
    def test_requires_a_database_url(served):
        runner = CliRunner(env={"NEXUSHUB_DB_URL": ""})
        result = runner.invoke(main.nexushub, ["--no-flight-recorder", "serve"])
        assert result.exit_code == 1
        assert "NEXUSHUB_DB_URL is not set" in result.output
        assert not served

    @staticmethod
    def test_database_url(served, sqlite_url):
        runner = CliRunner(env={"NEXUSHUB_DB_URL": sqlite_url, "NEXUSHUB_HOST": "0.0.0.0"})
        result = runner.invoke(main.nexushub, ["--no-flight-recorder", "serve"])
        assert result.exit_code == 0, result.output
        (_, kwargs), = served
        assert kwargs["host"] == "0.0.0.0"
