"""Tests for the plugin management CLI."""

import asyncio
import json

import pytest

import manage_plugins
from conftest import make_source


@pytest.fixture
def cli(context, monkeypatch):
    monkeypatch.setattr(manage_plugins, "create_context", lambda *args, **kwargs: context)

    def run(*argv):
        manage_plugins.main(list(argv))

    return run


def test_list_empty(cli, capsys):
    """An empty catalog says so."""
    cli("list")
    assert "No plugins found." in capsys.readouterr().out


def test_import_info_exec_remove(cli, context, tmp_path, capsys):
    """A plugin goes through its whole lifecycle from the command line."""
    source = tmp_path / "echo.ts"
    source.write_text(make_source(), encoding="utf-8")

    cli("import", str(source))
    assert "imported with id" in capsys.readouterr().out
    (plugin_id,) = asyncio.run(context.manager.list_plugins())

    cli("info", plugin_id)
    out = capsys.readouterr().out
    assert "Name:        echo" in out
    assert "- say: echoes input" in out

    cli("exec", plugin_id, "say", "--args", json.dumps({"text": "hi"}))
    assert json.loads(capsys.readouterr().out) == "hi"

    cli("remove", plugin_id)
    cli("list")
    assert "No plugins found." in capsys.readouterr().out


def test_error_prints_kind(cli, capsys):
    """Errors print their kind and exit with status 1."""
    with pytest.raises(SystemExit) as exc_info:
        cli("exec", "nope", "say")
    assert exc_info.value.code == 1
    assert "not_found: Plugin 'nope' not found" in capsys.readouterr().out


def test_env_set_list_unset(cli, context, capsys):
    """Variables can be set, listed masked or shown, and unset."""
    cli("env", "set", "A=1", "B=x=y")
    cli("env", "list", "--show")
    out = capsys.readouterr().out
    assert "A=1" in out
    assert "B=x=y" in out

    cli("env", "list")
    assert "A=***" in capsys.readouterr().out

    cli("env", "unset", "A")
    assert [var.key for var in context.env_store.load()] == ["B"]


def test_env_set_invalid_key(cli, context, capsys):
    """A key the .env file cannot hold is reported and nothing is saved."""
    cli("env", "set", "A=1")
    capsys.readouterr()

    with pytest.raises(SystemExit) as exc_info:
        cli("env", "set", "#C=2")

    assert exc_info.value.code == 1
    assert capsys.readouterr().out.startswith("encode: ")
    assert [var.key for var in context.env_store.load()] == ["A"]


def test_doctor(cli, plugins_dir, capsys):
    """Doctor passes on a clean catalog and fixes stray sources with --fix."""
    cli("doctor")
    assert "All checks passed" in capsys.readouterr().out

    (plugins_dir / "stray.ts").write_text(make_source(), encoding="utf-8")
    with pytest.raises(SystemExit):
        cli("doctor", "--fix")
    assert "stray.ts" in capsys.readouterr().out
    assert not (plugins_dir / "stray.ts").exists()
