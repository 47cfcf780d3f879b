"""Tests for the registry bootstrap script."""

import pytest
from sqlalchemy import create_engine, inspect

from scheduled_tx.scripts import init_registry as script


def test_init_registry_creates_table(tmp_path) -> None:
    url = f"sqlite:///{tmp_path / 'registry.db'}"
    script.init_registry(url)

    engine = create_engine(url)
    try:
        assert "consumed_nonce" in inspect(engine).get_table_names()
    finally:
        engine.dispose()


def test_main_uses_url_override(tmp_path, monkeypatch, capsys) -> None:
    url = f"sqlite:///{tmp_path / 'override.db'}"
    monkeypatch.setattr("sys.argv", ["init_registry", "--url", url, "--drop-tables"])

    script.main()

    out = capsys.readouterr().out
    assert "dropped registry tables" in out
    assert "registry tables ready" in out


def test_main_exits_on_database_error(monkeypatch, capsys) -> None:
    monkeypatch.setattr("sys.argv", ["init_registry", "--url", "sqlite:////nonexistent-dir/x/registry.db"])

    with pytest.raises(SystemExit) as excinfo:
        script.main()

    assert excinfo.value.code == 1
    assert "ERROR" in capsys.readouterr().err
