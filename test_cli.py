import json

import pytest
from typer.testing import CliRunner

import cli

runner = CliRunner()

SQL = """
CREATE TYPE status AS ENUM ('ACTIVE', 'INACTIVE');
CREATE TABLE accounts (id SERIAL PRIMARY KEY, status status NOT NULL DEFAULT 'ACTIVE');
"""


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)


@pytest.fixture
def sql_file(tmp_path):
    path = tmp_path / "schema.sql"
    path.write_text(SQL, encoding="utf-8")
    return path


def test_convert_to_stdout(sql_file):
    result = runner.invoke(cli.app, ["convert", str(sql_file)])

    assert result.exit_code == 0
    assert "enum Status {" in result.stdout
    assert "@default(ACTIVE)" in result.stdout


def test_convert_to_file(sql_file, tmp_path):
    output = tmp_path / "schema.prisma"
    result = runner.invoke(cli.app, ["convert", str(sql_file), "-o", str(output)])

    assert result.exit_code == 0
    assert "Wrote 1 models and 1 enums" in result.stdout
    assert "model Account {" in output.read_text(encoding="utf-8")


def test_convert_fails_on_empty_result(tmp_path):
    path = tmp_path / "empty.sql"
    path.write_text("-- nothing here\n", encoding="utf-8")

    result = runner.invoke(cli.app, ["convert", str(path)])
    assert result.exit_code == 1


def test_parse_prints_json(sql_file):
    result = runner.invoke(cli.app, ["parse", str(sql_file)])

    assert result.exit_code == 0
    ir = json.loads(result.stdout)
    assert ir["enums"][0]["name"] == "status"
    assert ir["tables"][0]["columns"][1]["is_enum"] is True


def test_convert_rejects_non_sql_file(tmp_path):
    path = tmp_path / "schema.txt"
    path.write_text(SQL, encoding="utf-8")

    result = runner.invoke(cli.app, ["convert", str(path)])
    assert result.exit_code == 1
    assert "model Account" not in result.stdout
