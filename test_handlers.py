from datetime import datetime

from handlers import (
    INVALID_FILE_TYPE_ERROR,
    NO_DEFINITIONS_ERROR,
    NO_SQL_ERROR,
    convert_file,
    convert_sql,
    download_filename,
    handle_parse,
)
from prisma_generator import GeneratorOptions

SQL = """
CREATE TYPE role AS ENUM ('ADMIN', 'MEMBER');
CREATE TABLE users (id SERIAL PRIMARY KEY, role role DEFAULT 'MEMBER');
CREATE TABLE posts (id SERIAL PRIMARY KEY, author_id INTEGER REFERENCES users(id), editor_id INTEGER REFERENCES editors(id));
CREATE TABLE nonsense;
"""


def test_convert_sql_success():
    result = convert_sql(SQL)

    assert result["success"]
    assert result["tables"] == 2
    assert result["enums"] == 1
    assert "model User {" in result["prisma_schema"]
    assert "enum Role {" in result["prisma_schema"]
    assert len(result["errors"]) == 1
    assert len(result["warnings"]) == 1


def test_convert_sql_nothing_found():
    result = convert_sql("SELECT 1; -- nothing to see")
    assert result == {"success": False, "error": NO_DEFINITIONS_ERROR, "errors": []}


def test_convert_sql_empty_input():
    assert convert_sql("   ") == {"success": False, "error": NO_SQL_ERROR}


def test_convert_sql_with_options():
    result = convert_sql(SQL, GeneratorOptions(datasource_provider="cockroachdb"))
    assert 'provider = "cockroachdb"' in result["prisma_schema"]


def test_convert_sql_uses_settings(monkeypatch):
    import config

    monkeypatch.setenv("PRISMA_DATABASE_URL_ENV", "PG_URL")
    config.reset_settings()
    try:
        result = convert_sql(SQL)
    finally:
        config.reset_settings()

    assert 'url      = env("PG_URL")' in result["prisma_schema"]


def test_handle_parse():
    result = handle_parse(SQL)

    assert result["success"]
    assert [t["name"] for t in result["ir"]["tables"]] == ["users", "posts"]
    assert result["ir"]["enums"] == [{"name": "role", "values": ["ADMIN", "MEMBER"]}]


def test_convert_file(tmp_path):
    path = tmp_path / "schema.sql"
    path.write_text(SQL, encoding="utf-8")

    result = convert_file(path)
    assert result["success"]
    assert result["tables"] == 2


def test_convert_missing_file(tmp_path):
    result = convert_file(tmp_path / "missing.sql")
    assert not result["success"]
    assert "Could not read" in result["error"]


def test_download_filename():
    assert download_filename(datetime(2024, 3, 5, 14, 7, 9)) == "schema_20240305_140709.prisma"


def test_convert_file_rejects_other_extensions(tmp_path):
    path = tmp_path / "schema.txt"
    path.write_text(SQL, encoding="utf-8")

    assert convert_file(path) == {"success": False, "error": INVALID_FILE_TYPE_ERROR}


def test_convert_file_accepts_upper_case_extension(tmp_path):
    path = tmp_path / "SCHEMA.SQL"
    path.write_text(SQL, encoding="utf-8")

    assert convert_file(path)["success"]


def test_convert_sql_reports_unexpected_errors(monkeypatch):
    import handlers

    def broken_generate(ir, options=None):
        raise ValueError("boom")

    monkeypatch.setattr(handlers, "generate_schema", broken_generate)
    assert convert_sql(SQL) == {"success": False, "error": "boom"}


def test_handle_parse_reports_unexpected_errors(monkeypatch):
    import handlers

    def broken_parse(sql):
        raise RuntimeError("parser exploded")

    monkeypatch.setattr(handlers, "parse", broken_parse)
    assert handle_parse(SQL) == {"success": False, "error": "parser exploded"}
