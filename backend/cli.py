"""Typer CLI for converting SQL schema files to Prisma."""

import json
from pathlib import Path
from typing import Optional

import typer

from config import get_settings, setup_logging
from handlers import convert_file, handle_parse

app = typer.Typer(help="Sql2Prisma: PostgreSQL DDL to Prisma schema")


@app.command()
def convert(
    input_file: Path,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the schema here instead of stdout"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING..."),
):
    """
    Convert a .sql file into a Prisma schema.

    Args:
        input_file: SQL file with CREATE TABLE / CREATE TYPE / ALTER TABLE statements
        output: Optional .prisma file to write
    """
    setup_logging(level=log_level)

    result = convert_file(input_file)
    if not result["success"]:
        typer.echo(f"Error: {result['error']}", err=True)
        raise typer.Exit(code=1)

    for message in result["errors"] + result["warnings"]:
        typer.echo(f"Warning: {message}", err=True)

    if output:
        output.write_text(result["prisma_schema"], encoding="utf-8")
        typer.echo(f"Wrote {result['tables']} models and {result['enums']} enums to {output}")
    else:
        typer.echo(result["prisma_schema"], nl=False)


@app.command()
def parse(input_file: Path):
    """Print the parsed tables and enums as JSON."""
    setup_logging()

    try:
        sql = input_file.read_text(encoding="utf-8")
    except OSError as e:
        typer.echo(f"Error: Could not read {input_file}: {e}", err=True)
        raise typer.Exit(code=1)

    result = handle_parse(sql)
    if not result["success"]:
        typer.echo(f"Error: {result['error']}", err=True)
        raise typer.Exit(code=1)

    typer.echo(json.dumps(result["ir"], indent=2))


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address"),
    port: Optional[int] = typer.Option(None, help="Port"),
):
    """Run the HTTP API."""
    import uvicorn
    from main import app as api

    setup_logging()
    settings = get_settings()
    uvicorn.run(api, host=host or settings.host, port=port or settings.port)


if __name__ == "__main__":
    app()
