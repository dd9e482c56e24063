import logging
from datetime import datetime
from pathlib import Path
from typing import Optional
from sql_parser import parse
from prisma_generator import GeneratorOptions, generate_schema
from config import get_settings

logger = logging.getLogger(__name__)

NO_DEFINITIONS_ERROR = "No valid table definitions or enums found in SQL"
NO_SQL_ERROR = "No SQL provided"
INVALID_FILE_TYPE_ERROR = "Invalid file type, please select a .sql file"


def generator_options() -> GeneratorOptions:
    """Generator options taken from the current settings"""
    settings = get_settings()
    return GeneratorOptions(
        datasource_provider=settings.datasource_provider,
        database_url_env=settings.database_url_env,
    )


def handle_parse(sql: str) -> dict:
    """Parse SQL and return the IR"""
    if not sql or not sql.strip():
        return {"success": False, "error": NO_SQL_ERROR}

    try:
        result = parse(sql)
        if result.is_empty():
            return {"success": False, "error": NO_DEFINITIONS_ERROR, "errors": result.errors}

        return {"success": True, "ir": result.model_dump()}

    except Exception as e:
        logger.exception("Parse failed")
        return {"success": False, "error": str(e)}


def convert_sql(sql: str, options: Optional[GeneratorOptions] = None) -> dict:
    """Parse SQL and generate the Prisma schema"""
    if not sql or not sql.strip():
        return {"success": False, "error": NO_SQL_ERROR}

    try:
        result = parse(sql)
        if result.is_empty():
            logger.info("Conversion produced nothing (%d statement errors)", len(result.errors))
            return {"success": False, "error": NO_DEFINITIONS_ERROR, "errors": result.errors}

        schema = generate_schema(result, options or generator_options())
        logger.info("Converted %d tables and %d enums", len(result.tables), len(result.enums))

        return {
            "success": True,
            "prisma_schema": schema.text,
            "tables": len(result.tables),
            "enums": len(result.enums),
            "errors": result.errors,
            "warnings": schema.warnings,
        }

    except Exception as e:
        logger.exception("Conversion failed")
        return {"success": False, "error": str(e)}


def convert_file(path: Path, options: Optional[GeneratorOptions] = None) -> dict:
    """Read a .sql file and convert it"""
    path = Path(path)
    if path.suffix.lower() != ".sql":
        return {"success": False, "error": INVALID_FILE_TYPE_ERROR}

    try:
        sql = path.read_text(encoding="utf-8")
    except OSError as e:
        return {"success": False, "error": f"Could not read {path}: {e}"}
    return convert_sql(sql, options)


def download_filename(now: Optional[datetime] = None) -> str:
    """schema_20250101_120000.prisma"""
    now = now or datetime.now()
    return f"schema_{now.strftime('%Y%m%d_%H%M%S')}.prisma"
