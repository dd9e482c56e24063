"""
Tolerant PostgreSQL DDL parser.

Not a grammar: the input is normalized (comments stripped, whitespace
collapsed), split on ';', and each statement is matched against one
pattern per statement shape. A statement that does not fit its shape
is skipped and reported in ParseResult.errors.
"""

import logging
import re
from typing import Optional
from models import Column, Constraint, ParseResult, SqlEnum, Table

logger = logging.getLogger(__name__)

# "quoted name" | bare_name | schema.bare_name
IDENT = r'(?:"([^"]+)"|(?:\w+\.)?(\w+))'

LINE_COMMENT = re.compile(r"--.*$", re.MULTILINE)
BLOCK_COMMENT = re.compile(r"/\*[\s\S]*?\*/")
WHITESPACE = re.compile(r"\s+")

CREATE_ENUM = re.compile(
    rf"CREATE\s+TYPE\s+{IDENT}\s+AS\s+ENUM\s*\(\s*([^)]+)\s*\)", re.IGNORECASE
)
CREATE_TABLE = re.compile(
    rf"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?{IDENT}\s*\(", re.IGNORECASE
)
TABLE_BODY = re.compile(r"\(([\s\S]*)\)")
ALTER_TABLE = re.compile(
    rf"ALTER\s+TABLE\s+(?:IF\s+EXISTS\s+)?(?:ONLY\s+)?{IDENT}\s+(ADD\s+.*)$", re.IGNORECASE
)
ADD_KEYWORD = re.compile(r"^ADD\s+", re.IGNORECASE)
ALTER_ADDS = ("ADD FOREIGN KEY", "ADD CONSTRAINT", "ADD PRIMARY KEY", "ADD UNIQUE")

PRIMARY_KEY_CLAUSE = re.compile(r"PRIMARY\s+KEY\s*\(\s*([^)]+)\s*\)", re.IGNORECASE)
UNIQUE_CLAUSE = re.compile(r"UNIQUE\s*\(\s*([^)]+)\s*\)", re.IGNORECASE)
FOREIGN_KEY_CLAUSE = re.compile(
    r"FOREIGN\s+KEY\s*\(\s*([^)]+)\s*\)\s*"
    rf"REFERENCES\s+{IDENT}\s*(?:\(\s*([^)]+)\s*\))?",
    re.IGNORECASE,
)
INLINE_REFERENCES = re.compile(
    rf"REFERENCES\s+{IDENT}\s*(?:\(\s*([^)]+)\s*\))?", re.IGNORECASE
)

CONSTRAINT_KEYWORDS = ("PRIMARY KEY", "FOREIGN KEY", "UNIQUE", "CHECK")
CONSTRAINT_LEADERS = ("CONSTRAINT", "PRIMARY", "FOREIGN", "UNIQUE", "CHECK")
LEADING_IDENTIFIER = re.compile(r'^(?:"([^"]+)"|(\w+))\s*')

TYPE_WITH_PARAMS = re.compile(r"^(\w+)\s*\(([^)]*)\)")
IDENTITY = re.compile(r"GENERATED\s+(?:BY\s+DEFAULT|ALWAYS)\s+AS\s+IDENTITY", re.IGNORECASE)
IDENTITY_TYPES = {"INTEGER": "SERIAL", "INT": "SERIAL", "BIGINT": "BIGSERIAL"}
SET_DEFAULT_ACTION = re.compile(r"ON\s+(?:DELETE|UPDATE)\s+SET\s+DEFAULT", re.IGNORECASE)

# One level of nested parens with an optional ::cast, a quoted string
# with an optional ::cast, or any run of non-separator characters.
DEFAULT_VALUE = re.compile(
    r"\bDEFAULT\s+("
    r"\([^()]*(?:\([^()]*\)[^()]*)*\)(?:::\w+)?"
    r"|'(?:[^']|'')*'(?:::\w+)?"
    r"|[^,\s]+"
    r")",
    re.IGNORECASE,
)


# ============== PREPROCESSING ==============

def clean_sql(sql: str) -> str:
    """Remove comments and collapse whitespace"""
    sql = LINE_COMMENT.sub("", sql)
    sql = BLOCK_COMMENT.sub("", sql)
    return WHITESPACE.sub(" ", sql).strip()


def split_statements(sql: str) -> list[str]:
    return [stmt.strip() for stmt in clean_sql(sql).split(";") if stmt.strip()]


def split_by_commas(content: str) -> list[str]:
    """Split on commas that are not nested inside parentheses"""
    parts = []
    current = []
    depth = 0

    for ch in content:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "," and depth == 0:
            part = "".join(current).strip()
            if part:
                parts.append(part)
            current = []
            continue
        current.append(ch)

    last = "".join(current).strip()
    if last:
        parts.append(last)
    return parts


def unquote(identifier: str) -> str:
    identifier = identifier.strip()
    if len(identifier) >= 2 and identifier[0] == identifier[-1] and identifier[0] in "\"'":
        return identifier[1:-1]
    return identifier


def split_identifiers(text: str) -> list[str]:
    return [unquote(part) for part in text.split(",") if part.strip()]


def _ident(match: re.Match, group: int) -> str:
    """Pick the quoted or the bare alternative of an IDENT pair"""
    return match.group(group) or match.group(group + 1)


# ============== ENUMS ==============

def is_enum_statement(statement: str) -> bool:
    upper = statement.upper()
    return upper.startswith("CREATE TYPE") and "AS ENUM" in upper


def parse_create_enum(statement: str) -> Optional[SqlEnum]:
    match = CREATE_ENUM.search(statement)
    if not match:
        return None

    values = [unquote(value) for value in match.group(3).split(",")]
    values = [value for value in values if value.strip()]
    return SqlEnum(name=_ident(match, 1), values=values)


# ============== TABLES ==============

def is_table_statement(statement: str) -> bool:
    return statement.upper().startswith("CREATE TABLE")


def is_constraint_definition(part: str) -> bool:
    """
    A clause is a table-level constraint when it mentions a constraint
    keyword and does not start with a column name. A column such as
    `unique_code TEXT` starts with an identifier, `UNIQUE (a, b)` does not.
    """
    upper = part.upper()
    if not any(keyword in upper for keyword in CONSTRAINT_KEYWORDS):
        return False

    match = LEADING_IDENTIFIER.match(part)
    if not match:
        return True
    if match.group(1):
        # a quoted leading name is always a column
        return False
    return match.group(2).upper() in CONSTRAINT_LEADERS


def parse_constraint(clause: str) -> Optional[Constraint]:
    """Table-level PRIMARY KEY / FOREIGN KEY / UNIQUE clause. CHECK is ignored."""
    upper = clause.upper()

    if "FOREIGN KEY" in upper:
        match = FOREIGN_KEY_CLAUSE.search(clause)
        if match:
            return Constraint(
                kind="FOREIGN KEY",
                columns=split_identifiers(match.group(1)),
                referenced_table=_ident(match, 2),
                referenced_columns=split_identifiers(match.group(4)) if match.group(4) else ["id"],
            )
        return None

    if "PRIMARY KEY" in upper:
        match = PRIMARY_KEY_CLAUSE.search(clause)
        if match:
            return Constraint(kind="PRIMARY KEY", columns=split_identifiers(match.group(1)))
        return None

    if "UNIQUE" in upper:
        match = UNIQUE_CLAUSE.search(clause)
        if match:
            return Constraint(kind="UNIQUE", columns=split_identifiers(match.group(1)))

    return None


def split_column_name(clause: str) -> Optional[tuple[str, str]]:
    """Return (name, rest of the definition), or None if there is no type"""
    clause = clause.strip()

    if clause.startswith('"'):
        end_quote = clause.find('"', 1)
        if end_quote == -1:
            return None
        return clause[1:end_quote], clause[end_quote + 1:].strip()

    space = clause.find(" ")
    if space == -1:
        return None
    return clause[:space], clause[space + 1:].strip()


def parse_column_type(definition: str) -> tuple[str, Optional[int]]:
    """VARCHAR(255) -> ("VARCHAR", 255), NUMERIC(10,2) -> ("NUMERIC", None)"""
    match = TYPE_WITH_PARAMS.match(definition)
    if match:
        params = match.group(2).strip()
        return match.group(1), int(params) if params.isdigit() else None

    token = unquote(definition.split(" ")[0]) if definition else ""
    if "." in token:
        # public.status -> status
        token = unquote(token.split(".")[-1])
    return token, None


def parse_default_value(definition: str) -> Optional[str]:
    # neither GENERATED BY DEFAULT AS IDENTITY nor ON DELETE SET DEFAULT is a default value
    stripped = SET_DEFAULT_ACTION.sub("", IDENTITY.sub("", definition))
    match = DEFAULT_VALUE.search(stripped)
    if match:
        return match.group(1)
    return None


def parse_column(clause: str, table: Table, enum_names: set[str]) -> Optional[Column]:
    """
    Parse one column clause. An inline REFERENCES clause appends a
    FOREIGN KEY constraint to the owning table as a side effect.
    """
    split = split_column_name(clause)
    if split is None:
        return None
    name, definition = split
    if not definition:
        return None

    col_type, length = parse_column_type(definition)
    if not col_type:
        return None

    is_enum = col_type.lower() in enum_names

    # flags come from the definition only, so a column called unique_code is not unique
    upper = definition.upper()
    is_primary_key = "PRIMARY KEY" in upper
    is_unique = "UNIQUE" in upper or is_primary_key
    nullable = "NOT NULL" not in upper and not is_primary_key

    if IDENTITY.search(definition) and col_type.upper() in IDENTITY_TYPES:
        col_type = IDENTITY_TYPES[col_type.upper()]

    references = INLINE_REFERENCES.search(definition)
    if references:
        table.constraints.append(
            Constraint(
                kind="FOREIGN KEY",
                columns=[name],
                referenced_table=_ident(references, 1),
                referenced_columns=split_identifiers(references.group(3)) if references.group(3) else ["id"],
            )
        )

    return Column(
        name=name,
        type=col_type if is_enum else col_type.upper(),
        nullable=nullable,
        default_value=parse_default_value(definition),
        is_primary_key=is_primary_key,
        is_unique=is_unique,
        length=length,
        is_enum=is_enum,
    )


def parse_create_table(statement: str, enum_names: set[str]) -> Optional[Table]:
    name_match = CREATE_TABLE.search(statement)
    if not name_match:
        return None

    body_match = TABLE_BODY.search(statement)
    if not body_match:
        return None

    table = Table(name=_ident(name_match, 1))

    for part in split_by_commas(body_match.group(1)):
        if is_constraint_definition(part):
            constraint = parse_constraint(part)
            if constraint:
                table.constraints.append(constraint)
        else:
            column = parse_column(part, table, enum_names)
            if column:
                table.columns.append(column)
            else:
                logger.debug("Skipping unparseable clause in %s: %s", table.name, part)

    return table


# ============== ALTER TABLE ==============

def is_alter_constraint_statement(statement: str) -> bool:
    upper = statement.upper()
    return upper.startswith("ALTER TABLE") and any(add in upper for add in ALTER_ADDS)


def parse_alter_table(statement: str, tables: list[Table]) -> int:
    """
    Attach the constraints of an ALTER TABLE ... ADD statement to the
    altered table, which for a foreign key is the table owning the FK
    column. Returns how many constraints were attached; 0 when nothing
    matched or the altered table is unknown.
    """
    match = ALTER_TABLE.search(statement)
    if not match:
        return 0

    table_name = _ident(match, 1)
    table = next((t for t in tables if t.name == table_name), None)
    if table is None:
        logger.debug("ALTER TABLE targets unknown table %s", table_name)
        return 0

    attached = 0
    for action in split_by_commas(match.group(3)):
        constraint = parse_constraint(ADD_KEYWORD.sub("", action))
        if constraint:
            table.constraints.append(constraint)
            attached += 1
    return attached


# ============== ENTRY POINT ==============

def _record(result: ParseResult, message: str, statement: str):
    snippet = statement if len(statement) <= 80 else statement[:77] + "..."
    logger.warning("%s: %s", message, snippet)
    result.errors.append(f"{message}: {snippet}")


def parse(sql: str) -> ParseResult:
    """
    Parse schema text into tables and enums.

    Runs three passes over the statements: enums first (so columns can
    recognise enum types), then tables, then ALTER TABLE constraints
    (which need the tables). Never raises for a malformed statement.
    """
    result = ParseResult()
    statements = split_statements(sql)

    for statement in statements:
        if not is_enum_statement(statement):
            continue
        try:
            enum = parse_create_enum(statement)
        except Exception:
            logger.exception("Error parsing CREATE TYPE statement")
            enum = None
        if enum:
            result.enums.append(enum)
        else:
            _record(result, "Could not parse CREATE TYPE statement", statement)

    enum_names = {enum.name.lower() for enum in result.enums}

    for statement in statements:
        if not is_table_statement(statement):
            continue
        try:
            table = parse_create_table(statement, enum_names)
        except Exception:
            logger.exception("Error parsing CREATE TABLE statement")
            table = None
        if table:
            result.tables.append(table)
        else:
            _record(result, "Could not parse CREATE TABLE statement", statement)

    for statement in statements:
        if not is_alter_constraint_statement(statement):
            continue
        try:
            attached = parse_alter_table(statement, result.tables)
        except Exception:
            logger.exception("Error parsing ALTER TABLE statement")
            attached = 0
        if not attached:
            _record(result, "Could not attach ALTER TABLE constraint", statement)

    logger.debug("Parsed %d tables and %d enums", len(result.tables), len(result.enums))
    return result
