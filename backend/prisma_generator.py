import logging
import re
from typing import Optional
from pydantic import BaseModel
from models import (
    Column,
    Constraint,
    ParseResult,
    PrismaEnum,
    PrismaField,
    PrismaModel,
    SqlEnum,
    Table,
)
from naming import (
    foreign_key_context,
    model_name,
    pluralize,
    strip_id_suffix,
    to_camel_case,
    to_pascal_case,
)

logger = logging.getLogger(__name__)

# SQL type -> Prisma scalar type. Anything missing falls back to String.
TYPE_MAP = {
    "SERIAL": "Int",
    "BIGSERIAL": "Int",
    "SMALLSERIAL": "Int",
    "INTEGER": "Int",
    "INT": "Int",
    "BIGINT": "Int",
    "SMALLINT": "Int",
    "VARCHAR": "String",
    "TEXT": "String",
    "CHAR": "String",
    "BOOLEAN": "Boolean",
    "BOOL": "Boolean",
    "TIMESTAMP": "DateTime",
    "TIMESTAMPTZ": "DateTime",
    "DATE": "DateTime",
    "TIME": "DateTime",
    "DECIMAL": "Float",
    "NUMERIC": "Float",
    "FLOAT": "Float",
    "DOUBLE": "Float",
    "REAL": "Float",
    "UUID": "String",
    "JSON": "Json",
    "JSONB": "Json",
}
DEFAULT_TYPE = "String"

SERIAL_TYPES = ("SERIAL", "BIGSERIAL", "SMALLSERIAL")
NATIVE_TYPES = {"UUID": "@db.Uuid", "JSONB": "@db.JsonB", "JSON": "@db.Json"}

NOW_KEYWORDS = ("CURRENT_TIMESTAMP", "NOW()", "(NOW())")
UUID_FUNCTION = re.compile(r"gen_random_uuid|uuid_generate_v4", re.IGNORECASE)
JSON_CAST = re.compile(r"::jsonb?\b", re.IGNORECASE)
NUMBER = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
TYPE_CAST = re.compile(r"::[\w ]+$")

HEADER_TEMPLATE = """// Generated Prisma schema
generator client {{
  provider = "prisma-client-js"
}}

datasource db {{
  provider = "{provider}"
  url      = env("{url_env}")
}}

"""


class GeneratorOptions(BaseModel):
    datasource_provider: str = "postgresql"
    database_url_env: str = "DATABASE_URL"


# Accumulators threaded through one generation run
class GenerationContext(BaseModel):
    relation_counter: dict[str, int] = {}
    warnings: list[str] = []


class GeneratedSchema(BaseModel):
    text: str
    models: list[PrismaModel]
    enums: list[PrismaEnum]
    warnings: list[str] = []


# ============== TYPES & ATTRIBUTES ==============

def map_sql_type(sql_type: str, enums: list[PrismaEnum]) -> str:
    """Enum names win over everything, then the TYPE_MAP lookup"""
    expected_enum = to_pascal_case(sql_type)
    for enum in enums:
        if enum.name == expected_enum:
            return enum.name
    return TYPE_MAP.get(sql_type.upper(), DEFAULT_TYPE)


def is_number(value: str) -> bool:
    return bool(NUMBER.match(value))


def escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def strip_outer_parens(value: str) -> str:
    """(gen_random_uuid()) -> gen_random_uuid()"""
    if value.startswith("(") and value.endswith(")"):
        return value[1:-1]
    return value


def string_literal(value: str) -> str:
    """'active'::character varying -> active"""
    value = TYPE_CAST.sub("", value).strip()
    if len(value) >= 2 and value[0] == value[-1] == "'":
        value = value[1:-1].replace("''", "'")
    return value


def default_attribute(column: Column, prisma_type: str) -> Optional[str]:
    """
    Translate a raw DEFAULT expression into a @default(...) attribute.
    Returns None for DEFAULT NULL.
    """
    value = column.default_value
    upper = value.upper()

    if upper == "NULL" or upper.startswith("NULL::"):
        return None
    if upper in NOW_KEYWORDS:
        return "@default(now())"
    if UUID_FUNCTION.search(value):
        return f'@default(dbgenerated("{escape(value)}"))'
    if value.lower() in ("true", "false"):
        return f"@default({value.lower()})"
    if is_number(value):
        return f"@default({value})"
    if "NOW()" in upper or "CURRENT_TIMESTAMP" in upper:
        return "@default(now())"
    if JSON_CAST.search(value):
        return f'@default(dbgenerated("{escape(strip_outer_parens(value))}"))'

    literal = string_literal(value)
    if column.is_enum:
        return f"@default({literal})"
    if prisma_type in ("Int", "Float") and is_number(literal):
        return f"@default({literal})"
    if prisma_type == "Boolean" and literal.lower() in ("true", "false"):
        return f"@default({literal.lower()})"
    return f'@default("{escape(literal)}")'


def primary_key_attribute(column: Column) -> str:
    col_type = column.type.upper()
    if col_type in SERIAL_TYPES:
        return "@id @default(autoincrement())"
    if col_type == "UUID" and column.default_value and UUID_FUNCTION.search(column.default_value):
        expression = strip_outer_parens(column.default_value)
        return f'@id @default(dbgenerated("{escape(expression)}"))'
    return "@id"


def convert_column_to_field(
    column: Column,
    enums: list[PrismaEnum],
    table_primary_key: Optional[str] = None,
    table_unique: Optional[set[str]] = None,
    table_key_columns: Optional[set[str]] = None,
) -> PrismaField:
    """
    Scalar field for one column, attributes in a fixed order. Columns in
    table_key_columns (e.g. a composite PRIMARY KEY) are never optional.
    """
    name = to_camel_case(column.name)
    field_type = map_sql_type(column.type, enums if column.is_enum else [])
    col_type = column.type.upper()

    is_primary_key = column.is_primary_key or column.name == table_primary_key
    is_unique = column.is_unique or column.name in (table_unique or set())
    in_key = column.name in (table_key_columns or set())

    attributes = []

    if is_primary_key:
        attributes.append(primary_key_attribute(column))

    if is_unique and not is_primary_key:
        attributes.append("@unique")

    if column.default_value and not is_primary_key:
        default = default_attribute(column, field_type)
        if default:
            attributes.append(default)

    if "TIMESTAMP" in col_type and "updated" in column.name.lower():
        attributes.append("@updatedAt")

    if column.name != name:
        attributes.append(f'@map("{column.name}")')

    if col_type in NATIVE_TYPES:
        attributes.append(NATIVE_TYPES[col_type])

    return PrismaField(
        name=name,
        type=field_type,
        attributes=attributes,
        is_optional=column.nullable and not is_primary_key and not in_key,
    )


# ============== MODELS ==============

def convert_enums(enums: list[SqlEnum]) -> list[PrismaEnum]:
    return [PrismaEnum(name=to_pascal_case(e.name), values=list(e.values)) for e in enums]


def _key_columns(table: Table, kind: str) -> list[list[str]]:
    return [c.columns for c in table.constraints if c.kind == kind and c.columns]


def _field_list(columns: list[str]) -> str:
    return ", ".join(to_camel_case(col) for col in columns)


def create_basic_model(table: Table, enums: list[PrismaEnum]) -> PrismaModel:
    """First pass: scalar fields plus table-level @@id / @@unique / @@map"""
    name = model_name(table.name)
    attributes = []

    table_primary_key = None
    for columns in _key_columns(table, "PRIMARY KEY"):
        if len(columns) == 1:
            table_primary_key = columns[0]
        else:
            attributes.append(f"@@id([{_field_list(columns)}])")

    table_unique = set()
    for columns in _key_columns(table, "UNIQUE"):
        if len(columns) == 1:
            table_unique.add(columns[0])
        else:
            attributes.append(f"@@unique([{_field_list(columns)}])")

    key_columns = table.primary_key_columns()

    fields = [
        convert_column_to_field(column, enums, table_primary_key, table_unique, key_columns)
        for column in table.columns
    ]

    if table.name != name:
        attributes.append(f'@@map("{table.name}")')

    return PrismaModel(name=name, fields=fields, attributes=attributes)


def _unique_field_name(model: PrismaModel, name: str) -> str:
    taken = {field.name for field in model.fields}
    if name not in taken:
        return name
    suffix = 2
    while f"{name}{suffix}" in taken:
        suffix += 1
    return f"{name}{suffix}"


def relation_name_for(source_table: str, target_table: str, fk_column: str, context: GenerationContext) -> str:
    """
    SourceToTarget, shared by both ends of the relation. A second FK
    between the same ordered pair gets the FK column context appended.
    """
    base = f"{model_name(source_table)}To{model_name(target_table)}"
    count = context.relation_counter.get(base, 0)
    context.relation_counter[base] = count + 1

    if count > 0:
        return f"{base}_{to_pascal_case(foreign_key_context(fk_column))}"
    return base


def relation_field_name(fk_column: str, target_table: str) -> str:
    """author_id -> author, id -> <target table>, user_id -> user"""
    if fk_column.lower() == "id":
        return to_camel_case(target_table)

    base = strip_id_suffix(fk_column)
    if base.lower() == target_table.lower():
        return to_camel_case(target_table)
    return to_camel_case(base)


def is_relation_optional(constraint: Constraint, table: Table) -> bool:
    """Optional as soon as one of the FK columns is nullable and not part of the primary key"""
    key_columns = table.primary_key_columns()
    for col_name in constraint.columns:
        column = table.get_column(col_name)
        if column is not None and column.nullable and col_name not in key_columns:
            return True
    return False


def create_relation_field(constraint: Constraint, table: Table, relation_name: str) -> PrismaField:
    """Forward (many-to-one) side, lives on the model owning the FK"""
    referenced_columns = constraint.referenced_columns or ["id"]
    return PrismaField(
        name=relation_field_name(constraint.columns[0], constraint.referenced_table),
        type=model_name(constraint.referenced_table),
        attributes=[
            f'@relation("{relation_name}", fields: [{_field_list(constraint.columns)}], '
            f"references: [{_field_list(referenced_columns)}])"
        ],
        is_optional=is_relation_optional(constraint, table),
    )


def create_back_relation_field(constraint: Constraint, table: Table, relation_name: str) -> PrismaField:
    """
    Back (one-to-many) side, lives on the referenced model. Several FKs
    from the same table to the same target are told apart by the FK
    column context, e.g. ticketsCreatedBy / ticketsAssignedTo.
    """
    same_target = [
        c for c in table.foreign_keys() if c.referenced_table == constraint.referenced_table
    ]
    name = pluralize(to_camel_case(table.name))
    if len(same_target) > 1:
        name += to_pascal_case(foreign_key_context(constraint.columns[0]))

    return PrismaField(
        name=name,
        type=model_name(table.name),
        attributes=[f'@relation("{relation_name}")'],
        is_optional=False,
        is_array=True,
    )


def convert_tables_to_models(
    tables: list[Table], enums: list[PrismaEnum], context: GenerationContext
) -> list[PrismaModel]:
    """
    Two passes: every scalar-only model must exist before relation
    fields are added, since back-relations can target tables declared
    later in the input.
    """
    models = [create_basic_model(table, enums) for table in tables]

    models_by_name = {}
    for model in models:
        models_by_name.setdefault(model.name, model)

    for table, model in zip(tables, models):
        for constraint in table.foreign_keys():
            if not constraint.columns:
                continue

            relation_name = relation_name_for(
                table.name, constraint.referenced_table, constraint.columns[0], context
            )

            forward = create_relation_field(constraint, table, relation_name)
            forward.name = _unique_field_name(model, forward.name)
            model.fields.append(forward)

            target = models_by_name.get(model_name(constraint.referenced_table))
            if target is None:
                message = (
                    f"Table '{table.name}' references unknown table "
                    f"'{constraint.referenced_table}'; back-relation skipped"
                )
                logger.warning(message)
                context.warnings.append(message)
                continue

            back = create_back_relation_field(constraint, table, relation_name)
            back.name = _unique_field_name(target, back.name)
            target.fields.append(back)

    return models


# ============== FORMATTING ==============

def _format_field(field: PrismaField, name_width: int, type_width: int) -> str:
    line = f"  {field.name.ljust(name_width)} {field.type_annotation.ljust(type_width)}"
    if field.attributes:
        line += " " + " ".join(field.attributes)
    return line.rstrip()


def format_model(model: PrismaModel) -> str:
    """Scalar fields, then relations, then block attributes, names and types aligned"""
    name_width = max((len(f.name) for f in model.fields), default=0)
    type_width = max((len(f.type_annotation) for f in model.fields), default=0)

    scalar_fields = [f for f in model.fields if not f.is_relation]
    relation_fields = [f for f in model.fields if f.is_relation]

    lines = [f"model {model.name} {{"]
    lines.extend(_format_field(f, name_width, type_width) for f in scalar_fields)

    if relation_fields:
        lines.append("")
        lines.append("  // Relations")
        lines.extend(_format_field(f, name_width, type_width) for f in relation_fields)

    if model.attributes:
        lines.append("")
        lines.extend(f"  {attr}" for attr in model.attributes)

    lines.append("}")
    return "\n".join(lines)


def format_enum(enum: PrismaEnum) -> str:
    values = "\n".join(f"  {value}" for value in enum.values)
    return f"enum {enum.name} {{\n{values}\n}}"


def render_header(options: GeneratorOptions) -> str:
    return HEADER_TEMPLATE.format(
        provider=options.datasource_provider, url_env=options.database_url_env
    )


# ============== ENTRY POINTS ==============

def generate_schema(ir: ParseResult, options: Optional[GeneratorOptions] = None) -> GeneratedSchema:
    """Build the Prisma models and enums and render the schema document"""
    options = options or GeneratorOptions()
    context = GenerationContext()

    enums = convert_enums(ir.enums)
    models = convert_tables_to_models(ir.tables, enums, context)

    text = render_header(options)
    if enums:
        text += "\n\n".join(format_enum(e) for e in enums) + "\n\n"
    text += "\n\n".join(format_model(m) for m in models)
    text = text.rstrip("\n") + "\n"

    return GeneratedSchema(text=text, models=models, enums=enums, warnings=context.warnings)


def generate(ir: ParseResult, options: Optional[GeneratorOptions] = None) -> str:
    """ParseResult -> Prisma schema text"""
    return generate_schema(ir, options).text
