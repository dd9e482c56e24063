from typing import Literal, Optional
from pydantic import BaseModel

ConstraintKind = Literal["PRIMARY KEY", "FOREIGN KEY", "UNIQUE", "CHECK"]


# ============== SQL SIDE (parser output) ==============

# A single column in a CREATE TABLE statement
class Column(BaseModel):
    name: str
    type: str  # uppercased, unless it names an enum
    nullable: bool = True
    default_value: Optional[str] = None  # raw expression text
    is_primary_key: bool = False
    is_unique: bool = False
    length: Optional[int] = None  # VARCHAR(255) -> 255
    is_enum: bool = False

# A table-level or inline constraint
class Constraint(BaseModel):
    kind: ConstraintKind
    columns: list[str]
    referenced_table: Optional[str] = None  # FOREIGN KEY only
    referenced_columns: Optional[list[str]] = None

# A table
class Table(BaseModel):
    name: str
    columns: list[Column] = []
    constraints: list[Constraint] = []

    def get_column(self, name: str) -> Optional[Column]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def foreign_keys(self) -> list[Constraint]:
        return [c for c in self.constraints if c.kind == "FOREIGN KEY" and c.referenced_table]

    def primary_key_columns(self) -> set[str]:
        """Columns that are part of the primary key, inline or table-level"""
        keys = {c.name for c in self.columns if c.is_primary_key}
        for constraint in self.constraints:
            if constraint.kind == "PRIMARY KEY":
                keys.update(constraint.columns)
        return keys

# CREATE TYPE ... AS ENUM
class SqlEnum(BaseModel):
    name: str
    values: list[str]

# Everything the parser found
class ParseResult(BaseModel):
    tables: list[Table] = []
    enums: list[SqlEnum] = []
    errors: list[str] = []  # one entry per skipped statement

    def is_empty(self) -> bool:
        return not self.tables and not self.enums

    def get_table(self, name: str) -> Optional[Table]:
        for table in self.tables:
            if table.name == name:
                return table
        return None


# ============== PRISMA SIDE (generator output) ==============

# A field inside a model block
class PrismaField(BaseModel):
    name: str
    type: str
    attributes: list[str] = []
    is_optional: bool = False
    is_array: bool = False

    @property
    def is_relation(self) -> bool:
        return any(attr.startswith("@relation") for attr in self.attributes)

    @property
    def type_annotation(self) -> str:
        return self.type + ("?" if self.is_optional else "") + ("[]" if self.is_array else "")

# A model block
class PrismaModel(BaseModel):
    name: str
    fields: list[PrismaField] = []
    attributes: list[str] = []  # @@id, @@unique, @@map

# An enum block
class PrismaEnum(BaseModel):
    name: str
    values: list[str]
