# infra/utils/athena_sql.py
"""
Builders for the DDL statements run by the Athena query provider.

Every quoted literal goes through ``quote_literal`` so escaping rules live in
one place, and every database, table and column name goes through
``check_identifier``.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple


def quote_literal(value: str, quote: str = "'") -> str:
    """Wrap ``value`` in ``quote``, escaping backslashes and the quote character."""
    escaped = str(value).replace("\\", "\\\\").replace(quote, "\\" + quote)
    return f"{quote}{escaped}{quote}"


_IDENTIFIER = re.compile(r"[A-Za-z0-9_]+")


def check_identifier(name: str) -> str:
    """Return ``name`` if it is a valid Athena database, table or column name.

    Athena only accepts letters, digits and underscores here, so anything else
    raises ``ValueError`` before it can reach a statement.
    """
    if not isinstance(name, str) or not _IDENTIFIER.fullmatch(name):
        raise ValueError(f"Invalid Athena identifier {name!r}, use letters, digits and underscores only")
    return name


def qualified_name(name: str, database_name: Optional[str] = None) -> str:
    if database_name:
        return f"{check_identifier(database_name)}.{check_identifier(name)}"
    return check_identifier(name)


class ResultEncryptionOption(str, Enum):
    """Encryption options for query results."""

    CSE_KMS = "CSE_KMS"
    SSE_KMS = "SSE_KMS"
    SSE_S3 = "SSE_S3"


class RowFormat:
    """Row format of a table and its underlying source data."""

    def __init__(self, statement: str) -> None:
        self.statement = statement

    @classmethod
    def delimited(
        cls,
        fields_terminated_by: str,
        escaped_by: Optional[str] = None,
        collection_items_terminated_by: Optional[str] = None,
        map_keys_terminated_by: Optional[str] = None,
        lines_terminated_by: Optional[str] = None,
        null_defined_as: Optional[str] = None,
    ) -> "RowFormat":
        parts = [f"DELIMITED FIELDS TERMINATED BY {quote_literal(fields_terminated_by)}"]
        if escaped_by is not None:
            parts.append(f"ESCAPED BY {quote_literal(escaped_by)}")
        if collection_items_terminated_by is not None:
            parts.append(f"COLLECTION ITEMS TERMINATED BY {quote_literal(collection_items_terminated_by)}")
        if map_keys_terminated_by is not None:
            parts.append(f"MAP KEYS TERMINATED BY {quote_literal(map_keys_terminated_by)}")
        if lines_terminated_by is not None:
            parts.append(f"LINES TERMINATED BY {quote_literal(lines_terminated_by)}")
        if null_defined_as is not None:
            parts.append(f"NULL DEFINED AS {quote_literal(null_defined_as)}")
        return cls(" ".join(parts))

    @classmethod
    def serde(cls, class_name: str, properties: Sequence[Tuple[str, str]] = ()) -> "RowFormat":
        statement = f"SERDE {quote_literal(class_name)}"
        if properties:
            rendered = ", ".join(
                quote_literal(key, quote='"') + " = " + quote_literal(value, quote='"')
                for key, value in properties
            )
            statement += f" WITH SERDEPROPERTIES ({rendered})"
        return cls(statement)

    def __repr__(self) -> str:
        return f"RowFormat({self.statement!r})"


class FileFormat:
    """File format for table data."""

    TEXTFILE: "FileFormat"
    SEQUENCEFILE: "FileFormat"
    RCFILE: "FileFormat"
    ORC: "FileFormat"
    PARQUET: "FileFormat"
    AVRO: "FileFormat"
    JSONFILE: "FileFormat"
    ION: "FileFormat"

    def __init__(self, statement: str) -> None:
        self.statement = statement

    @classmethod
    def from_class_names(cls, input_format: str, output_format: str) -> "FileFormat":
        return cls(f"INPUTFORMAT {quote_literal(input_format)} OUTPUTFORMAT {quote_literal(output_format)}")

    def __repr__(self) -> str:
        return f"FileFormat({self.statement!r})"


for _format in ("TEXTFILE", "SEQUENCEFILE", "RCFILE", "ORC", "PARQUET", "AVRO", "JSONFILE", "ION"):
    setattr(FileFormat, _format, FileFormat(_format))


@dataclass(frozen=True)
class CreateDatabaseStatement:
    name: str

    def render(self) -> str:
        return f"CREATE DATABASE IF NOT EXISTS {check_identifier(self.name)}"


@dataclass(frozen=True)
class DropDatabaseStatement:
    name: str

    def render(self) -> str:
        return f"DROP DATABASE IF EXISTS {check_identifier(self.name)} CASCADE"


@dataclass(frozen=True)
class CreateExternalTableStatement:
    name: str
    columns: Sequence[Tuple[str, str]]
    row_format: RowFormat
    file_format: FileFormat
    location_bucket_name: str
    location_key: Optional[str] = None
    database_name: Optional[str] = None
    encrypted_data: bool = False

    def render(self) -> str:
        if not self.columns:
            raise ValueError(f"Table {self.name} needs at least one column")

        columns = ", ".join(f"{check_identifier(column)} {column_type}" for column, column_type in self.columns)
        key = (self.location_key or "").strip("/")
        if key:
            key += "/"
        location = quote_literal(f"s3://{self.location_bucket_name}/{key}")
        encrypted = quote_literal("true" if self.encrypted_data else "false")

        lines: List[str] = [
            f"CREATE EXTERNAL TABLE IF NOT EXISTS {qualified_name(self.name, self.database_name)} ({columns})",
            f"ROW FORMAT {self.row_format.statement}",
            f"STORED AS {self.file_format.statement}",
            f"LOCATION {location}",
            f"TBLPROPERTIES ({quote_literal('has_encrypted_data')} = {encrypted})",
        ]
        return "\n".join(lines)


@dataclass(frozen=True)
class DropTableStatement:
    name: str
    database_name: Optional[str] = None

    def render(self) -> str:
        return f"DROP TABLE IF EXISTS {qualified_name(self.name, self.database_name)}"
