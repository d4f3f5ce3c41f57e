"""Database schema descriptions returned by ConnectionProvider inspection."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class DatabaseInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider_name: str
    dialect_name: str
    database_name: str | None = None
    server_version: str | None = None
    table_count: int = 0


class TableInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    schema_name: str | None = None
    row_count: int = 0


class ColumnInfo(BaseModel):
    """One column of a table as reported by the database.

    data_type is the dialect's own rendering (e.g. "INTEGER", "VARCHAR(100)").
    """

    model_config = ConfigDict(frozen=True)

    name: str
    data_type: str
    is_nullable: bool = True
    default_value: str | None = None
    is_primary_key: bool = False
    is_foreign_key: bool = False
