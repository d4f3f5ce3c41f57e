"""Column markers for entity fields.

Entities map to tables structurally: a field named ``email`` is read from
and written to the column ``email``.  Attach a Column marker through
``typing.Annotated`` only when that default needs overriding:

    class Invoice(BaseModel):
        __tablename__: ClassVar[str] = "invoices"

        invoice_no: Annotated[int | None, Column(primary_key=True)] = None
        total: Annotated[Decimal, Column(name="total_amount")]

Dataclass entities may use ``field(metadata={"column": ..., "primary_key": True})``
instead.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Column:
    """Per-field mapping override: column name and/or primary-key flag."""

    name: str | None = None
    primary_key: bool = False
