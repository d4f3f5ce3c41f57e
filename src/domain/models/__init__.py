"""Domain model package.

All domain objects are pure Python / Pydantic models with no ORM or
infrastructure dependencies.  Import from this package to avoid coupling
application code to individual module paths.
"""

from .columns import Column
from .result import ServiceResult
from .schema import ColumnInfo, DatabaseInfo, TableInfo
from .users import User

__all__ = [
    # results
    "ServiceResult",
    # mapping markers
    "Column",
    # schema inspection
    "DatabaseInfo",
    "TableInfo",
    "ColumnInfo",
    # entities
    "User",
]
